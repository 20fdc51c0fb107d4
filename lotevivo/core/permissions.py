"""Role gating for tenant-scoped routes."""

from collections.abc import Awaitable, Callable

from fastapi import Depends

from lotevivo.core.auth import ROLE_SUPER_ADMIN, AuthContext, require_auth
from lotevivo.core.exceptions import PermissionDeniedError


def require_role(*roles: str) -> Callable[..., Awaitable[AuthContext]]:
    """Build a dependency admitting only the given tenant roles.

    Super admins are always admitted.
    """
    allowed = frozenset(roles) | {ROLE_SUPER_ADMIN}

    async def _dependency(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.is_super_admin or auth.role in allowed:
            return auth
        raise PermissionDeniedError(f"Role {auth.role} cannot perform this operation")

    return _dependency
