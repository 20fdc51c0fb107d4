"""Bearer JWT authentication and tenant context for FastAPI."""

import uuid
from dataclasses import dataclass, field
from functools import lru_cache

import jwt as pyjwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from lotevivo.core.config import get_settings
from lotevivo.core.logging import bind_request_context

_bearer_scheme = HTTPBearer(auto_error=False)

ROLE_ADMIN = "ADMIN"
ROLE_OPERATOR = "OPERATOR"
ROLE_CONSULTANT = "CONSULTANT"
ROLE_SUPER_ADMIN = "super_admin"

TENANT_ROLES = frozenset({ROLE_ADMIN, ROLE_OPERATOR, ROLE_CONSULTANT})


@lru_cache
def get_jwks_client() -> PyJWKClient:
    """Create a cached JWKS client pointing at the issuer's JWKS endpoint."""
    settings = get_settings()
    return PyJWKClient(settings.resolved_jwks_url, cache_keys=True, lifespan=300)


@dataclass(frozen=True)
class AuthContext:
    """Verified caller identity handed to every tenant-scoped operation."""

    user_id: str
    tenant_id: uuid.UUID | None
    role: str | None
    is_super_admin: bool = False
    email: str | None = None
    claims: dict = field(default_factory=dict, compare=False)


def decode_access_token(token: str) -> dict:
    """Verify and decode a bearer JWT, returning its claims.

    Raises ``HTTPException(401)`` on any validation failure.
    """
    settings = get_settings()
    try:
        client = get_jwks_client()
        signing_key = client.get_signing_key_from_jwt(token)

        payload = pyjwt.decode(
            token,
            signing_key.key,
            algorithms=settings.jwt_algorithms,
            audience=settings.jwt_audience or None,
            issuer=settings.jwt_issuer or None,
            options={
                "verify_exp": True,
                "verify_aud": bool(settings.jwt_audience),
                "require": ["sub", "exp"],
            },
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.InvalidAudienceError:
        raise HTTPException(status_code=401, detail="Invalid audience (aud mismatch)")
    except pyjwt.InvalidIssuerError:
        raise HTTPException(status_code=401, detail="Invalid issuer (iss mismatch)")
    except pyjwt.MissingRequiredClaimError as exc:
        raise HTTPException(status_code=401, detail=f"Missing required claim: {exc}")
    except pyjwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid token: {exc}")
    except pyjwt.PyJWKClientError as exc:
        raise HTTPException(status_code=401, detail=f"Signing key unavailable: {exc}")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Token missing sub claim")

    return payload


def build_auth_context(claims: dict) -> AuthContext:
    """Extract tenant scope and role from verified claims.

    Tenant membership lives in ``app_metadata``: ``active_tenant_id``, the
    tenant ``role`` and an optional ``global_role`` of ``super_admin``.
    """
    app_metadata = claims.get("app_metadata") or {}
    if not isinstance(app_metadata, dict):
        app_metadata = {}

    raw_tenant = app_metadata.get("active_tenant_id")
    tenant_id = None
    if raw_tenant:
        try:
            tenant_id = uuid.UUID(str(raw_tenant))
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid active_tenant_id claim")

    is_super_admin = app_metadata.get("global_role") == ROLE_SUPER_ADMIN
    role = ROLE_SUPER_ADMIN if is_super_admin else app_metadata.get("role")
    if role is not None and role != ROLE_SUPER_ADMIN and role not in TENANT_ROLES:
        role = None

    return AuthContext(
        user_id=claims["sub"],
        tenant_id=tenant_id,
        role=role,
        is_super_admin=is_super_admin,
        email=claims.get("email"),
        claims=claims,
    )


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthContext:
    """FastAPI dependency that validates the bearer JWT and resolves the tenant.

    Usage::

        @router.get("/protected")
        async def protected(auth: AuthContext = Depends(require_auth)):
            ...
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    claims = decode_access_token(credentials.credentials)
    auth = build_auth_context(claims)

    if auth.tenant_id is None:
        raise HTTPException(status_code=403, detail="No active tenant selected")
    if auth.role is None:
        raise HTTPException(status_code=403, detail="User has no role in the active tenant")

    # Set on request state for downstream use (error handlers, audit logging)
    request.state.user_id = auth.user_id
    request.state.tenant_id = str(auth.tenant_id)
    bind_request_context(user_id=auth.user_id, tenant_id=str(auth.tenant_id))

    return auth
