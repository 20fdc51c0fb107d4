"""Tests for bearer JWT verification, tenant context and role gating."""

import time
import uuid
from dataclasses import dataclass
from unittest.mock import MagicMock, patch

import jwt as pyjwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from lotevivo.core.auth import (
    ROLE_ADMIN,
    ROLE_CONSULTANT,
    ROLE_OPERATOR,
    ROLE_SUPER_ADMIN,
    AuthContext,
    build_auth_context,
    decode_access_token,
    require_auth,
)
from lotevivo.core.exceptions import PermissionDeniedError
from lotevivo.core.permissions import require_role

pytestmark = pytest.mark.unit

# ---------------------------------------------------------------------------
# RSA keypair generated once for entire test module
# ---------------------------------------------------------------------------
_private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
_public_key = _private_key.public_key()

_private_pem = _private_key.private_bytes(
    encoding=serialization.Encoding.PEM,
    format=serialization.PrivateFormat.PKCS8,
    encryption_algorithm=serialization.NoEncryption(),
)

_TEST_ISSUER = "https://auth.lotevivo.test/auth/v1"
_TENANT = "11111111-1111-1111-1111-111111111111"


def _sign_jwt(payload: dict, kid: str = "test-kid") -> str:
    return pyjwt.encode(payload, _private_pem, algorithm="RS256", headers={"kid": kid})


def _claims(**overrides) -> dict:
    now = int(time.time())
    claims = {
        "sub": "user-123",
        "email": "ops@farm.test",
        "aud": "authenticated",
        "iss": _TEST_ISSUER,
        "iat": now,
        "exp": now + 3600,
        "app_metadata": {"active_tenant_id": _TENANT, "role": ROLE_OPERATOR},
    }
    claims.update(overrides)
    return claims


@dataclass
class _FakeSigningKey:
    key: object


def _mock_jwks_client():
    client = MagicMock()
    client.get_signing_key_from_jwt.return_value = _FakeSigningKey(key=_public_key)
    return client


def _mock_settings():
    s = MagicMock()
    s.jwt_issuer = _TEST_ISSUER
    s.jwt_audience = "authenticated"
    s.jwt_algorithms = ["RS256"]
    return s


@pytest.fixture
def jwt_env():
    with (
        patch("lotevivo.core.auth.get_jwks_client", return_value=_mock_jwks_client()),
        patch("lotevivo.core.auth.get_settings", return_value=_mock_settings()),
    ):
        yield


def _request():
    request = MagicMock()
    request.state = MagicMock()
    return request


# ---------------------------------------------------------------------------
# decode_access_token
# ---------------------------------------------------------------------------
class TestDecodeAccessToken:
    def test_valid_token(self, jwt_env):
        claims = decode_access_token(_sign_jwt(_claims()))
        assert claims["sub"] == "user-123"

    def test_expired_token(self, jwt_env):
        token = _sign_jwt(_claims(exp=int(time.time()) - 60))
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token expired"

    def test_wrong_audience(self, jwt_env):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(_sign_jwt(_claims(aud="someone-else")))
        assert exc_info.value.status_code == 401

    def test_wrong_issuer(self, jwt_env):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(_sign_jwt(_claims(iss="https://evil.test")))
        assert exc_info.value.status_code == 401

    def test_garbage_token(self, jwt_env):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token("not-a-jwt")
        assert exc_info.value.status_code == 401


# ---------------------------------------------------------------------------
# build_auth_context
# ---------------------------------------------------------------------------
class TestBuildAuthContext:
    def test_tenant_and_role(self):
        auth = build_auth_context(_claims())
        assert auth.user_id == "user-123"
        assert auth.tenant_id == uuid.UUID(_TENANT)
        assert auth.role == ROLE_OPERATOR
        assert auth.is_super_admin is False
        assert auth.email == "ops@farm.test"

    def test_super_admin(self):
        auth = build_auth_context(_claims(app_metadata={"active_tenant_id": _TENANT, "global_role": "super_admin"}))
        assert auth.is_super_admin is True
        assert auth.role == ROLE_SUPER_ADMIN

    def test_unknown_role_dropped(self):
        auth = build_auth_context(_claims(app_metadata={"active_tenant_id": _TENANT, "role": "OWNER"}))
        assert auth.role is None

    def test_missing_metadata(self):
        auth = build_auth_context(_claims(app_metadata=None))
        assert auth.tenant_id is None
        assert auth.role is None

    def test_invalid_tenant_id(self):
        with pytest.raises(HTTPException) as exc_info:
            build_auth_context(_claims(app_metadata={"active_tenant_id": "not-a-uuid", "role": ROLE_ADMIN}))
        assert exc_info.value.status_code == 401


# ---------------------------------------------------------------------------
# require_auth dependency
# ---------------------------------------------------------------------------
class TestRequireAuth:
    async def test_missing_header(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_auth(_request(), None)
        assert exc_info.value.status_code == 401

    async def test_valid_token_sets_request_state(self, jwt_env):
        request = _request()
        creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials=_sign_jwt(_claims()))

        auth = await require_auth(request, creds)

        assert auth.tenant_id == uuid.UUID(_TENANT)
        assert request.state.user_id == "user-123"
        assert request.state.tenant_id == _TENANT

    async def test_no_active_tenant(self, jwt_env):
        creds = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=_sign_jwt(_claims(app_metadata={"role": ROLE_ADMIN}))
        )
        with pytest.raises(HTTPException) as exc_info:
            await require_auth(_request(), creds)
        assert exc_info.value.status_code == 403

    async def test_no_role_in_tenant(self, jwt_env):
        creds = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=_sign_jwt(_claims(app_metadata={"active_tenant_id": _TENANT}))
        )
        with pytest.raises(HTTPException) as exc_info:
            await require_auth(_request(), creds)
        assert exc_info.value.status_code == 403


# ---------------------------------------------------------------------------
# require_role
# ---------------------------------------------------------------------------
class TestRequireRole:
    async def test_allowed_role(self, operator_user):
        dependency = require_role(ROLE_ADMIN, ROLE_OPERATOR)
        assert await dependency(operator_user) is operator_user

    async def test_denied_role(self):
        consultant = AuthContext(user_id="u", tenant_id=uuid.UUID(_TENANT), role=ROLE_CONSULTANT)
        with pytest.raises(PermissionDeniedError):
            await require_role(ROLE_ADMIN)(consultant)

    async def test_super_admin_always_allowed(self):
        root = AuthContext(user_id="root", tenant_id=uuid.UUID(_TENANT), role=ROLE_SUPER_ADMIN, is_super_admin=True)
        assert await require_role(ROLE_ADMIN)(root) is root
