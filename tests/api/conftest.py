"""API-specific test fixtures."""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lotevivo.api.routes import api_router
from lotevivo.core.auth import require_auth
from lotevivo.main import register_exception_handlers


def override_auth(user):
    """Create auth override for a specific caller."""

    async def _override():
        return user

    return _override


@pytest.fixture
def api_app() -> FastAPI:
    """App with the real routers and error handlers but no DB or Redis startup.

    Tests override require_auth and the service dependencies.
    """

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        app.state.shutting_down = False
        yield

    app = FastAPI(title="LoteVivo - Test Client", lifespan=test_lifespan)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def api_client(api_app: FastAPI):
    with TestClient(api_app) as client:
        yield client


@pytest.fixture
def as_user(api_app: FastAPI):
    """``as_user(admin_user)`` authenticates subsequent requests as that caller."""

    def _login(user):
        api_app.dependency_overrides[require_auth] = override_auth(user)

    return _login
