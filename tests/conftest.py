"""Shared test fixtures for all test groups."""

import uuid
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from lotevivo.core.auth import ROLE_ADMIN, ROLE_CONSULTANT, ROLE_OPERATOR, AuthContext

TENANT_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_TENANT_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


def make_stage(
    code: str = "BROODING",
    sort_order: int = 0,
    *,
    chain: str = "poultry",
    purpose: str | None = "meat",
    is_active: bool = True,
    is_terminal: bool = False,
    tenant_id: uuid.UUID = TENANT_ID,
    stage_id: uuid.UUID | None = None,
):
    """Stand-in for a ProductionStage row."""
    now = datetime(2026, 1, 1, tzinfo=UTC)
    return SimpleNamespace(
        id=stage_id or uuid.uuid4(),
        tenant_id=tenant_id,
        chain=chain,
        purpose=purpose,
        name=code.title(),
        code=code,
        sort_order=sort_order,
        is_terminal=is_terminal,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )


def make_lot(
    code: str = "LOT-001",
    *,
    stage_id: uuid.UUID | None = None,
    species: str = "poultry",
    updated_at: datetime | None = None,
    tenant_id: uuid.UUID = TENANT_ID,
    lot_id: uuid.UUID | None = None,
):
    """Stand-in for a Lot row."""
    now = datetime(2026, 1, 1, tzinfo=UTC)
    return SimpleNamespace(
        id=lot_id or uuid.uuid4(),
        tenant_id=tenant_id,
        code=code,
        name=f"Lot {code}",
        species=species,
        purpose=None,
        status="active",
        stage_id=stage_id,
        notes=None,
        created_at=now,
        updated_at=updated_at or now,
    )


@pytest.fixture
def tenant_id():
    return TENANT_ID


@pytest.fixture
def admin_user():
    """Tenant admin of TENANT_ID."""
    return AuthContext(user_id="user-admin", tenant_id=TENANT_ID, role=ROLE_ADMIN)


@pytest.fixture
def operator_user():
    return AuthContext(user_id="user-operator", tenant_id=TENANT_ID, role=ROLE_OPERATOR)


@pytest.fixture
def consultant_user():
    """Read-only consultant of TENANT_ID."""
    return AuthContext(user_id="user-consultant", tenant_id=TENANT_ID, role=ROLE_CONSULTANT)


@pytest.fixture
def stage_factory():
    """Build ProductionStage stand-ins: ``stage_factory("LAYING", 3, purpose="laying")``."""
    return make_stage


@pytest.fixture
def lot_factory():
    return make_lot
