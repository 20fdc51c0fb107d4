"""Mocked async session factories for service tests."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest


def _result(value):
    """Build a mock Result for one execute() call.

    - a list is served via scalars().all() and all()
    - an int is an UPDATE rowcount
    - anything else is served via scalar_one_or_none()
    """
    mock_result = MagicMock()
    mock_scalars = MagicMock()
    if isinstance(value, list):
        mock_scalars.all = MagicMock(return_value=value)
        mock_result.all = MagicMock(return_value=value)
        mock_result.scalar_one_or_none = MagicMock(return_value=None)
    elif isinstance(value, int) and not isinstance(value, bool):
        mock_result.rowcount = value
        mock_scalars.all = MagicMock(return_value=[])
    else:
        mock_scalars.all = MagicMock(return_value=[])
        mock_result.all = MagicMock(return_value=[])
        mock_result.scalar_one_or_none = MagicMock(return_value=value)
    mock_result.scalars = MagicMock(return_value=mock_scalars)
    return mock_result


def _fill_server_defaults(obj):
    """Mimic what INSERT + refresh would populate on a new row."""
    now = datetime.now(UTC)
    if getattr(obj, "id", None) is None:
        obj.id = uuid.uuid4()
    for attr in ("created_at", "updated_at"):
        if hasattr(type(obj), attr) and getattr(obj, attr, None) is None:
            setattr(obj, attr, now)
    if hasattr(type(obj), "status") and getattr(obj, "status", None) is None:
        obj.status = "active"


def build_session_factory(results: list):
    """Mock session factory whose execute() returns ``results`` in order.

    The session records added objects in ``session.added`` and fills ids and
    timestamps on flush/refresh. ``session.begin()`` works as an async context.
    """
    calls = [0]
    session = AsyncMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)
    session.added = []
    session.executed = []

    def fake_add(obj):
        session.added.append(obj)

    async def fake_flush():
        for obj in session.added:
            _fill_server_defaults(obj)

    async def fake_refresh(obj):
        _fill_server_defaults(obj)

    async def fake_execute(query):
        session.executed.append(query)
        idx = calls[0]
        calls[0] += 1
        return _result(results[idx] if idx < len(results) else None)

    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=None)
    transaction.__aexit__ = AsyncMock(return_value=None)

    session.add = MagicMock(side_effect=fake_add)
    session.flush = AsyncMock(side_effect=fake_flush)
    session.refresh = AsyncMock(side_effect=fake_refresh)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = fake_execute
    session.begin = MagicMock(return_value=transaction)

    factory = MagicMock(return_value=session)
    factory.session = session
    return factory


@pytest.fixture
def session_factory_for():
    """``session_factory_for([lot, stage, 1])`` -> factory serving those results in order."""
    return build_session_factory
