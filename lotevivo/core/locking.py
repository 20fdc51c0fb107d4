"""Per-lot advisory locking using Redis.

Serializes stage transitions for the same lot across API workers. The lock is
a plain ``SET NX EX`` key owned by a random token, released only by its owner.
"""

import asyncio
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as redis
import structlog

from lotevivo.core.config import get_settings
from lotevivo.core.exceptions import LotBusyError
from lotevivo.db.redis import get_redis

logger = structlog.get_logger(__name__)

# Compare-and-delete so a lock that expired and was re-acquired is not released
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class LotLock:
    """Manages per-lot transition locks in Redis."""

    LOCK_PREFIX = "lotevivo:lot-stage-lock:"
    POLL_INTERVAL = 0.1

    def __init__(
        self,
        client: redis.Redis | None = None,
        ttl: int | None = None,
        wait_timeout: float | None = None,
    ):
        settings = get_settings()
        self._client = client
        self.ttl = ttl or settings.lot_lock_ttl_seconds
        self.wait_timeout = settings.lot_lock_wait_seconds if wait_timeout is None else wait_timeout

    def _get_redis(self) -> redis.Redis:
        return self._client if self._client is not None else get_redis()

    def _lock_key(self, tenant_id: uuid.UUID, lot_id: uuid.UUID) -> str:
        return f"{self.LOCK_PREFIX}{tenant_id}:{lot_id}"

    async def acquire(self, tenant_id: uuid.UUID, lot_id: uuid.UUID, token: str) -> bool:
        """Attempt to acquire the lot lock once.

        Returns:
            True if acquired, False if another owner holds it
        """
        r = self._get_redis()
        result = await r.set(self._lock_key(tenant_id, lot_id), token, nx=True, ex=self.ttl)
        return bool(result)

    async def release(self, tenant_id: uuid.UUID, lot_id: uuid.UUID, token: str) -> bool:
        """Release the lot lock if ``token`` still owns it."""
        r = self._get_redis()
        released = await r.eval(_RELEASE_SCRIPT, 1, self._lock_key(tenant_id, lot_id), token)
        return bool(released)

    @asynccontextmanager
    async def hold(self, tenant_id: uuid.UUID, lot_id: uuid.UUID) -> AsyncGenerator[str, None]:
        """Hold the lot lock for the duration of the block.

        Polls until ``wait_timeout`` elapses, then raises ``LotBusyError``.

        Example:
            async with lot_lock.hold(tenant_id, lot_id):
                ...  # read current stage, update, append event
        """
        token = uuid.uuid4().hex
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.wait_timeout

        acquired = await self.acquire(tenant_id, lot_id, token)
        while not acquired and loop.time() < deadline:
            await asyncio.sleep(self.POLL_INTERVAL)
            acquired = await self.acquire(tenant_id, lot_id, token)

        if not acquired:
            logger.warning("lot_lock_timeout", tenant_id=str(tenant_id), lot_id=str(lot_id))
            raise LotBusyError()

        try:
            yield token
        finally:
            await self.release(tenant_id, lot_id, token)


# Singleton instance
_lot_lock: LotLock | None = None


def get_lot_lock() -> LotLock | None:
    """Return the shared LotLock, or None when locking is disabled.

    Override this dependency in tests via app.dependency_overrides.
    """
    global _lot_lock
    if not get_settings().lot_lock_enabled:
        return None
    if _lot_lock is None:
        _lot_lock = LotLock()
    return _lot_lock
