"""Per-provider critical section guarding booking creation.

Three layers serialize the check-then-insert of a booking for one provider:

* an in-process ``asyncio.Lock`` keyed by provider id, always;
* a Redis lock when ``PROVIDER_LOCK_BACKEND=redis``, for several workers
  sharing one database;
* a transaction-scoped advisory lock on PostgreSQL, taken inside the booking
  transaction by ``acquire_transaction_lock``.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from uuid import UUID

import redis.asyncio as redis
import structlog
from redis.exceptions import LockError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.config import settings
from clinicbook.core.exceptions import LockTimeoutException
from clinicbook.core.redis_client import get_redis_client
from clinicbook.database import dialect_name

logger = structlog.get_logger(__name__)


def advisory_lock_key(provider_id: UUID) -> int:
    """Signed 64-bit key for PostgreSQL advisory locks."""
    return int.from_bytes(provider_id.bytes[:8], "big", signed=True)


async def acquire_transaction_lock(db: AsyncSession, provider_id: UUID) -> None:
    """Take a provider advisory lock held until the current transaction ends."""
    if dialect_name(db) != "postgresql":
        return
    await db.execute(
        text("SELECT pg_advisory_xact_lock(:key)"),
        {"key": advisory_lock_key(provider_id)},
    )


class ProviderLockManager:
    """Registry of per-provider locks."""

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        timeout_seconds: int = 30,
        wait_seconds: int = 10,
    ):
        """
        Initialize lock manager.

        Args:
            redis_client: Optional Redis client for cross-process locking
            timeout_seconds: Expiry of a held Redis lock
            wait_seconds: How long to wait for a Redis lock before giving up
        """
        self.redis = redis_client
        self.timeout_seconds = timeout_seconds
        self.wait_seconds = wait_seconds
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._holders: dict[UUID, int] = {}

    @staticmethod
    def _redis_key(provider_id: UUID) -> str:
        return f"lock:booking:provider:{provider_id}"

    @asynccontextmanager
    async def hold(self, provider_id: UUID) -> AsyncIterator[None]:
        """
        Enter the critical section of one provider.

        The local lock of a provider is dropped from the registry once no
        coroutine holds or waits for it.

        Raises:
            LockTimeoutException: If the Redis lock could not be acquired in time
        """
        lock = self._locks.setdefault(provider_id, asyncio.Lock())
        self._holders[provider_id] = self._holders.get(provider_id, 0) + 1
        try:
            async with lock, self._redis_lock(provider_id):
                yield
        finally:
            self._holders[provider_id] -= 1
            if not self._holders[provider_id]:
                del self._holders[provider_id]
                del self._locks[provider_id]

    @asynccontextmanager
    async def _redis_lock(self, provider_id: UUID) -> AsyncIterator[None]:
        if self.redis is None:
            yield
            return

        lock = self.redis.lock(
            self._redis_key(provider_id),
            timeout=self.timeout_seconds,
            blocking_timeout=self.wait_seconds,
        )
        if not await lock.acquire():
            logger.warning("provider_lock_timeout", provider_id=str(provider_id))
            raise LockTimeoutException()
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # Expired while held; the booking transaction has already finished
                logger.warning(
                    "provider_lock_release_failed",
                    provider_id=str(provider_id),
                    error=str(e),
                )


@lru_cache
def get_lock_manager() -> ProviderLockManager:
    """Get the process-wide lock manager configured from settings."""
    redis_client = get_redis_client() if settings.provider_lock_backend == "redis" else None
    return ProviderLockManager(
        redis_client=redis_client,
        timeout_seconds=settings.provider_lock_timeout_seconds,
        wait_seconds=settings.provider_lock_wait_seconds,
    )
