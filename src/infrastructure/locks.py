"""
Pass serialisation for the reconciliation engine.

Two concurrent passes reading the same stale snapshot could apply the same
transition twice or write conflicting vehicle states, so passes are
serialised at two levels:

* :class:`SingleFlight` -- in-process guard.  A pass requested while one is
  running is skipped, not queued; the running pass will already see the
  same dates.
* :class:`DistributedLock` -- Redis lock across API / worker processes.
  Deployments with several schedulers need it; without Redis every pass is
  skipped and logged.

The Redis lock uses SET NX EX for acquire and a Lua script for atomic
check-and-delete on release, so a pass that outlived its TTL cannot delete
a lock another process has since taken.
"""

from __future__ import annotations

import asyncio
import uuid

import redis.asyncio as aioredis


class LockNotAcquired(RuntimeError):
    """Raised by the context managers when the lock is already held."""


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, key: str, ttl_seconds: int = 60
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        lua = """
        if redis.call("get", KEYS[1]) == ARGV[1] then
            return redis.call("del", KEYS[1])
        else
            return 0
        end
        """
        await self.redis.eval(lua, 1, self.key, self.token)

    async def __aenter__(self):
        if not await self.acquire():
            raise LockNotAcquired(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()


class SingleFlight:
    """Non-blocking in-process mutex: ``try_acquire`` never waits."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def try_acquire(self) -> bool:
        if self._lock.locked():
            return False
        await self._lock.acquire()
        return True

    def release(self) -> None:
        self._lock.release()

    async def __aenter__(self):
        if not await self.try_acquire():
            raise LockNotAcquired("A reconciliation pass is already running")
        return self

    async def __aexit__(self, *args):
        self.release()
