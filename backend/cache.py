"""
Cache collaborator.

The checker only sees the Cache protocol: get(key) -> value or None and
set(key, value, ttl_seconds). Reads are best effort (any failure is a miss)
and writes are scheduled in the background, never awaited by a request.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol, Set

from motor.motor_asyncio import AsyncIOMotorCollection

logger = logging.getLogger(__name__)

_pending_writes: Set[asyncio.Task] = set()


class Cache(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...


class MongoCache:
    """Key/TTL store on a MongoDB collection; expiry is enforced on read and by a TTL index"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
        self._index_ready = False

    async def ensure_index(self):
        if not self._index_ready:
            await self.collection.create_index("expires_at", expireAfterSeconds=0)
            self._index_ready = True

    async def get(self, key: str) -> Optional[Any]:
        doc = await self.collection.find_one({"_id": key}, {"_id": 0})
        if not doc:
            return None
        expires_at = doc.get("expires_at")
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= datetime.now(timezone.utc):
                return None
        return doc.get("value")

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self.ensure_index()
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        await self.collection.update_one(
            {"_id": key},
            {"$set": {"value": value, "expires_at": expires_at}},
            upsert=True,
        )


async def cache_get(cache: Optional[Cache], key: str, timeout: Optional[float] = None) -> Optional[Any]:
    if cache is None:
        return None
    try:
        return await asyncio.wait_for(cache.get(key), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Cache read timed out after {timeout}s for {key}")
        return None
    except Exception as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None


def _log_write_failure(task: asyncio.Task):
    _pending_writes.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(f"Cache write failed: {error}")


def schedule_cache_write(cache: Optional[Cache], key: str, value: Any, ttl_seconds: int) -> Optional[asyncio.Task]:
    """Fire-and-forget write; the returned task is only useful to tests"""
    if cache is None:
        return None
    task = asyncio.get_running_loop().create_task(cache.set(key, value, ttl_seconds))
    _pending_writes.add(task)
    task.add_done_callback(_log_write_failure)
    return task
