"""
Ephemeral Store

TTL-governed key/value storage for one-time codes, attempt counters,
cooldown markers and refresh token mappings. Keys and values are opaque
strings; the store knows nothing about OTPs or tokens.

Two implementations share the ``EphemeralStore`` protocol:
- ``RedisStore`` for deployments (multiple service instances share it)
- ``MemoryStore`` for tests and local development
"""

import contextlib
import math
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Iterator, Optional, Protocol, Union

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from authcore.core.config import settings
from authcore.services.errors import StoreUnavailableError


TTL = Union[timedelta, int, float]

# Delete KEYS[1] only while it still holds ARGV[1]
_DELETE_IF_EQUALS_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""


def ttl_seconds(ttl: TTL) -> int:
    """Convert a TTL to whole seconds, clamped to at least one second."""
    if isinstance(ttl, timedelta):
        ttl = ttl.total_seconds()
    return max(1, math.ceil(ttl))


class EphemeralStore(Protocol):
    async def put_with_expiry(self, key: str, value: str, ttl: TTL) -> None: ...

    async def put_and_clear(self, key: str, value: str, ttl: TTL, *clear_keys: str) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def get_and_delete(self, key: str) -> Optional[str]: ...

    async def delete_if_equals(self, key: str, expected: str) -> bool: ...

    async def delete(self, *keys: str) -> None: ...

    async def increment_with_expiry(self, key: str, ttl: TTL) -> int: ...

    async def exists(self, key: str) -> bool: ...

    async def ping(self) -> bool: ...


# ============== Redis ==============

class RedisStore:
    """
    Redis-backed store.

    Composite writes go through MULTI/EXEC pipelines so each one is a
    single round trip. Requires Redis 7.0+ (EXPIRE NX, GETDEL).
    """

    def __init__(self, client: aioredis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str, *, socket_timeout: float = 5.0) -> "RedisStore":
        client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    @staticmethod
    @contextlib.contextmanager
    def _translate_errors() -> Iterator[None]:
        try:
            yield
        except RedisError as exc:
            raise StoreUnavailableError(f"redis error: {type(exc).__name__}") from exc

    async def put_with_expiry(self, key: str, value: str, ttl: TTL) -> None:
        with self._translate_errors():
            await self.client.set(key, value, ex=ttl_seconds(ttl))

    async def put_and_clear(self, key: str, value: str, ttl: TTL, *clear_keys: str) -> None:
        with self._translate_errors():
            pipe = self.client.pipeline(transaction=True)
            pipe.set(key, value, ex=ttl_seconds(ttl))
            if clear_keys:
                pipe.delete(*clear_keys)
            await pipe.execute()

    async def get(self, key: str) -> Optional[str]:
        with self._translate_errors():
            return await self.client.get(key)

    async def get_and_delete(self, key: str) -> Optional[str]:
        with self._translate_errors():
            return await self.client.getdel(key)

    async def delete_if_equals(self, key: str, expected: str) -> bool:
        with self._translate_errors():
            removed = await self.client.eval(_DELETE_IF_EQUALS_SCRIPT, 1, key, expected)
        return bool(removed)

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        with self._translate_errors():
            await self.client.delete(*keys)

    async def increment_with_expiry(self, key: str, ttl: TTL) -> int:
        with self._translate_errors():
            pipe = self.client.pipeline(transaction=True)
            pipe.incr(key)
            # NX: only the first increment of a counter starts its clock
            pipe.expire(key, ttl_seconds(ttl), nx=True)
            count, _ = await pipe.execute()
        return int(count)

    async def exists(self, key: str) -> bool:
        with self._translate_errors():
            return bool(await self.client.exists(key))

    async def ping(self) -> bool:
        with self._translate_errors():
            return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.aclose()


# ============== In-memory ==============

@dataclass
class StoreEntry:
    """A single value with an optional absolute expiry."""
    value: str
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class MemoryStore:
    """
    In-process store with TTL support.

    No operation awaits while touching ``_entries``, so every call is atomic
    with respect to other coroutines on the same event loop. Expired entries
    are dropped lazily on access.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._entries: Dict[str, StoreEntry] = {}
        self._clock = clock

    def _live(self, key: str) -> Optional[StoreEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def _set(self, key: str, value: str, ttl: TTL) -> None:
        self._entries[key] = StoreEntry(value=value, expires_at=self._clock() + ttl_seconds(ttl))

    async def put_with_expiry(self, key: str, value: str, ttl: TTL) -> None:
        self._set(key, value, ttl)

    async def put_and_clear(self, key: str, value: str, ttl: TTL, *clear_keys: str) -> None:
        self._set(key, value, ttl)
        for clear_key in clear_keys:
            self._entries.pop(clear_key, None)

    async def get(self, key: str) -> Optional[str]:
        entry = self._live(key)
        return entry.value if entry else None

    async def get_and_delete(self, key: str) -> Optional[str]:
        entry = self._live(key)
        if entry is None:
            return None
        del self._entries[key]
        return entry.value

    async def delete_if_equals(self, key: str, expected: str) -> bool:
        entry = self._live(key)
        if entry is None or entry.value != expected:
            return False
        del self._entries[key]
        return True

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    async def increment_with_expiry(self, key: str, ttl: TTL) -> int:
        entry = self._live(key)
        if entry is None:
            entry = StoreEntry(value="0")
            self._entries[key] = entry
        try:
            count = int(entry.value) + 1
        except ValueError as exc:
            raise StoreUnavailableError("value is not an integer") from exc
        entry.value = str(count)
        if entry.expires_at is None:
            entry.expires_at = self._clock() + ttl_seconds(ttl)
        return count

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def ping(self) -> bool:
        return True

    def ttl(self, key: str) -> Optional[float]:
        """Seconds until ``key`` expires, or None if it is missing or has no TTL."""
        entry = self._live(key)
        if entry is None or entry.expires_at is None:
            return None
        return entry.expires_at - self._clock()

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))


# ============== Global Store Instance ==============

_store: Optional[RedisStore] = None


def get_store() -> RedisStore:
    """
    Get or create the shared Redis store.

    Lazy initialization to avoid connecting at import time.
    """
    global _store
    if _store is None:
        _store = RedisStore.from_url(
            settings.REDIS_URL,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    return _store


async def close_store() -> None:
    """Close the shared Redis connection pool."""
    global _store
    if _store is not None:
        await _store.close()
        _store = None
