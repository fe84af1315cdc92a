"""In-memory cache store with TTL and tag invalidation.

Cache structure:
    key -> CacheSlot(value, expires_at, tags)
    tag -> {keys}

The store is an explicit object created by the application factory and
cleared on shutdown, so tests can substitute their own instance or clock.
Replacing a slot is a single dict assignment; there is no locking and no
coalescing of concurrent cold-cache fetches for the same key.
"""

import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


class CacheStore(Protocol):
    """Cache operations the docs and store layers depend on."""

    def get(self, key: str) -> Any | None: ...

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> None: ...

    def invalidate(self, tag: str) -> int: ...

    def clear(self) -> None: ...


@dataclass
class CacheSlot:
    """Stored value with its expiry and tags."""

    value: Any
    expires_at: float | None
    tags: frozenset[str]


class MemoryCacheStore:
    """Process-wide cache for remote listings and file contents.

    Entries expire after their TTL and can be dropped early by tag.
    """

    def __init__(self, *, clock: Clock = time.monotonic) -> None:
        """Initialize an empty cache.

        Args:
            clock: Monotonic time source, injectable for tests
        """
        self._clock = clock
        self._slots: dict[str, CacheSlot] = {}
        self._tags: dict[str, set[str]] = {}

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value if present and fresh.

        Args:
            key: Cache key

        Returns:
            Cached value, or None on miss or expiry
        """
        slot = self._slots.get(key)
        if slot is None:
            return None
        if slot.expires_at is not None and self._clock() >= slot.expires_at:
            self._drop(key)
            return None
        return slot.value

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value, replacing any previous slot for the key.

        Args:
            key: Cache key
            value: Value to store
            ttl: Lifetime in seconds, None for no expiry
            tags: Tags the entry can be invalidated by
        """
        self._drop(key)
        expires_at = self._clock() + ttl if ttl is not None else None
        slot = CacheSlot(value=value, expires_at=expires_at, tags=frozenset(tags))
        self._slots[key] = slot
        for tag in slot.tags:
            self._tags.setdefault(tag, set()).add(key)

    def invalidate(self, tag: str) -> int:
        """Remove all entries carrying a tag.

        Args:
            tag: Tag to invalidate

        Returns:
            Number of entries removed
        """
        keys = self._tags.pop(tag, set())
        for key in keys:
            self._drop(key)
        return len(keys)

    def delete(self, key: str) -> None:
        """Remove a single entry."""
        self._drop(key)

    def clear(self) -> None:
        """Remove all entries."""
        self._slots.clear()
        self._tags.clear()

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def _drop(self, key: str) -> None:
        slot = self._slots.pop(key, None)
        if slot is None:
            return
        for tag in slot.tags:
            keys = self._tags.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tags[tag]


async def cached(
    cache: CacheStore,
    key: str,
    loader: Callable[[], Awaitable[T]],
    *,
    ttl: float | None = None,
    tags: Iterable[str] = (),
) -> T:
    """Return the cached value for a key, loading and storing it on a miss.

    Loader exceptions propagate and leave the cache untouched.
    """
    hit = cache.get(key)
    if hit is not None:
        return hit
    value = await loader()
    cache.set(key, value, ttl=ttl, tags=tags)
    return value
