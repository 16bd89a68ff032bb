"""In-process cache with typed keys and per-class expiry."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Union

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 86_400
DEFAULT_MAX_ENTRIES = 10_000


@dataclass(frozen=True)
class PageKey:
    """Browse result cached under the requested folder identifier."""

    folder_id: str
    expires: ClassVar[bool] = True


@dataclass(frozen=True)
class PosterKey:
    movie_id: int
    expires: ClassVar[bool] = True


@dataclass(frozen=True)
class TrailerTypeKey:
    movie_id: int
    expires: ClassVar[bool] = True


@dataclass(frozen=True)
class VideoKey:
    video_id: str
    expires: ClassVar[bool] = True


@dataclass(frozen=True)
class MovieVideosKey:
    movie_id: int
    expires: ClassVar[bool] = True


@dataclass(frozen=True)
class AggregateKey:
    """The flattened trailer listing; kept until the next forced refresh."""

    expires: ClassVar[bool] = False


CacheKey = Union[PageKey, PosterKey, TrailerTypeKey, VideoKey, MovieVideosKey, AggregateKey]


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: float | None


class CacheStore:
    """Key/value store shared by every lookup in the process.

    Keys are compared by value and type, so a ``PosterKey(1)`` never collides
    with a ``TrailerTypeKey(1)``. Expired entries are dropped lazily on read
    and swept whenever a new key would grow the store past ``max_entries``;
    if the sweep frees nothing, the least recently used expiring entry goes.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        *,
        max_entries: int | None = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: OrderedDict[CacheKey, _Entry] = OrderedDict()
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._clock = clock

    def get(self, key: CacheKey) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        """Store ``value``; ``ttl`` defaults to the TTL of the key class."""

        if not key.expires and ttl is None:
            expires_at = None
        else:
            expires_at = self._clock() + (ttl if ttl is not None else self._default_ttl)
        if key not in self._entries:
            self._make_room()
        self._entries[key] = _Entry(value=value, expires_at=expires_at)
        self._entries.move_to_end(key)

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""

        now = self._clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.expires_at is not None and now >= entry.expires_at
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Purged %s expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def _make_room(self) -> None:
        if self._max_entries is None or len(self._entries) < self._max_entries:
            return
        self.purge_expired()
        evictable = (key for key in list(self._entries) if key.expires)
        while len(self._entries) >= self._max_entries:
            oldest = next(evictable, None)
            if oldest is None:
                break
            del self._entries[oldest]
            logger.debug("Evicted %s to stay within %s cache entries", oldest, self._max_entries)
