"""In-process cache of public page payloads, keyed by route path."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable

from atelier.config import DETAIL_REFRESH_SECONDS, VIEW_CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)


class ViewCache:
    """Route path -> payload, with a staleness bound and explicit invalidation.

    Entries expire after ``ttl_seconds`` so edits made from another session
    show up within one refresh interval; writes from this process
    invalidate the affected paths immediately. At most ``max_entries``
    payloads are held: expired ones are purged on insert, then the oldest
    are evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = DETAIL_REFRESH_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = VIEW_CACHE_MAX_ENTRIES,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        # Insertion order doubles as age order; ``set`` re-inserts.
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        self._entries.pop(key, None)
        self._purge_expired(now)
        while len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = (now, value)

    def get_or_build(self, key: str, builder: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is None:
            value = builder()
            self.set(key, value)
        return value

    def invalidate(self, paths: Iterable[str]) -> None:
        """Drop every entry whose key is one of *paths* or a query variant of it."""
        paths = list(paths)
        self._drop(lambda key: any(key == p or key.startswith(f"{p}?") for p in paths), paths)

    def invalidate_prefix(self, prefix: str) -> None:
        """Drop every entry whose key starts with *prefix*."""
        self._drop(lambda key: key.startswith(prefix), prefix)

    def clear(self) -> None:
        self._entries.clear()

    def _drop(self, matches: Callable[[str], bool], label: Any) -> None:
        doomed = [key for key in self._entries if matches(key)]
        for key in doomed:
            del self._entries[key]
        logger.debug("[cache] Invalidated %s (%d entries)", label, len(doomed))

    def _purge_expired(self, now: float) -> None:
        # Entries are in age order, so stop at the first fresh one.
        for key in list(self._entries):
            stored_at, _ = self._entries[key]
            if now - stored_at <= self.ttl_seconds:
                break
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
