"""In-memory store for pending pipe fragments.

Each user maps to one compound entry holding the accumulated text, the number
of fragments accepted so far, and the moment the entry expires. Keeping text
and counter in the same entry means every way an entry can disappear takes the
counter with it:

    explicit  — invalidate(), e.g. on flush or disconnect
    expired   — the TTL elapsed since the last put()
    size      — the oldest entry was evicted because max_size was exceeded

Expiry is checked lazily on read and eagerly by purge_expired(), which the
host runs periodically. All public methods are atomic under one lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Literal

from chat_pipe.models import DEFAULT_TTL_SECONDS

logger = logging.getLogger(__name__)

RemovalCause = Literal["explicit", "expired", "size"]


@dataclass
class _Entry:
    text: str | None  # None only between increment_counter() and the first put()
    count: int
    expires_at: float


class FragmentStore:
    """Per-user pending text with a paired fragment counter.

    Args:
        ttl:      Seconds an entry lives after its last write.
        max_size: Optional cap on the number of entries; oldest writes are
                  evicted first.
        clock:    Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[Hashable, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    # ------------------------------------------------------------------
    # Internal helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _remove(self, user: Hashable, cause: RemovalCause) -> bool:
        entry = self._entries.pop(user, None)
        if entry is None:
            return False
        logger.debug("pending entry removed user=%s cause=%s fragments=%d",
                     user, cause, entry.count)
        return True

    def _live(self, user: Hashable) -> _Entry | None:
        entry = self._entries.get(user)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._remove(user, "expired")
            return None
        return entry

    def _evict_oversize(self) -> None:
        if self._max_size is None:
            return
        while len(self._entries) > self._max_size:
            oldest = next(iter(self._entries))
            self._remove(oldest, "size")

    def _write(self, user: Hashable, text: str | None, count: int) -> None:
        self._entries[user] = _Entry(text, count, self._clock() + self._ttl)
        self._entries.move_to_end(user)
        self._evict_oversize()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, user: Hashable) -> str | None:
        """Return the pending text for `user`, or None."""
        with self._lock:
            entry = self._live(user)
            return entry.text if entry else None

    def put(self, user: Hashable, text: str) -> None:
        """Replace the pending text and restart its TTL. The counter is kept."""
        if not text:
            raise ValueError("pending text cannot be empty")
        with self._lock:
            entry = self._live(user)
            self._write(user, text, entry.count if entry else 0)

    def invalidate(self, user: Hashable) -> None:
        """Drop the pending text and counter for `user`. No-op if absent."""
        with self._lock:
            self._remove(user, "explicit")

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [u for u, e in self._entries.items() if e.expires_at <= now]
            for user in expired:
                self._remove(user, "expired")
        if expired:
            logger.info("purged %d expired pending entries", len(expired))
        return len(expired)

    def increment_counter(self, user: Hashable) -> int:
        """Bump the fragment counter for `user` (starting at 1) and return it."""
        with self._lock:
            entry = self._live(user)
            if entry is None:
                self._write(user, None, 1)
                return 1
            entry.count += 1
            return entry.count

    def counter(self, user: Hashable) -> int | None:
        """Fragment count for `user`, or None when no text is pending."""
        with self._lock:
            entry = self._live(user)
            return entry.count if entry and entry.text is not None else None

    def snapshot(self) -> dict[Hashable, tuple[str, int]]:
        """Live entries as {user: (text, count)}."""
        with self._lock:
            now = self._clock()
            return {
                user: (e.text, e.count)
                for user, e in self._entries.items()
                if e.text is not None and e.expires_at > now
            }

    def absorb(self, other: FragmentStore) -> None:
        """Copy all live entries of `other` into this store with a fresh TTL."""
        for user, (text, count) in other.snapshot().items():
            with self._lock:
                self._write(user, text, count)

    def __contains__(self, user: object) -> bool:
        return self.get(user) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self.snapshot())
