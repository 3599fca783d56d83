"""Keyed memo cache over asynchronous computations.

// [LAW:one-source-of-truth] CacheEntry state is the only record of a key's outcome.
// [LAW:single-enforcer] Completion callbacks are registered only in _track().

Readers never block: get() returns a CacheRead that carries either the
value, the error, or the pending Future. The first reader of a key starts
the computation; everyone else shares its outcome.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable, Hashable
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

Scheduler = Callable[..., object]
Observer = Callable[["CacheRead"], None]


class CacheState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class CacheRead:
    """Tri-state read result.

    // [LAW:dataflow-not-control-flow] Always returned; state says which field is live.
    """

    state: CacheState
    value: object = None
    error: BaseException | None = None
    pending: Future | None = None

    @property
    def is_pending(self) -> bool:
        return self.state is CacheState.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.state is CacheState.RESOLVED

    @property
    def is_failed(self) -> bool:
        return self.state is CacheState.FAILED


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    evictions: int
    size: int
    pending: int


class _CacheEntry:
    __slots__ = ("key", "state", "value", "error", "handle", "observers")

    def __init__(self, key: Hashable) -> None:
        self.key = key
        self.state = CacheState.PENDING
        self.value: object = None
        self.error: BaseException | None = None
        self.handle: Future | None = None
        self.observers: list[Observer] = []

    def read(self) -> CacheRead:
        return CacheRead(
            state=self.state,
            value=self.value,
            error=self.error,
            pending=self.handle if self.state is CacheState.PENDING else None,
        )


def _call_inline(fn, *args) -> None:
    fn(*args)


class MemoCache:
    """At-most-one computation per key, shared by every reader.

    max_entries bounds the number of settled entries (least recently read
    goes first). Pending entries are never evicted. None means unbounded.

    scheduler(fn, *args) decides where observer callbacks run. The default
    calls them inline on whichever thread settled the Future; a UI passes
    its own thread marshal (e.g. App.call_from_thread).
    """

    def __init__(self, max_entries: int | None = None, scheduler: Scheduler | None = None) -> None:
        self._max_entries = None if max_entries is None else max(1, int(max_entries))
        self._scheduler = scheduler or _call_inline
        self._entries: OrderedDict[Hashable, _CacheEntry] = OrderedDict()
        self._waiting: dict[Future, list[_CacheEntry]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def max_entries(self) -> int | None:
        return self._max_entries

    def get(self, key: Hashable, compute: Callable[[], object]) -> CacheRead:
        """Return the outcome for key, starting compute() only on first sight."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._hits += 1
                self._entries.move_to_end(key)
                return entry.read()

            self._misses += 1
            entry = _CacheEntry(key)
            self._entries[key] = entry
            try:
                result = compute()
            except Exception as exc:
                logger.debug("compute for %r raised synchronously: %s", key, exc)
                entry.state = CacheState.FAILED
                entry.error = exc
                self._evict_overflow()
                return entry.read()

            if isinstance(result, Future):
                entry.handle = result
                self._track(result, entry)
                # A Future that was already done settles inside _track.
                return entry.read()

            entry.state = CacheState.RESOLVED
            entry.value = result
            self._evict_overflow()
            return entry.read()

    def peek(self, key: Hashable) -> CacheRead | None:
        """Read without computing. None when the key is unknown."""
        with self._lock:
            entry = self._entries.get(key)
            return entry.read() if entry is not None else None

    def observe(self, key: Hashable, callback: Observer) -> Callable[[], None]:
        """Call callback once when a pending key settles.

        Settled or unknown keys never call back; the returned function
        detaches the observer.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.state is not CacheState.PENDING:
                return lambda: None
            entry.observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in entry.observers:
                    entry.observers.remove(callback)

        return unsubscribe

    def stats(self) -> CacheStats:
        with self._lock:
            pending = sum(1 for e in self._entries.values() if e.state is CacheState.PENDING)
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                size=len(self._entries),
                pending=pending,
            )

    def clear(self) -> None:
        """Drop settled entries. In-flight computations keep their entries."""
        with self._lock:
            for key in [k for k, e in self._entries.items() if e.state is not CacheState.PENDING]:
                del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def _track(self, handle: Future, entry: _CacheEntry) -> None:
        # One done-callback per handle, however many keys share it.
        waiting = self._waiting.get(handle)
        if waiting is not None:
            waiting.append(entry)
            return
        self._waiting[handle] = [entry]
        handle.add_done_callback(self._settle)

    def _settle(self, handle: Future) -> None:
        notifications: list[tuple[Observer, CacheRead]] = []
        with self._lock:
            entries = self._waiting.pop(handle, [])
            error = handle.exception() if not handle.cancelled() else CancelledError()
            for entry in entries:
                if error is not None:
                    entry.state = CacheState.FAILED
                    entry.error = error
                else:
                    entry.state = CacheState.RESOLVED
                    entry.value = handle.result()
                entry.handle = handle
                read = entry.read()
                notifications.extend((observer, read) for observer in entry.observers)
                entry.observers = []
                if error is not None:
                    logger.debug("computation for %r failed: %s", entry.key, error)
            self._evict_overflow()

        for observer, read in notifications:
            self._scheduler(observer, read)

    def _evict_overflow(self) -> None:
        if self._max_entries is None:
            return
        overflow = len(self._entries) - self._max_entries
        if overflow <= 0:
            return
        # Oldest-first over settled entries only.
        for key in list(self._entries):
            if overflow <= 0:
                break
            if self._entries[key].state is CacheState.PENDING:
                continue
            del self._entries[key]
            self._evictions += 1
            overflow -= 1
