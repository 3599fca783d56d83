"""Highlight service: memoized front for the background engine.

// [LAW:one-source-of-truth] make_cache_key is the only key constructor.
// [LAW:locality-or-seam] The cache is injected; nothing here is process-global.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future

from docs_repl.core.memo_cache import CacheRead, MemoCache
from docs_repl.highlight.channel import RequestChannel

logger = logging.getLogger(__name__)


def _netstring(part: str) -> bytes:
    raw = part.encode("utf-8")
    return str(len(raw)).encode("ascii") + b":" + raw + b","


def make_cache_key(lang: str, code: str) -> bytes:
    """Length-delimited (lang, code) key.

    Every part carries its own byte length, so no choice of characters in
    either part can make two different pairs encode the same way.
    """
    return _netstring(lang) + _netstring(code)


class HighlightService:
    """highlight(code, lang) through one MemoCache and one engine channel."""

    def __init__(self, channel: RequestChannel, cache: MemoCache | None = None) -> None:
        self._channel = channel
        self._cache = cache if cache is not None else MemoCache()

    @property
    def cache(self) -> MemoCache:
        return self._cache

    def lookup(self, code: str, lang: str) -> CacheRead:
        """Tri-state read; dispatches to the engine on first sight, never blocks."""
        key = make_cache_key(lang, code)
        read = self._cache.get(key, lambda: self._dispatch(code, lang))
        if read.is_failed:
            logger.debug("highlight %s (%d chars) failed: %s", lang, len(code), read.error)
        return read

    def highlight(self, code: str, lang: str) -> Future:
        """Return a Future of the markup; already settled when cached."""
        read = self.lookup(code, lang)
        if read.pending is not None:
            return read.pending
        done: Future = Future()
        if read.is_failed:
            done.set_exception(read.error)
        else:
            done.set_result(read.value)
        return done

    def observe(self, code: str, lang: str, callback: Callable[[CacheRead], None]) -> Callable[[], None]:
        return self._cache.observe(make_cache_key(lang, code), callback)

    def close(self) -> None:
        self._channel.close()

    def _dispatch(self, code: str, lang: str) -> Future:
        future = self._channel.call("highlight", code, lang)
        future.add_done_callback(lambda f: _log_failure(f, lang))
        return future


def _log_failure(future: Future, lang: str) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.warning("highlight engine failed for lang=%r: %s", lang, error)
