"""Shared fixtures for docs-repl tests."""

from concurrent.futures import Future, ThreadPoolExecutor

import pytest

from docs_repl.core.memo_cache import MemoCache
from docs_repl.highlight.channel import ExecutorChannel
from docs_repl.highlight.service import HighlightService


class ManualChannel:
    """RequestChannel whose Futures are settled by the test."""

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self.futures: list[Future] = []
        self.closed = False

    def call(self, method, *args):
        future = Future()
        future.set_running_or_notify_cancel()
        self.calls.append((method, args))
        self.futures.append(future)
        return future

    def close(self):
        self.closed = True


@pytest.fixture
def manual_channel():
    return ManualChannel()


@pytest.fixture
def manual_service(manual_channel):
    return HighlightService(manual_channel, MemoCache())


@pytest.fixture
def thread_channel():
    """Real engine behind a single worker thread."""
    channel = ExecutorChannel(ThreadPoolExecutor(max_workers=1))
    yield channel
    channel.close()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point settings at a scratch XDG_CONFIG_HOME for every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("DOCS_REPL_CACHE_MAX_ENTRIES", raising=False)
    return tmp_path / "config"
