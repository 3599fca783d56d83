"""Tests for the keyed memo cache over Futures."""

from concurrent.futures import Future

import pytest

from docs_repl.core.memo_cache import CacheState, MemoCache


def _pending() -> Future:
    future = Future()
    future.set_running_or_notify_cancel()
    return future


class TestSynchronousValues:
    def test_plain_value_is_cached_and_returned(self):
        cache = MemoCache()
        read = cache.get("k", lambda: 42)
        assert read.state is CacheState.RESOLVED
        assert read.value == 42
        assert read.pending is None

    def test_second_get_does_not_recompute(self):
        cache = MemoCache()
        calls = []

        def compute():
            calls.append(1)
            return "v"

        cache.get("k", compute)
        read = cache.get("k", compute)
        assert read.value == "v"
        assert len(calls) == 1

    def test_synchronous_exception_is_cached_as_failure(self):
        cache = MemoCache()
        calls = []

        def compute():
            calls.append(1)
            raise RuntimeError("boom")

        first = cache.get("k", compute)
        second = cache.get("k", compute)
        assert first.is_failed
        assert isinstance(second.error, RuntimeError)
        assert len(calls) == 1


class TestPendingComputations:
    def test_pending_returns_same_handle_to_every_reader(self):
        cache = MemoCache()
        handle = _pending()
        calls = []

        def compute():
            calls.append(1)
            return handle

        first = cache.get("k", compute)
        second = cache.get("k", compute)
        assert first.is_pending
        assert first.pending is handle
        assert second.pending is handle
        assert len(calls) == 1

    def test_resolution_becomes_immutable_cached_value(self):
        cache = MemoCache()
        handle = _pending()
        cache.get("k", lambda: handle)
        handle.set_result("<b>x</b>")

        read = cache.get("k", lambda: pytest.fail("must not recompute"))
        assert read.is_resolved
        assert read.value == "<b>x</b>"
        assert read.pending is None

    def test_failure_becomes_cached_error(self):
        cache = MemoCache()
        handle = _pending()
        cache.get("k", lambda: handle)
        handle.set_exception(ValueError("engine down"))

        read = cache.get("k", lambda: pytest.fail("must not recompute"))
        assert read.is_failed
        assert str(read.error) == "engine down"

    def test_already_done_future_settles_immediately(self):
        cache = MemoCache()
        done = Future()
        done.set_result(7)
        read = cache.get("k", lambda: done)
        assert read.is_resolved
        assert read.value == 7

    def test_all_observers_notified_once(self):
        cache = MemoCache()
        handle = _pending()
        cache.get("k", lambda: handle)
        seen_a, seen_b = [], []
        cache.observe("k", seen_a.append)
        cache.observe("k", seen_b.append)

        handle.set_result("done")

        assert [r.value for r in seen_a] == ["done"]
        assert [r.value for r in seen_b] == ["done"]

    def test_unsubscribed_observer_is_not_called(self):
        cache = MemoCache()
        handle = _pending()
        cache.get("k", lambda: handle)
        seen = []
        unsubscribe = cache.observe("k", seen.append)
        unsubscribe()
        handle.set_result("done")
        assert seen == []

    def test_observe_settled_key_never_calls_back(self):
        cache = MemoCache()
        cache.get("k", lambda: 1)
        seen = []
        cache.observe("k", seen.append)
        assert seen == []

    def test_notifications_go_through_scheduler(self):
        scheduled = []

        def scheduler(fn, *args):
            scheduled.append((fn, args))

        cache = MemoCache(scheduler=scheduler)
        handle = _pending()
        cache.get("k", lambda: handle)
        seen = []
        cache.observe("k", seen.append)
        handle.set_result("v")

        assert seen == []
        assert len(scheduled) == 1
        fn, args = scheduled[0]
        fn(*args)
        assert seen[0].value == "v"

    def test_shared_handle_settles_every_key(self):
        cache = MemoCache()
        handle = _pending()
        subscribed = []
        original = handle.add_done_callback

        def counting_add_done_callback(fn):
            subscribed.append(fn)
            original(fn)

        handle.add_done_callback = counting_add_done_callback
        cache.get("a", lambda: handle)
        cache.get("b", lambda: handle)
        handle.set_result("shared")

        assert len(subscribed) == 1
        assert cache.peek("a").value == "shared"
        assert cache.peek("b").value == "shared"


class TestEviction:
    def test_least_recently_read_settled_entry_is_evicted(self):
        cache = MemoCache(max_entries=2)
        cache.get("a", lambda: 1)
        cache.get("b", lambda: 2)
        cache.get("a", lambda: 1)  # a is now most recent
        cache.get("c", lambda: 3)

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert cache.stats().evictions == 1

    def test_pending_entries_are_never_evicted(self):
        cache = MemoCache(max_entries=1)
        handle = _pending()
        cache.get("slow", lambda: handle)
        cache.get("x", lambda: 1)
        cache.get("y", lambda: 2)

        assert "slow" in cache
        again = cache.get("slow", lambda: pytest.fail("must not recompute in flight"))
        assert again.pending is handle

    def test_unbounded_by_default(self):
        cache = MemoCache()
        for i in range(100):
            cache.get(i, lambda i=i: i)
        assert len(cache) == 100

    def test_clear_keeps_in_flight_entries(self):
        cache = MemoCache()
        handle = _pending()
        cache.get("slow", lambda: handle)
        cache.get("done", lambda: 1)
        cache.clear()
        assert "slow" in cache
        assert "done" not in cache


def test_stats_count_hits_and_misses():
    cache = MemoCache()
    cache.get("a", lambda: 1)
    cache.get("a", lambda: 1)
    cache.get("b", lambda: 2)
    stats = cache.stats()
    assert stats.hits == 1
    assert stats.misses == 2
    assert stats.size == 2
    assert stats.pending == 0
