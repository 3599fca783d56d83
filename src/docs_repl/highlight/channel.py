"""Typed request/response channel to the background engine.

This module is a STABLE BOUNDARY. Holds live executor references.
Import as: import docs_repl.highlight.channel

// [LAW:locality-or-seam] Callers see call(method, *args) -> Future and nothing
//   about the transport; the executor is swappable (process, thread, test fake).
// [LAW:single-enforcer] EngineResponse -> Future outcome translation happens only in _relay.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Protocol

from docs_repl.highlight.engine import EngineRequest, EngineResponse, handle_request

logger = logging.getLogger(__name__)

TRANSPORTS = ("process", "thread")


class EngineError(Exception):
    """The engine rejected a request."""

    def __init__(self, method: str, message: str, error_type: str = "") -> None:
        super().__init__(f"{method}: {message}")
        self.method = method
        self.message = message
        self.error_type = error_type


class RequestChannel(Protocol):
    def call(self, method: str, *args: object) -> Future: ...

    def close(self) -> None: ...


class ExecutorChannel:
    """RequestChannel over any concurrent.futures.Executor.

    No cancellation: once submitted, a request runs to completion.
    """

    def __init__(
        self,
        executor: Executor,
        handler: Callable[[EngineRequest], EngineResponse] = handle_request,
    ) -> None:
        self._executor = executor
        self._handler = handler
        self._sent = 0

    @property
    def sent(self) -> int:
        """Number of requests dispatched so far."""
        return self._sent

    def call(self, method: str, *args: object) -> Future:
        request = EngineRequest(method=method, args=tuple(args))
        outer: Future = Future()
        outer.set_running_or_notify_cancel()
        self._sent += 1
        logger.debug("engine request #%d: %s", self._sent, method)
        inner = self._executor.submit(self._handler, request)
        inner.add_done_callback(lambda done: _relay(request, done, outer))
        return outer

    def close(self) -> None:
        self._executor.shutdown(wait=True)


def _relay(request: EngineRequest, done: Future, outer: Future) -> None:
    if done.cancelled():
        outer.set_exception(EngineError(request.method, "request cancelled", "CancelledError"))
        return
    transport_error = done.exception()
    if transport_error is not None:
        # Worker crashed or the response could not be unpickled.
        logger.warning("engine transport failure for %s: %s", request.method, transport_error)
        outer.set_exception(
            EngineError(request.method, str(transport_error), type(transport_error).__name__)
        )
        return
    response: EngineResponse = done.result()
    if response.ok:
        outer.set_result(response.result)
    else:
        outer.set_exception(EngineError(request.method, response.error or "", response.error_type))


def make_channel(transport: str = "process", workers: int = 1) -> ExecutorChannel:
    """Build the default engine channel.

    "process" isolates the engine in worker processes (no shared memory);
    "thread" keeps it in-process, for environments that cannot fork.
    """
    workers = max(1, int(workers))
    if transport == "process":
        executor: Executor = ProcessPoolExecutor(max_workers=workers)
    elif transport == "thread":
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="highlight")
    else:
        raise ValueError(f"unknown transport {transport!r}; expected one of {TRANSPORTS}")
    logger.info("highlight engine channel: transport=%s workers=%d", transport, workers)
    return ExecutorChannel(executor)
