"""Console log aggregation with run-length encoding of repeated output.

// [LAW:one-source-of-truth] ConsoleAggregator owns the entry list and the run tracker.
// [LAW:dataflow-not-control-flow] Entries are immutable; a repeat replaces the
//   last entry with a counted copy, so listeners detect change by identity.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from docs_repl.console.event_hub import EventHub
from docs_repl.event_types import (
    CLEAR_EVENT,
    UNDEFINED,
    ConsoleLevel,
    is_primitive,
    same_primitive,
)

logger = logging.getLogger(__name__)

ChangeListener = Callable[[tuple["LogEntry", ...]], None]


@dataclass(frozen=True)
class LogEntry:
    """One console message; count N means it was seen N+1 times in a row."""

    id: int
    level: ConsoleLevel
    values: tuple
    count: int = 0

    @property
    def value(self) -> object:
        """First logged argument, the one the console renders."""
        return self.values[0]


@dataclass(frozen=True)
class _Run:
    level: ConsoleLevel
    value: object


class ConsoleAggregator:
    def __init__(self) -> None:
        self._entries: tuple[LogEntry, ...] = ()
        self._run: _Run | None = None
        self._next_id = 0
        self._listeners: list[ChangeListener] = []

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return self._entries

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def attach(self, hub: EventHub) -> Callable[[], None]:
        """Subscribe to every console event on hub; returns a detach function."""
        unsubscribers = [
            hub.subscribe(level.value, self._level_listener(level))
            for level in ConsoleLevel
        ]
        unsubscribers.append(hub.subscribe(CLEAR_EVENT, lambda _payload: self.clear()))

        def detach() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return detach

    def handle(self, level: ConsoleLevel | str, args: Sequence[object] | None) -> None:
        level = ConsoleLevel(level)
        args = tuple(args or ())
        # An empty call logs undefined but never joins a run.
        values = args or (UNDEFINED,)

        if len(args) == 1 and is_primitive(args[0]):
            run = self._run
            if (
                run is not None
                and self._entries
                and run.level is level
                and same_primitive(run.value, values[0])
            ):
                last = self._entries[-1]
                self._entries = self._entries[:-1] + (replace(last, count=last.count + 1),)
                self._notify()
                return
            self._run = _Run(level=level, value=values[0])
        else:
            # Structured or multi-argument output always breaks a run.
            self._run = None

        self._entries = self._entries + (LogEntry(id=self._next_id, level=level, values=values),)
        self._next_id += 1
        self._notify()

    def clear(self) -> None:
        self._entries = ()
        self._run = None
        logger.debug("console cleared")
        self._notify()

    def _level_listener(self, level: ConsoleLevel) -> Callable[[object], None]:
        def listener(payload: object) -> None:
            if payload is None:
                self.handle(level, ())
            elif isinstance(payload, (list, tuple)):
                self.handle(level, payload)
            else:
                self.handle(level, (payload,))

        return listener

    def _notify(self) -> None:
        snapshot = self._entries
        for listener in list(self._listeners):
            listener(snapshot)
