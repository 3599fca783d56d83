"""Decode recorded runner output (JSON lines) into console events.

Each line is one event:
    {"type": "log", "args": ["hello", {"a": 1}]}
    {"type": "console-clear"}
`{"$undefined": true}` anywhere in args stands for an undefined value.

// [LAW:single-enforcer] decode_event is the sole validation boundary for recorded events.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from docs_repl.console.event_hub import EventHub
from docs_repl.event_types import CLEAR_EVENT, CONSOLE_EVENTS, UNDEFINED

logger = logging.getLogger(__name__)

_UNDEFINED_MARKER = "$undefined"


class EventDecodeError(ValueError):
    """A recorded event line could not be decoded."""


@dataclass(frozen=True)
class ConsoleEvent:
    name: str
    args: tuple = ()


def _object_hook(obj: dict) -> object:
    if obj.keys() == {_UNDEFINED_MARKER} and obj[_UNDEFINED_MARKER] is True:
        return UNDEFINED
    return obj


def decode_event(line: str) -> ConsoleEvent:
    try:
        raw = json.loads(line, object_hook=_object_hook)
    except json.JSONDecodeError as exc:
        raise EventDecodeError(f"invalid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise EventDecodeError("event must be a JSON object")
    name = raw.get("type")
    if name not in CONSOLE_EVENTS:
        raise EventDecodeError(f"unknown event type: {name!r}")
    if name == CLEAR_EVENT:
        return ConsoleEvent(name=name)
    args = raw.get("args", [])
    if not isinstance(args, list):
        raise EventDecodeError("args must be a list")
    return ConsoleEvent(name=name, args=tuple(args))


def read_events(lines: Iterable[str]) -> Iterator[ConsoleEvent]:
    """Decode lines, skipping blanks and logging malformed ones."""
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield decode_event(line)
        except EventDecodeError as exc:
            logger.warning("skipping event line %d: %s", lineno, exc)


def emit_event(hub: EventHub, event: ConsoleEvent) -> None:
    if event.name == CLEAR_EVENT:
        hub.emit(event.name)
    else:
        hub.emit(event.name, list(event.args))


def pump_events(lines: Iterable[str], hub: EventHub) -> int:
    """Emit every decoded event on hub; returns how many were emitted."""
    emitted = 0
    for event in read_events(lines):
        emit_event(hub, event)
        emitted += 1
    return emitted
