"""Console event vocabulary shared by the hub, aggregator and renderers.

// [LAW:one-source-of-truth] Event names and the primitive classification live here.

This module is STABLE. Safe for `from` imports everywhere.
"""

import math
from enum import Enum


class ConsoleLevel(Enum):
    """Console method that produced a log event."""

    LOG = "log"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


CLEAR_EVENT = "console-clear"

# [LAW:one-source-of-truth] Level events in subscription order, then clear.
LEVEL_EVENTS: tuple[str, ...] = tuple(level.value for level in ConsoleLevel)
CONSOLE_EVENTS: tuple[str, ...] = LEVEL_EVENTS + (CLEAR_EVENT,)


class _Undefined:
    """Sentinel for a value the runner reported as `undefined`."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_primitive(value: object) -> bool:
    """True for bool, number, string, None and UNDEFINED."""
    return value is None or value is UNDEFINED or isinstance(value, (bool, int, float, str))


def same_primitive(a: object, b: object) -> bool:
    """Strict equality between two primitives.

    bool never equals a number, numbers compare by value regardless of
    int/float, NaN never equals anything.
    """
    if is_number(a) and is_number(b):
        if isinstance(a, float) and math.isnan(a):
            return False
        return a == b
    if type(a) is not type(b):
        return False
    if a is None or a is UNDEFINED:
        return True
    return a == b
