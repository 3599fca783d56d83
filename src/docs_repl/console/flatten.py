"""Flatten one logged value into renderable rows.

// [LAW:one-source-of-truth] A row's key is its path from the root; nothing else
//   identifies it, so toggling one row never renames a sibling.

Rows are recomputed on every render from (value, ExpandState); they are
never cached.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

RowKey = tuple
ROOT_KEY: RowKey = ()
LENGTH_PROPERTY = "length"


@dataclass(frozen=True)
class Row:
    key: RowKey
    level: int
    value: object
    name: object = None
    derived: bool = False


def is_array(value: object) -> bool:
    return isinstance(value, (list, tuple))


def is_object(value: object) -> bool:
    return isinstance(value, Mapping)


def is_branch(value: object) -> bool:
    return is_array(value) or is_object(value)


@dataclass(frozen=True)
class ExpandState:
    """Row keys the user has collapsed. Absence means expanded."""

    collapsed: frozenset = frozenset()

    @classmethod
    def initial(cls) -> "ExpandState":
        return cls(frozenset({ROOT_KEY}))

    def is_collapsed(self, key: RowKey) -> bool:
        return key in self.collapsed

    def toggle(self, key: RowKey) -> "ExpandState":
        if key in self.collapsed:
            return ExpandState(self.collapsed - {key})
        return ExpandState(self.collapsed | {key})


def _children(value: object) -> list[tuple[object, object]]:
    if is_object(value):
        return list(value.items())
    return list(enumerate(value))


def flatten_message(value: object, state: ExpandState) -> list[Row]:
    rows: list[Row] = []
    _flatten(value, state, ROOT_KEY, 0, None, rows)
    return rows


def _flatten(value, state, key, level, name, out) -> None:
    out.append(Row(key=key, level=level, value=value, name=name))
    if not is_branch(value) or state.is_collapsed(key):
        return
    for child_name, child in _children(value):
        _flatten(child, state, key + (child_name,), level + 1, child_name, out)
    if is_array(value):
        out.append(
            Row(
                key=key + (LENGTH_PROPERTY,),
                level=level + 1,
                value=len(value),
                name=LENGTH_PROPERTY,
                derived=True,
            )
        )
