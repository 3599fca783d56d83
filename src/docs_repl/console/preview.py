"""One-line previews of logged values as styled rich Text.

Full object previews descend exactly one level; everything below that is
summarized and only reachable by expanding rows.
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from rich.text import Text

from docs_repl.event_types import UNDEFINED

STYLE_PRIMITIVE = "bold cyan"
STYLE_STRING = "green"
STYLE_KEY = "dim"
STYLE_BRACE = "bold bright_white"
STYLE_ROOT = "italic"
ELLIPSIS = "…"


def format_number(value: int | float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def format_primitive(value: object) -> str:
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def generate_preview(value: object, level: int = 0, summary: bool = False) -> Text:
    if value is None or value is UNDEFINED:
        return Text(format_primitive(value))
    if isinstance(value, (bool, int, float)):
        return Text(format_primitive(value), style=STYLE_PRIMITIVE)
    if isinstance(value, str):
        if level == 0:
            return Text(value)
        return Text(f"'{value}'", style=STYLE_STRING)
    if isinstance(value, (list, tuple)):
        return Text(f"Array({len(value)})")
    if not isinstance(value, Mapping):
        return Text(repr(value))

    out = Text(style=STYLE_ROOT if level == 0 else "")
    out.append("{", style=STYLE_BRACE)
    if summary:
        if value:
            out.append(ELLIPSIS)
    else:
        for index, (key, child) in enumerate(value.items()):
            if index:
                out.append(", ")
            out.append(str(key), style=STYLE_KEY)
            out.append(": ")
            out.append_text(generate_preview(child, level + 1, True))
    out.append("}", style=STYLE_BRACE)
    return out
