"""Console presentation rules: pure rendering, no widget class.

ConsoleView and MessageView call into here; everything they draw comes from
these functions.

// [LAW:locality-or-seam] Filter, icon and collapsibility rules live here only.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from rich.text import Text

from docs_repl.console.aggregator import LogEntry
from docs_repl.console.flatten import Row, is_branch
from docs_repl.console.preview import STYLE_KEY, generate_preview
from docs_repl.event_types import ConsoleLevel

CLEARED_HINT = "Console was cleared"
ARROW_COLLAPSED = "▶"
ARROW_EXPANDED = "▼"
INDENT = "  "


class ConsoleFilter(Enum):
    ALL = "*"
    WARNINGS = "warn"
    ERRORS = "error"

    @property
    def label(self) -> str:
        return _FILTER_LABELS[self]


_FILTER_LABELS = {
    ConsoleFilter.ALL: "All",
    ConsoleFilter.ERRORS: "Errors",
    ConsoleFilter.WARNINGS: "Warnings",
}

# [LAW:one-source-of-truth] Which level each filter admits; None admits all.
_FILTER_LEVEL = {
    ConsoleFilter.ALL: None,
    ConsoleFilter.WARNINGS: ConsoleLevel.WARN,
    ConsoleFilter.ERRORS: ConsoleLevel.ERROR,
}

_LEVEL_ICONS = {
    ConsoleLevel.ERROR: ("✖", "bold red"),
    ConsoleLevel.WARN: ("⚠", "bold yellow"),
    ConsoleLevel.INFO: ("ℹ", "bold blue"),
    ConsoleLevel.LOG: (" ", ""),
}

_COUNT_STYLES = {
    ConsoleLevel.ERROR: "bold white on red",
    ConsoleLevel.WARN: "bold black on yellow",
}
_COUNT_STYLE_DEFAULT = "bold white on blue"

LEVEL_ROW_STYLES = {
    ConsoleLevel.ERROR: "red",
    ConsoleLevel.WARN: "yellow",
}


def filter_entries(entries: Iterable[LogEntry], console_filter: ConsoleFilter) -> list[LogEntry]:
    level = _FILTER_LEVEL[console_filter]
    return [entry for entry in entries if level is None or entry.level is level]


def console_icon(level: ConsoleLevel, count: int) -> Text:
    """Count badge (count + 1) for repeated entries, otherwise the level icon."""
    if count > 0:
        return Text(f" {count + 1} ", style=_COUNT_STYLES.get(level, _COUNT_STYLE_DEFAULT))
    glyph, style = _LEVEL_ICONS[level]
    return Text(f" {glyph} ", style=style)


def is_collapsible(value: object, count: int) -> bool:
    # Repeated entries are always primitives, but the rule keys on count too.
    return is_branch(value) and count == 0


def render_row(row: Row, level: ConsoleLevel, count: int, collapsed: bool) -> Text:
    line = Text(no_wrap=True, overflow="ellipsis", style=LEVEL_ROW_STYLES.get(level, ""))
    line.append_text(console_icon(level, count) if row.level == 0 else Text("   "))
    line.append(INDENT * row.level)
    if is_collapsible(row.value, count):
        line.append(ARROW_COLLAPSED if collapsed else ARROW_EXPANDED)
        line.append(" ")
    if row.name is not None:
        line.append(str(row.name), style=STYLE_KEY if row.derived else "bold")
        line.append(": ")
    line.append_text(generate_preview(row.value))
    return line


def cleared_hint() -> Text:
    return Text(CLEARED_HINT, style="italic dim")
