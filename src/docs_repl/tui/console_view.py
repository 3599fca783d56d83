"""Console panel: filter chips, clear chip, one MessageView per shown entry.

// [LAW:one-source-of-truth] ConsoleView owns every message's ExpandState,
//   keyed by LogEntry.id, so filtering and count updates never reset them.
// [LAW:locality-or-seam] Drawing rules come from docs_repl.console.presenter.
"""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.widgets import Static

import docs_repl.console.presenter as presenter
from docs_repl.console.aggregator import LogEntry
from docs_repl.console.flatten import ExpandState, Row, flatten_message
from docs_repl.console.presenter import ConsoleFilter
from docs_repl.tui.chip import Chip


class MessageView(Static):
    """Rows of one LogEntry. One line per row; a click toggles that row."""

    DEFAULT_CSS = """
    MessageView {
        height: auto;
        width: 1fr;
        border-bottom: solid $panel-lighten-1;
    }
    """

    class Toggled(Message):
        """Posted when a row is expanded or collapsed."""

        def __init__(self, entry_id: int, state: ExpandState) -> None:
            self.entry_id = entry_id
            self.state = state
            super().__init__()

    def __init__(self, entry: LogEntry, state: ExpandState, **kwargs) -> None:
        self.entry = entry
        self.expand_state = state
        self.rows: list[Row] = []
        super().__init__(self._render_rows(), **kwargs)

    def update_entry(self, entry: LogEntry) -> None:
        if entry is self.entry:
            return
        self.entry = entry
        self._refresh_rows()

    def toggle_row(self, key: tuple) -> bool:
        """Flip key in this message's ExpandState. False if the row cannot collapse."""
        row = next((r for r in self.rows if r.key == key), None)
        if row is None or not presenter.is_collapsible(row.value, self.entry.count):
            return False
        self.expand_state = self.expand_state.toggle(key)
        self._refresh_rows()
        self.post_message(self.Toggled(self.entry.id, self.expand_state))
        return True

    def on_click(self, event) -> None:
        if 0 <= event.y < len(self.rows):
            self.toggle_row(self.rows[event.y].key)

    def _refresh_rows(self) -> None:
        self.update(self._render_rows())

    def _render_rows(self) -> Text:
        self.rows = flatten_message(self.entry.value, self.expand_state)
        lines = [
            presenter.render_row(
                row,
                self.entry.level,
                self.entry.count,
                self.expand_state.is_collapsed(row.key),
            )
            for row in self.rows
        ]
        return Text("\n", no_wrap=True).join(lines)


class ConsoleView(Vertical):
    DEFAULT_CSS = """
    ConsoleView {
        height: 1fr;
    }

    ConsoleView #console-actions {
        height: 1;
        margin-bottom: 1;
    }

    ConsoleView #console-messages {
        height: 1fr;
    }

    ConsoleView #console-hint {
        padding-left: 1;
    }
    """

    def __init__(self, console_filter: ConsoleFilter = ConsoleFilter.ALL, **kwargs) -> None:
        super().__init__(**kwargs)
        self.console_filter = console_filter
        self.entries: tuple[LogEntry, ...] = ()
        self._expand: dict[int, ExpandState] = {}
        self._views: list[MessageView] = []

    def compose(self) -> ComposeResult:
        with Horizontal(id="console-actions"):
            yield Chip("Clear", action="app.console_clear", id="chip-clear")
            for console_filter in (ConsoleFilter.ALL, ConsoleFilter.ERRORS, ConsoleFilter.WARNINGS):
                yield Chip(
                    console_filter.label,
                    action=f"app.console_filter('{console_filter.value}')",
                    id=f"chip-filter-{console_filter.name.lower()}",
                )
        with VerticalScroll(id="console-messages"):
            yield Static(presenter.cleared_hint(), id="console-hint")

    def on_mount(self) -> None:
        self._sync_chips()
        self._rebuild()

    def show_entries(self, entries: tuple[LogEntry, ...]) -> None:
        self.entries = entries
        live = {entry.id for entry in entries}
        self._expand = {entry_id: s for entry_id, s in self._expand.items() if entry_id in live}
        if self.is_mounted:
            self._rebuild()

    def set_filter(self, console_filter: ConsoleFilter) -> None:
        self.console_filter = console_filter
        if self.is_mounted:
            self._sync_chips()
            self._rebuild()

    def expand_state(self, entry_id: int) -> ExpandState:
        return self._expand.get(entry_id, ExpandState.initial())

    def message_views(self) -> list[MessageView]:
        return list(self._views)

    def on_message_view_toggled(self, message: MessageView.Toggled) -> None:
        self._expand[message.entry_id] = message.state

    def _sync_chips(self) -> None:
        for chip in self.query(Chip):
            if chip.id and chip.id.startswith("chip-filter-"):
                chip.set_active(chip.id == f"chip-filter-{self.console_filter.name.lower()}")

    def _rebuild(self) -> None:
        live = {entry.id for entry in self.entries}
        for view in self._views:
            if view.entry.id in live:
                self._expand[view.entry.id] = view.expand_state

        shown = presenter.filter_entries(self.entries, self.console_filter)
        container = self.query_one("#console-messages", VerticalScroll)
        self.query_one("#console-hint", Static).display = not shown

        views = self._views
        current_ids = [view.entry.id for view in views]
        shown_ids = [entry.id for entry in shown]

        if shown_ids[: len(current_ids)] == current_ids:
            # Same prefix: refresh in place, append the rest.
            for view, entry in zip(views, shown):
                view.update_entry(entry)
            new = [MessageView(entry, self.expand_state(entry.id)) for entry in shown[len(views):]]
            if new:
                self._views.extend(new)
                container.mount(*new)
                container.scroll_end(animate=False)
            return

        for view in views:
            view.remove()
        self._views = [MessageView(entry, self.expand_state(entry.id)) for entry in shown]
        if self._views:
            container.mount(*self._views)
