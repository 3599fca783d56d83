"""Console TUI application using Textual.

// [LAW:locality-or-seam] Thin coordinator: the hub feeds the aggregator, the
//   aggregator feeds ConsoleView. Recorded events arrive from a reader thread.
// [LAW:single-enforcer] The hub is only emitted on from the app thread.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from textual.app import App, ComposeResult
from textual.message import Message
from textual.widgets import Footer, Header

import docs_repl.io.settings
from docs_repl.console.aggregator import ConsoleAggregator, LogEntry
from docs_repl.console.event_hub import EventHub
from docs_repl.console.event_source import ConsoleEvent, emit_event, read_events
from docs_repl.console.presenter import ConsoleFilter
from docs_repl.tui.console_view import ConsoleView

logger = logging.getLogger(__name__)


class _ConsoleEvent(Message, bubble=False):
    """Thread-safe bridge: reader thread to app message pump."""

    def __init__(self, event: ConsoleEvent) -> None:
        self.event = event
        super().__init__()


class DocsReplApp(App):
    """Live console for output recorded from the sandboxed runner."""

    TITLE = "docs-repl console"

    BINDINGS = [
        ("c", "console_clear", "Clear"),
        ("a", "console_filter('*')", "All"),
        ("e", "console_filter('error')", "Errors"),
        ("w", "console_filter('warn')", "Warnings"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        hub: Optional[EventHub] = None,
        aggregator: Optional[ConsoleAggregator] = None,
        event_lines: Optional[Iterable[str]] = None,
        console_filter: ConsoleFilter = ConsoleFilter.ALL,
        persist_filter: bool = False,
    ):
        super().__init__()
        self.hub = hub if hub is not None else EventHub()
        self.aggregator = aggregator if aggregator is not None else ConsoleAggregator()
        self._event_lines = event_lines
        self._initial_filter = console_filter
        self._persist_filter = persist_filter
        self._detach = None
        self._remove_listener = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield ConsoleView(console_filter=self._initial_filter, id="console-view")
        yield Footer()

    def on_mount(self) -> None:
        self._detach = self.aggregator.attach(self.hub)
        self._remove_listener = self.aggregator.add_listener(self._on_entries)
        self._on_entries(self.aggregator.entries)
        if self._event_lines is not None:
            self.run_worker(self._read_events, thread=True, exclusive=False)

    def on_unmount(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
        if self._detach is not None:
            self._detach()

    def console_view(self) -> ConsoleView:
        return self.query_one("#console-view", ConsoleView)

    def _on_entries(self, entries: tuple[LogEntry, ...]) -> None:
        self.console_view().show_entries(entries)

    def _read_events(self) -> None:
        """Reader thread: decode recorded lines and post them to the app."""
        count = 0
        for event in read_events(self._event_lines):
            self.post_message(_ConsoleEvent(event))
            count += 1
        logger.info("event source drained: %d events", count)

    def on__console_event(self, message: _ConsoleEvent) -> None:
        emit_event(self.hub, message.event)

    def action_console_clear(self) -> None:
        self.aggregator.clear()

    def action_console_filter(self, value: str) -> None:
        try:
            console_filter = ConsoleFilter(value)
        except ValueError:
            logger.warning("unknown console filter %r", value)
            return
        self.console_view().set_filter(console_filter)
        if self._persist_filter:
            docs_repl.io.settings.save_console_filter(console_filter.value)
