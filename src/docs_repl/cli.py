"""CLI entry point for docs-repl."""

import argparse
import logging
import queue
import sys

from rich.console import Console

import docs_repl.io.logging_setup
import docs_repl.io.settings
from docs_repl.core.memo_cache import MemoCache, Scheduler
from docs_repl.console.aggregator import ConsoleAggregator
from docs_repl.console.event_hub import EventHub
from docs_repl.console.event_source import pump_events
from docs_repl.console.flatten import ExpandState, flatten_message
from docs_repl.console.presenter import ConsoleFilter, cleared_hint, filter_entries, render_row
from docs_repl.highlight.channel import TRANSPORTS, make_channel
from docs_repl.highlight.code_block import CodeBlockRenderer, CodeElement, render_element
from docs_repl.highlight.service import HighlightService
from docs_repl.tui.app import DocsReplApp

logger = logging.getLogger(__name__)

RENDER_TIMEOUT_SECONDS = 30.0


def build_highlight_service(
    transport: str | None = None,
    workers: int | None = None,
    scheduler: Scheduler | None = None,
) -> HighlightService:
    """Wire channel + bounded cache from settings.

    scheduler marshals cache notifications (e.g. App.call_from_thread);
    None notifies on the engine thread that settled the request.
    """
    channel = make_channel(
        transport or docs_repl.io.settings.load_transport(),
        workers or docs_repl.io.settings.load_workers(),
    )
    cache = MemoCache(
        max_entries=docs_repl.io.settings.load_cache_max_entries(),
        scheduler=scheduler,
    )
    return HighlightService(channel, cache)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docs-repl", description="Code block highlighting and REPL console")
    sub = parser.add_subparsers(dest="command", required=True)

    console = sub.add_parser("console", help="Open the live console TUI")
    console.add_argument(
        "--events",
        type=str,
        default=None,
        help="JSON-lines file of recorded console events",
    )

    render = sub.add_parser("render-code", help="Render a code block to HTML")
    render.add_argument("path", help="Source file ('-' for stdin)")
    lang_group = render.add_mutually_exclusive_group()
    lang_group.add_argument("--lang", type=str, default=None, help="Language id (e.g. js, python)")
    lang_group.add_argument(
        "--class",
        dest="class_name",
        type=str,
        default=None,
        help="Class attribute to read the language from (e.g. 'language-js')",
    )
    render.add_argument("--no-repl", action="store_true", default=False, help="Never add the 'Run in REPL' link")
    render.add_argument(
        "--no-wait",
        action="store_true",
        default=False,
        help="Print the first synchronous render without waiting for highlighting",
    )
    render.add_argument("--transport", choices=TRANSPORTS, default=None, help="Highlight engine transport")

    replay = sub.add_parser("replay", help="Print the console for a recorded event file")
    replay.add_argument("events", help="JSON-lines file of recorded console events")
    replay.add_argument(
        "--filter",
        choices=[f.value for f in ConsoleFilter],
        default=ConsoleFilter.ALL.value,
        help="Only show entries of this level ('*' for all)",
    )
    return parser


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def run_render_code(args) -> int:
    try:
        source = _read_source(args.path)
    except OSError as e:
        print(f"Error reading {args.path}: {e}", file=sys.stderr)
        return 1

    class_name = args.class_name if args.class_name is not None else f"language-{args.lang or ''}"
    element = CodeElement(tag="code", class_name=class_name, children=(source,))
    # Cache notifications are queued here and run on this thread.
    notifications: queue.Queue = queue.Queue()
    service = build_highlight_service(
        transport=args.transport,
        scheduler=lambda fn, *fn_args: notifications.put((fn, fn_args)),
    )
    try:
        renderer = render_element(
            service,
            element,
            repl=not args.no_repl,
            repl_url=docs_repl.io.settings.load_repl_url(),
            repl_languages=docs_repl.io.settings.load_repl_languages(),
        )
        if isinstance(renderer, CodeBlockRenderer):
            if renderer.pending and not args.no_wait:
                try:
                    fn, fn_args = notifications.get(timeout=RENDER_TIMEOUT_SECONDS)
                except queue.Empty:
                    logger.warning("highlighting timed out; printing escaped source")
                else:
                    fn(*fn_args)
            print(renderer.render())
        else:
            print(renderer)
    finally:
        service.close()
    return 0


def run_replay(args) -> int:
    """Print the aggregated console for a recorded event file, fully expanded."""
    hub = EventHub()
    aggregator = ConsoleAggregator()
    aggregator.attach(hub)
    try:
        with open(args.events, encoding="utf-8") as f:
            emitted = pump_events(f, hub)
    except OSError as e:
        print(f"Error opening {args.events}: {e}", file=sys.stderr)
        return 1
    logger.debug("replayed %d events into %d entries", emitted, len(aggregator.entries))

    console = Console(highlight=False)
    shown = filter_entries(aggregator.entries, ConsoleFilter(args.filter))
    if not shown:
        console.print(cleared_hint())
    expanded = ExpandState()
    for entry in shown:
        for row in flatten_message(entry.value, expanded):
            console.print(render_row(row, entry.level, entry.count, collapsed=False))
    return 0


def run_console(args) -> int:
    try:
        console_filter = ConsoleFilter(docs_repl.io.settings.load_console_filter())
    except ValueError:
        console_filter = ConsoleFilter.ALL

    event_file = None
    event_lines = None
    if args.events:
        try:
            event_file = open(args.events, encoding="utf-8")
        except OSError as e:
            print(f"Error opening {args.events}: {e}", file=sys.stderr)
            return 1
        event_lines = event_file

    try:
        DocsReplApp(
            event_lines=event_lines,
            console_filter=console_filter,
            persist_filter=True,
        ).run()
    finally:
        if event_file is not None:
            event_file.close()
    return 0


_COMMANDS = {
    "console": run_console,
    "render-code": run_render_code,
    "replay": run_replay,
}


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    # [LAW:single-enforcer] Runtime logger configuration is centralized in io.logging_setup.
    log_file = docs_repl.io.logging_setup.configure(args.command)
    logger.debug("logging configured for %s, file=%s", args.command, log_file)

    return _COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
