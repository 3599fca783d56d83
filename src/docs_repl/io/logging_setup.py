"""Logging bootstrap for docs-repl commands.

Each command has a handler policy. The console TUI owns the terminal, so it
logs to a rotating file only; one-shot commands log to stderr, and also to a
file when DOCS_REPL_LOG_FILE names one.

// [LAW:single-enforcer] Handlers are attached to the docs_repl logger in configure() only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "docs_repl"
LOG_FILE_NAME = "docs-repl.log"
DEFAULT_LOG_DIR = "~/.local/share/docs-repl/logs"


@dataclass(frozen=True)
class HandlerPolicy:
    stderr: bool
    log_file: bool


POLICIES = {
    "console": HandlerPolicy(stderr=False, log_file=True),
    "render-code": HandlerPolicy(stderr=True, log_file=False),
    "replay": HandlerPolicy(stderr=True, log_file=False),
}
_FALLBACK_POLICY = HandlerPolicy(stderr=True, log_file=False)

# (command, log file) of the first configure() call.
_configured: tuple[str, Path | None] | None = None


def resolve_level(raw: str | None) -> int:
    level = logging.getLevelName((raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def log_file_path() -> Path:
    explicit = os.environ.get("DOCS_REPL_LOG_FILE")
    if explicit:
        return Path(explicit)
    log_dir = os.environ.get("DOCS_REPL_LOG_DIR", DEFAULT_LOG_DIR)
    return Path(os.path.expanduser(log_dir)) / LOG_FILE_NAME


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    # TUI sessions share one file; rotation keeps it small.
    handler = RotatingFileHandler(path, maxBytes=2 * 1024 * 1024, backupCount=2, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure(command: str) -> Path | None:
    """Attach the handlers command's policy asks for; returns the log file, if any.

    Only the first call configures; later calls return its log file.
    """
    global _configured
    if _configured is not None:
        return _configured[1]

    policy = POLICIES.get(command, _FALLBACK_POLICY)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(os.environ.get("DOCS_REPL_LOG_LEVEL")))
    logger.propagate = False
    logger.handlers.clear()

    if policy.stderr:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter("docs-repl %(levelname)s: %(message)s"))
        logger.addHandler(stream)

    file_path = None
    if policy.log_file or os.environ.get("DOCS_REPL_LOG_FILE"):
        file_path = log_file_path()
        logger.addHandler(_file_handler(file_path))

    _configured = (command, file_path)
    return file_path
