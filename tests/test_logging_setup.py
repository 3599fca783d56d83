"""Tests for per-command logging handler policies."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

import docs_repl.io.logging_setup as logging_setup


@pytest.fixture
def pkg_logger(monkeypatch, tmp_path):
    """Fresh configure() state; restores the docs_repl logger afterwards."""
    logger = logging.getLogger("docs_repl")
    saved = (logger.level, logger.propagate, list(logger.handlers))
    monkeypatch.setattr(logging_setup, "_configured", None)
    monkeypatch.delenv("DOCS_REPL_LOG_FILE", raising=False)
    monkeypatch.delenv("DOCS_REPL_LOG_LEVEL", raising=False)
    monkeypatch.setenv("DOCS_REPL_LOG_DIR", str(tmp_path / "logs"))
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]


def _kinds(logger):
    return sorted("file" if isinstance(h, RotatingFileHandler) else "stderr" for h in logger.handlers)


def test_console_logs_to_file_only(pkg_logger, tmp_path):
    path = logging_setup.configure("console")
    assert path == tmp_path / "logs" / "docs-repl.log"
    assert _kinds(pkg_logger) == ["file"]
    assert not pkg_logger.propagate


def test_one_shot_commands_log_to_stderr_only(pkg_logger):
    assert logging_setup.configure("render-code") is None
    assert _kinds(pkg_logger) == ["stderr"]


def test_explicit_log_file_adds_file_handler(pkg_logger, monkeypatch, tmp_path):
    target = tmp_path / "explicit" / "run.log"
    monkeypatch.setenv("DOCS_REPL_LOG_FILE", str(target))
    monkeypatch.setenv("DOCS_REPL_LOG_LEVEL", "debug")
    assert logging_setup.configure("replay") == target
    assert _kinds(pkg_logger) == ["file", "stderr"]

    logging.getLogger("docs_repl.highlight.service").debug("hello from a module")
    for handler in pkg_logger.handlers:
        handler.flush()
    assert "hello from a module" in target.read_text(encoding="utf-8")


def test_first_call_wins(pkg_logger):
    first = logging_setup.configure("console")
    assert logging_setup.configure("render-code") == first
    assert _kinds(pkg_logger) == ["file"]


@pytest.mark.parametrize(
    "raw,expected",
    [(None, logging.INFO), ("debug", logging.DEBUG), (" Warning ", logging.WARNING), ("chatty", logging.INFO)],
)
def test_resolve_level(raw, expected):
    assert logging_setup.resolve_level(raw) == expected
