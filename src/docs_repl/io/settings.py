"""Settings file I/O for docs-repl.

Manages a JSON settings file at XDG_CONFIG_HOME/docs-repl/settings.json.
Environment variables override the file for the highlight cache bound.

This module is a STABLE BOUNDARY.
Import as: import docs_repl.io.settings
"""

import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CACHE_MAX_ENTRIES = 512
UNBOUNDED_VALUES = ("0", "none")
DEFAULT_TRANSPORT = "process"
DEFAULT_WORKERS = 1
DEFAULT_REPL_URL = "/repl"
DEFAULT_REPL_LANGUAGES = ("js", "jsx")
DEFAULT_CONSOLE_FILTER = "*"


def get_config_path() -> Path:
    """Return path to settings file.

    Uses XDG_CONFIG_HOME (default ~/.config) / docs-repl / settings.json.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "docs-repl" / "settings.json"


def load_settings() -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    path = get_config_path()
    # [LAW:dataflow-not-control-flow] Always attempt read; empty dict is the "no data" value.
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("ignoring unreadable settings file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(data: dict) -> None:
    """Atomic write of settings dict to JSON file.

    Writes to a temp file then renames to avoid partial writes on crash.
    """
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load_setting(key: str, default=None):
    """Load a single setting by key. Returns default if absent."""
    return load_settings().get(key, default)


def save_setting(key: str, value) -> None:
    """Save a single setting by key (merge into existing settings)."""
    data = load_settings()
    data[key] = value
    save_settings(data)


def _as_int(raw, default: int, minimum: int = 1) -> int:
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def load_cache_max_entries() -> int | None:
    """Highlight cache bound. DOCS_REPL_CACHE_MAX_ENTRIES wins over the file.

    0 or "none" means unbounded (None).
    """
    raw = os.environ.get("DOCS_REPL_CACHE_MAX_ENTRIES")
    if raw is None:
        raw = load_setting("highlight_cache_max_entries")
    if raw is None:
        return DEFAULT_CACHE_MAX_ENTRIES
    if str(raw).strip().lower() in UNBOUNDED_VALUES:
        return None
    return _as_int(raw, DEFAULT_CACHE_MAX_ENTRIES)


def load_transport() -> str:
    transport = load_setting("highlight_transport", DEFAULT_TRANSPORT)
    if transport not in ("process", "thread"):
        logger.warning("unknown highlight_transport %r, using %s", transport, DEFAULT_TRANSPORT)
        return DEFAULT_TRANSPORT
    return transport


def load_workers() -> int:
    return _as_int(load_setting("highlight_workers"), DEFAULT_WORKERS)


def load_repl_url() -> str:
    return str(load_setting("repl_url", DEFAULT_REPL_URL))


def load_repl_languages() -> tuple[str, ...]:
    langs = load_setting("repl_languages", list(DEFAULT_REPL_LANGUAGES))
    if not isinstance(langs, list):
        return DEFAULT_REPL_LANGUAGES
    return tuple(str(lang) for lang in langs)


def load_console_filter() -> str:
    return str(load_setting("console_filter", DEFAULT_CONSOLE_FILTER))


def save_console_filter(value: str) -> None:
    save_setting("console_filter", value)
