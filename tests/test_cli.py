"""Tests for the render-code command and argument parsing."""

import pytest

from docs_repl.cli import _build_parser, build_highlight_service, run_render_code, run_replay

SOURCE = "const a = 1;\nconst b = 2;\nconsole.log(a < b);\n"


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "snippet.js"
    path.write_text(SOURCE, encoding="utf-8")
    return path


def _run(argv):
    return run_render_code(_build_parser().parse_args(argv))


def _run_replay(argv):
    return run_replay(_build_parser().parse_args(argv))


def test_render_code_waits_for_highlighting(source_file, capsys):
    assert _run(["render-code", str(source_file), "--lang", "js", "--transport", "thread"]) == 0
    out = capsys.readouterr().out
    assert '<code class="language-js">' in out
    assert "<span" in out
    assert "Run in REPL" in out


def test_render_code_no_repl(source_file, capsys):
    argv = ["render-code", str(source_file), "--class", "language-js", "--no-repl", "--transport", "thread"]
    assert _run(argv) == 0
    assert "repl-link" not in capsys.readouterr().out


def test_render_code_missing_file(tmp_path, capsys):
    assert _run(["render-code", str(tmp_path / "missing.js"), "--transport", "thread"]) == 1
    assert "Error reading" in capsys.readouterr().err


def test_lang_and_class_are_exclusive():
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["render-code", "x", "--lang", "js", "--class", "language-js"])


def test_service_uses_configured_cache_bound(monkeypatch):
    monkeypatch.setenv("DOCS_REPL_CACHE_MAX_ENTRIES", "7")
    service = build_highlight_service(transport="thread", workers=1)
    try:
        assert service.cache.max_entries == 7
    finally:
        service.close()


def test_service_notifies_through_scheduler(monkeypatch, manual_channel):
    monkeypatch.setattr("docs_repl.cli.make_channel", lambda transport, workers: manual_channel)
    scheduled = []
    service = build_highlight_service(
        transport="thread",
        workers=1,
        scheduler=lambda fn, *args: scheduled.append((fn, args)),
    )
    seen = []
    service.highlight("x = 1", "python")
    service.observe("x = 1", "python", seen.append)

    manual_channel.futures[0].set_result("<span>x</span>")
    assert seen == []
    fn, args = scheduled.pop()
    fn(*args)
    assert seen[0].value == "<span>x</span>"


def test_service_can_be_unbounded(monkeypatch):
    monkeypatch.setenv("DOCS_REPL_CACHE_MAX_ENTRIES", "none")
    service = build_highlight_service(transport="thread", workers=1)
    try:
        assert service.cache.max_entries is None
    finally:
        service.close()


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "events.jsonl"
    path.write_text(
        "\n".join([
            '{"type": "log", "args": ["tick"]}',
            '{"type": "log", "args": ["tick"]}',
            '{"type": "error", "args": [{"code": 7}]}',
        ]),
        encoding="utf-8",
    )
    return path


class TestReplay:
    def test_prints_expanded_console(self, events_file, capsys):
        assert _run_replay(["replay", str(events_file)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].strip() == "2 tick"
        assert "{code: 7}" in lines[1]
        assert "code: 7" in lines[2]

    def test_filter(self, events_file, capsys):
        assert _run_replay(["replay", str(events_file), "--filter", "warn"]) == 0
        assert capsys.readouterr().out.strip() == "Console was cleared"

    def test_missing_file(self, tmp_path, capsys):
        assert _run_replay(["replay", str(tmp_path / "nope.jsonl")]) == 1
        assert "Error opening" in capsys.readouterr().err
