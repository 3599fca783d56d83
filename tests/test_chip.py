from docs_repl.tui.chip import Chip


def test_chip_default_css_marks_active_state_without_opacity_fade():
    css = Chip.DEFAULT_CSS
    assert "Chip.-active" in css
    assert "background: $accent;" in css
    assert "Chip:hover" in css
    assert "opacity" not in css


def test_chip_set_active_toggles_class():
    chip = Chip("Clear", action="app.console_clear")
    assert chip._action == "app.console_clear"
    assert not chip.has_class("-active")
    chip.set_active(True)
    assert chip.has_class("-active")
    chip.set_active(False)
    assert not chip.has_class("-active")
