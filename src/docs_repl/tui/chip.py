"""Reusable chip widgets: lightweight clickable text controls."""

from textual.widgets import Static


class Chip(Static):
    """Clickable chip that dispatches an app action on click.

    Like Button's action= parameter but renders as plain text, with no borders,
    no half-block chrome. The -active class marks the selected chip of a group.
    """

    ALLOW_SELECT = False
    DEFAULT_CSS = """
    Chip {
        width: auto;
        height: 1;
        margin-right: 1;
        text-style: bold;
        background: $surface-lighten-1;
        color: $text-muted;
    }

    Chip:hover {
        background: $surface-lighten-2;
        color: $text;
    }

    Chip.-active {
        background: $accent;
        color: $text;
    }
    """

    def __init__(self, label: str, *, action: str | None = None, **kwargs):
        super().__init__(f" {label} ", **kwargs)
        self._action = action

    def set_active(self, active: bool) -> None:
        self.set_class(active, "-active")

    async def on_click(self, event) -> None:
        if self._action:
            await self.run_action(self._action)
