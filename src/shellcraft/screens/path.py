"""PATH screen: modal for adding or editing a PATH entry."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label


class PathScreen(ModalScreen[str | None]):
    """Modal asking for a directory to put on PATH.

    Dismisses with the path as typed (``~`` and ``$HOME`` are kept so the
    file stays portable) or None on cancel.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
    ]

    def __init__(self, existing_paths: set[str], current: str = "") -> None:
        super().__init__()
        self._current = current
        self._existing_paths = existing_paths - {current}

    def compose(self) -> ComposeResult:
        with Vertical(id="path-container", classes="modal"):
            yield Label("Edit PATH entry" if self._current else "Add PATH entry", id="path-title")
            yield Input(value=self._current, placeholder="/usr/local/bin", id="path-value")
            yield Label("", id="path-error", classes="error")
            yield Label("Enter to save · Escape to cancel", classes="hint")

    def on_mount(self) -> None:
        input_widget = self.query_one("#path-value", Input)
        input_widget.focus()
        input_widget.cursor_position = len(self._current)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        path = event.value.strip()
        error = self.query_one("#path-error", Label)
        if not path or ":" in path:
            error.update("Path cannot be blank or contain ':'")
            return
        if path in self._existing_paths:
            error.update(f"'{path}' is already on PATH")
            return
        self.dismiss(path)

    def action_cancel(self) -> None:
        self.dismiss(None)
