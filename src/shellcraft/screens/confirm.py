"""Confirm screen: yes/no modal for deletes, discards and overwrites."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label


class ConfirmScreen(ModalScreen[bool]):
    """Ask before doing something that loses data.

    *detail* is shown dimmed under the question, e.g. the file and line an
    entry came from.  The confirm button carries *confirm_label*; ``y`` and
    ``n`` answer without reaching for the buttons.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("y", "confirm", show=False),
        Binding("n", "cancel", show=False),
    ]

    def __init__(self, message: str, detail: str = "", confirm_label: str = "Yes") -> None:
        super().__init__()
        self._message = message
        self._detail = detail
        self._confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-container", classes="modal"):
            yield Label(self._message, id="confirm-message")
            if self._detail:
                yield Label(self._detail, id="confirm-detail", classes="hint", markup=False)
            with Horizontal(classes="buttons"):
                yield Button(self._confirm_label, variant="error", id="confirm-yes")
                yield Button("No", variant="primary", id="confirm-no")

    def on_mount(self) -> None:
        # Default to the safe answer.
        self.query_one("#confirm-no", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
