"""Function screen: modal for adding or editing a shell function."""

from dataclasses import replace

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, TextArea

from shellcraft.domain.lines import is_valid_function_name
from shellcraft.models import ShellFunction


class FunctionScreen(ModalScreen[ShellFunction | None]):
    """Add a new function, or edit *function* when one is given.

    The body is edited without its surrounding ``name() {`` / ``}`` lines
    and without indentation; both are added back when the file is written.
    ``ctrl+w`` saves from anywhere in the modal.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("ctrl+w", "save", show=False, priority=True),
    ]

    def __init__(self, existing_names: set[str], function: ShellFunction | None = None) -> None:
        super().__init__()
        self._function = function
        self._existing_names = existing_names - {function.name} if function else existing_names

    def compose(self) -> ComposeResult:
        function = self._function
        with Vertical(id="function-container", classes="modal"):
            yield Label(f"Edit  {function.name}()" if function else "Add function", id="function-title")
            yield Input(value=function.name if function else "", placeholder="name", id="function-name")
            yield Input(
                value=function.description if function else "",
                placeholder="description (optional)",
                id="function-description",
            )
            yield TextArea(function.body if function else "", id="function-body", show_line_numbers=True)
            yield Label("", id="function-error", classes="error")
            yield Label("ctrl+w to save · Tab to reach buttons · Escape to cancel", classes="hint")
            with Horizontal(id="function-buttons", classes="buttons"):
                yield Button("Save", variant="success", id="function-save")
                yield Button("Cancel", variant="primary", id="function-cancel")

    def on_mount(self) -> None:
        target = "#function-body" if self._function else "#function-name"
        self.query_one(target).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "function-name":
            self.query_one("#function-description", Input).focus()
        else:
            self.query_one("#function-body", TextArea).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "function-save":
            self._try_save()
        else:
            self.dismiss(None)

    def action_save(self) -> None:
        self._try_save()

    def _try_save(self) -> None:
        name = self.query_one("#function-name", Input).value.strip()
        description = self.query_one("#function-description", Input).value.strip()
        body = self.query_one("#function-body", TextArea).text.rstrip("\n")
        error = self.query_one("#function-error", Label)

        if not is_valid_function_name(name):
            error.update("Name must be letters, digits, '_' or '-'")
            self.query_one("#function-name", Input).focus()
            return
        if name in self._existing_names:
            error.update(f"'{name}' already exists")
            self.query_one("#function-name", Input).focus()
            return

        if self._function is None:
            self.dismiss(ShellFunction(name=name, body=body, description=description))
        else:
            self.dismiss(replace(self._function, name=name, body=body, description=description))

    def action_cancel(self) -> None:
        self.dismiss(None)
