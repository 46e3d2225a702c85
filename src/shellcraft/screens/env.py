"""Environment variable screen: modal for adding or editing a variable."""

from dataclasses import replace

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Checkbox, Input, Label

from shellcraft.domain.lines import is_keychain_derived, is_valid_env_key
from shellcraft.models import EnvironmentVariable


class EnvScreen(ModalScreen[EnvironmentVariable | None]):
    """Add a new variable, or edit *variable* when one is given.

    With "Keychain" ticked the value is not asked for: the saved line reads
    the secret with ``security find-generic-password`` from the service
    ``env/KEY``.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
    ]

    def __init__(
        self, existing_keys: set[str], variable: EnvironmentVariable | None = None
    ) -> None:
        super().__init__()
        self._variable = variable
        self._existing_keys = existing_keys - {variable.key} if variable else existing_keys

    def compose(self) -> ComposeResult:
        variable = self._variable
        title = f"Edit  {variable.key}" if variable else "Add variable"
        with Vertical(id="env-container", classes="modal"):
            yield Label(title, id="env-title")
            yield Input(value=variable.key if variable else "", placeholder="KEY", id="env-key")
            yield Checkbox(
                "Keychain (security find-generic-password)",
                value=variable.is_keychain_derived if variable else False,
                id="env-keychain",
            )
            yield Input(value=variable.value if variable else "", placeholder="value", id="env-value")
            yield Label("", id="env-error", classes="error")
            yield Label("Tab · Enter to save · Escape to cancel", classes="hint")

    def on_mount(self) -> None:
        self.query_one("#env-value", Input).display = not self._keychain
        target = "#env-value" if self._variable and not self._keychain else "#env-key"
        self.query_one(target, Input).focus()

    @property
    def _keychain(self) -> bool:
        return self.query_one("#env-keychain", Checkbox).value

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        self.query_one("#env-value", Input).display = not event.value

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "env-key" and not self._keychain:
            self.query_one("#env-value", Input).focus()
            return
        self._try_save()

    def _try_save(self) -> None:
        key = self.query_one("#env-key", Input).value.strip()
        value = self.query_one("#env-value", Input).value
        keychain = self._keychain
        error = self.query_one("#env-error", Label)

        if not is_valid_env_key(key):
            error.update("Key must be a shell identifier other than PATH")
            self.query_one("#env-key", Input).focus()
            return
        if key in self._existing_keys:
            error.update(f"'{key}' already exists")
            self.query_one("#env-key", Input).focus()
            return
        if keychain and not is_keychain_derived(value):
            value = ""

        if self._variable is None:
            self.dismiss(EnvironmentVariable(key=key, value=value, is_keychain_derived=keychain))
        else:
            self.dismiss(replace(self._variable, key=key, value=value, is_keychain_derived=keychain))

    def action_cancel(self) -> None:
        self.dismiss(None)
