"""Alias screen: modal for adding or editing an alias."""

from dataclasses import replace

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Checkbox, Input, Label

from shellcraft.domain.lines import is_valid_alias_name
from shellcraft.models import ShellAlias


class AliasScreen(ModalScreen[ShellAlias | None]):
    """Add a new alias, or edit *alias* when one is given.

    Dismisses with the resulting alias (a copy when editing, keeping the
    original id) or None on cancel.  Blank, malformed or duplicate names are
    rejected inline.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
    ]

    def __init__(self, existing_names: set[str], alias: ShellAlias | None = None) -> None:
        super().__init__()
        self._alias = alias
        self._existing_names = existing_names - {alias.name} if alias else existing_names

    def compose(self) -> ComposeResult:
        title = f"Edit alias  {self._alias.name}" if self._alias else "Add alias"
        with Vertical(id="alias-container", classes="modal"):
            yield Label(title, id="alias-title")
            yield Input(value=self._alias.name if self._alias else "", placeholder="name", id="alias-name")
            yield Input(
                value=self._alias.expansion if self._alias else "",
                placeholder="expansion",
                id="alias-expansion",
            )
            yield Checkbox("Enabled", value=self._alias.is_enabled if self._alias else True, id="alias-enabled")
            yield Label("", id="alias-error", classes="error")
            yield Label("Tab · Enter to save · Escape to cancel", classes="hint")

    def on_mount(self) -> None:
        target = "#alias-expansion" if self._alias else "#alias-name"
        self.query_one(target, Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "alias-name":
            self.query_one("#alias-expansion", Input).focus()
            return
        self._try_save()

    def _try_save(self) -> None:
        name = self.query_one("#alias-name", Input).value.strip()
        expansion = self.query_one("#alias-expansion", Input).value.strip()
        enabled = self.query_one("#alias-enabled", Checkbox).value
        error = self.query_one("#alias-error", Label)

        if not name or not is_valid_alias_name(name):
            error.update("Name cannot be blank or contain spaces, '=' or quotes")
            self.query_one("#alias-name", Input).focus()
            return
        if name in self._existing_names:
            error.update(f"'{name}' already exists")
            self.query_one("#alias-name", Input).focus()
            return
        if not expansion:
            error.update("Expansion cannot be blank")
            return

        if self._alias is None:
            self.dismiss(ShellAlias(name=name, expansion=expansion, is_enabled=enabled))
        else:
            self.dismiss(replace(self._alias, name=name, expansion=expansion, is_enabled=enabled))

    def action_cancel(self) -> None:
        self.dismiss(None)
