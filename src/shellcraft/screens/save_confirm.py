"""Save-confirm screen: lists pending changes before anything is written."""

from collections import Counter

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from shellcraft.models import Change, ChangeKind

_MARKS = {
    ChangeKind.ADDED: ("green", "+"),
    ChangeKind.REMOVED: ("red", "-"),
    ChangeKind.UPDATED: ("blue", "*"),
}


def summarize(changes: list[Change]) -> str:
    """``2 added · 1 updated``-style count line, zero kinds left out."""
    counts = Counter(change.kind for change in changes)
    parts = [f"{counts[kind]} {kind.name.lower()}" for kind in ChangeKind if counts[kind]]
    return " · ".join(parts) or "no changes"


class SaveConfirmScreen(ModalScreen[bool]):
    """Coloured summary of a section's pending changes.

    Added entries are green, removed red, updated blue (``old → new`` when
    the label changed).  The files that will be rewritten are listed under
    the diff, with a note when a backup is taken first.  Dismisses True on
    confirm.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("n", "cancel", show=False),
        Binding("q", "cancel", show=False),
        Binding("y", "confirm", show=False),
    ]

    def __init__(
        self, title: str, changes: list[Change], files: list[str] | None = None, backup: bool = True
    ) -> None:
        super().__init__()
        self._title = title
        self._changes = changes
        self._files = files or []
        self._backup = backup

    def compose(self) -> ComposeResult:
        with Vertical(id="save-confirm-container", classes="modal"):
            yield Label(f"Save {self._title}?  ({summarize(self._changes)})", id="save-confirm-title")
            with ScrollableContainer(id="save-confirm-diff"):
                for line in self._diff_lines():
                    yield Label(line)
            if self._files:
                note = "  (backed up first)" if self._backup else ""
                yield Label(f"Writes: {escape(', '.join(self._files))}{note}", id="save-confirm-files")
            with Horizontal(classes="buttons"):
                yield Button("Save", variant="success", id="save-confirm-yes")
                yield Button("Cancel", variant="primary", id="save-confirm-no")

    def on_mount(self) -> None:
        self.query_one("#save-confirm-no", Button).focus()

    def _diff_lines(self) -> list[str]:
        lines = []
        for change in self._changes:
            colour, mark = _MARKS[change.kind]
            text = escape(change.label)
            if change.kind == ChangeKind.UPDATED and change.detail and change.detail != change.label:
                text = f"{escape(change.detail)}  →  {text}"
            lines.append(f"[{colour}]{mark}  {text}[/]")
        return lines or ["[dim](no changes)[/]"]

    def has_change(self, label: str) -> bool:
        """True if *label* is the new or old label of any pending change."""
        return any(label in (change.label, change.detail) for change in self._changes)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "save-confirm-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
