"""Help overlay: key bindings plus the files being edited."""

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Label, Static

from shellcraft import fileio
from shellcraft.constants import HELP_TEXT, SECTION_TITLES


class HelpScreen(ModalScreen):
    """Key bindings, followed by the configured files in scan order.

    The primary file (where new entries are appended) is marked with ``>``
    and files that do not exist yet are dimmed.  Any click closes it.
    """

    BINDINGS = [
        Binding("escape", "dismiss", show=False),
        Binding("?", "dismiss", show=False),
        Binding("q", "dismiss", show=False),
    ]

    def __init__(self, section: str, files: list[str], primary_file: str) -> None:
        super().__init__()
        self._section = section
        self._files = files
        self._primary_file = primary_file

    def compose(self) -> ComposeResult:
        with Vertical(id="help-container", classes="modal"):
            yield Label(f"shellcraft · {SECTION_TITLES[self._section]}", id="help-title")
            yield Static(HELP_TEXT, id="help-text")
            yield Static(self._files_text(), id="help-files")

    def _files_text(self) -> str:
        lines = [" Files", " ──────────────────────────────"]
        for file in self._files:
            marker = ">" if file == self._primary_file else " "
            name = escape(file)
            if not fileio.file_exists(file):
                name = f"[dim]{name} (missing)[/]"
            lines.append(f" {marker} {name}")
        return "\n".join(lines)

    def on_click(self) -> None:
        self.dismiss()
