"""Entry table widget shared by every section."""

from rich.text import Text
from textual.binding import Binding
from textual.events import Click
from textual.message import Message
from textual.widgets import DataTable

from shellcraft.constants import TABLE_COLUMNS
from shellcraft.models import EnvironmentVariable, PathEntry, ShellAlias, ShellFunction

_DISABLED_STYLE = "dim strike"
_KEYCHAIN_BADGE = Text("[ keychain ]", style="bold cyan")
_MISSING_BADGE = Text("missing", style="bold red")
_EXISTS_BADGE = Text("yes", style="green")


def row_cells(index: int, item) -> tuple:
    """Cells for one table row, matching ``TABLE_COLUMNS`` for its section."""
    number = str(index)
    if isinstance(item, ShellAlias):
        style = "" if item.is_enabled else _DISABLED_STYLE
        return (
            number,
            Text(item.name, style=style),
            Text(item.expansion, style=style),
            item.category.value,
            item.source_file,
        )
    if isinstance(item, ShellFunction):
        start, end = item.line_range
        lines = f"{start}-{end}" if start else "new"
        return number, item.name, item.description, lines, item.source_file
    if isinstance(item, PathEntry):
        exists = _EXISTS_BADGE if item.exists else _MISSING_BADGE
        return number, item.path, exists, item.source_file
    if isinstance(item, EnvironmentVariable):
        value: str | Text = _KEYCHAIN_BADGE if item.is_keychain_derived else item.value
        return number, item.key, value, item.source_file
    raise TypeError(f"Unsupported entry type: {type(item).__name__}")


class EntryTable(DataTable):
    """Scrollable table of one section's entries with vim-style navigation.

    Rows are keyed by the entry's id, so the app can map the cursor back to
    the entry without relying on row positions.

    Double-clicking a row posts ``EntryTable.RowDoubleClicked`` so the app
    can open the edit modal.
    """

    class RowDoubleClicked(Message):
        """Posted when the user double-clicks a row."""

    BINDINGS = [
        Binding("j", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
    ]

    def action_cursor_down(self) -> None:
        """Move down one row, wrapping from the last row to the first."""
        if self.row_count == 0:
            return
        if self.cursor_row == self.row_count - 1:
            self.move_cursor(row=0)
        else:
            super().action_cursor_down()

    def action_cursor_up(self) -> None:
        """Move up one row, wrapping from the first row to the last."""
        if self.row_count == 0:
            return
        if self.cursor_row == 0:
            self.move_cursor(row=self.row_count - 1)
        else:
            super().action_cursor_up()

    def on_mount(self) -> None:
        self.cursor_type = "row"
        self.zebra_stripes = True

    def load(self, section: str, items: list) -> None:
        """Replace columns and rows with *items* from *section*."""
        self.clear(columns=True)
        self.add_columns(*TABLE_COLUMNS[section])
        for i, item in enumerate(items, start=1):
            self.add_row(*row_cells(i, item), key=str(item.id))

    def selected_id(self) -> str | None:
        """Return the id of the highlighted entry, or None when empty."""
        if self.row_count == 0:
            return None
        row_key, _ = self.coordinate_to_cell_key(self.cursor_coordinate)
        return row_key.value

    def on_click(self, event: Click) -> None:
        """Post RowDoubleClicked on a double-click (chain == 2)."""
        if event.chain == 2 and self.row_count > 0:
            self.post_message(EntryTable.RowDoubleClicked())
