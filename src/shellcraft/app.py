"""Main application entry point."""

from dataclasses import replace

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.reactive import reactive
from textual.widgets import Footer, Header, Input, LoadingIndicator

from shellcraft.config import Settings, load_ui_state, save_ui_state
from shellcraft.constants import APP_TITLE, DEFAULT_SECTION, SECTION_TITLES, SECTIONS
from shellcraft.fileio import FileIOError
from shellcraft.models import EnvironmentVariable, PathEntry, ShellAlias, ShellFunction
from shellcraft.screens.alias import AliasScreen
from shellcraft.screens.confirm import ConfirmScreen
from shellcraft.screens.env import EnvScreen
from shellcraft.screens.function import FunctionScreen
from shellcraft.screens.help import HelpScreen
from shellcraft.screens.path import PathScreen
from shellcraft.screens.save_confirm import SaveConfirmScreen
from shellcraft.sections import (
    AliasSection,
    ConflictError,
    EnvSection,
    FunctionSection,
    PathSection,
    Section,
    all_sections,
)
from shellcraft.widgets.entry_table import EntryTable
from shellcraft.widgets.section_tabs import SectionTabs


def _provenance(item) -> str:
    """Where *item* lives on disk, as ``file:line``."""
    if isinstance(item, ShellFunction):
        start, end = item.line_range
        line = f"{start}-{end}" if start else ""
    else:
        line = str(item.line_number) if item.line_number else ""
    return f"{item.source_file}:{line}" if line else f"{item.source_file} (not saved yet)"


class ShellCraftApp(App):
    """shellcraft: edit zsh startup files without losing their layout."""

    CSS_PATH = "app.tcss"
    TITLE = APP_TITLE

    dirty: reactive[bool] = reactive(False)
    loading: reactive[bool] = reactive(False)
    current_section: reactive[str] = reactive(DEFAULT_SECTION, init=False)

    BINDINGS = [
        Binding("q", "quit_app", "Quit"),
        Binding("?", "toggle_help", "Help"),
        Binding("/", "focus_search", "Search"),
        Binding("escape", "clear_search", show=False),
        Binding("g", "jump_top", show=False),
        Binding("G", "jump_bottom", show=False),
        Binding("y", "copy_value", "Copy"),
        Binding("i", "edit_entry", "Edit"),
        Binding("enter", "edit_entry", show=False),
        Binding("o", "add_entry", "Add"),
        Binding("d", "delete_entry", "dd Delete"),
        Binding("t", "toggle_alias", "Toggle"),
        Binding("J", "move_down", show=False),
        Binding("K", "move_up", show=False),
        Binding("x", "discard", "Discard"),
        Binding("s", "save", "Save"),
        Binding("r", "reload", "Reload"),
        Binding("e", "next_section", "Section"),
        Binding("tab", "next_section", show=False),
    ]

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__()
        self._settings = settings or Settings()
        self._sections: dict[str, Section] = all_sections(self._settings)
        self._filter: str = ""
        self._g_pressed: bool = False
        self._d_pressed: bool = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield SectionTabs(id="section-tabs")
        with Vertical(id="main"):
            yield Input(placeholder="Search names, values and paths…", id="search")
            yield EntryTable(id="entry-table")
            yield LoadingIndicator(id="loading")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#search", Input).display = False
        self.query_one("#loading", LoadingIndicator).display = False
        state = load_ui_state()
        if state.get("theme"):
            self.theme = state["theme"]
        if state.get("section") in SECTIONS:
            self.current_section = state["section"]
        self._load_all()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_all(self) -> None:
        """Parse every configured file and fill all sections."""
        self.loading = True
        self._read_files()

    @work(thread=True, exclusive=True, group="load")
    def _read_files(self) -> None:
        """Read and parse the files off the event loop."""
        error = ""
        try:
            for section in self._sections.values():
                section.load()
        except FileIOError as exc:
            error = str(exc)
        self.call_from_thread(self._finish_load, error)

    def _finish_load(self, error: str) -> None:
        self.loading = False
        if error:
            self.notify(f"Load failed: {error}", severity="error", timeout=8)
        for warning in self._sections["aliases"].warnings:
            self.notify(warning, severity="warning", timeout=8)
        self._sync_dirty()
        self._get_table().focus()
        self._validate_paths()

    @work(thread=True, exclusive=True, group="validate")
    def _validate_paths(self) -> None:
        """Check PATH entries against the filesystem off the event loop."""
        self.path_section.validate()
        if self.current_section == "path":
            self.call_from_thread(self._refresh_table)

    # ------------------------------------------------------------------
    # Section access
    # ------------------------------------------------------------------

    @property
    def section(self) -> Section:
        return self._sections[self.current_section]

    @property
    def path_section(self) -> PathSection:
        return self._sections["path"]  # type: ignore[return-value]

    def _get_table(self) -> EntryTable:
        return self.query_one("#entry-table", EntryTable)

    def _visible_items(self) -> list:
        items = self.section.items
        return [item for item in items if item.matches(self._filter)] if self._filter else items

    def _selected(self):
        """Return the entry under the cursor, or None."""
        item_id = self._get_table().selected_id()
        return self.section.get(item_id) if item_id else None

    def _refresh_table(self) -> None:
        """Repopulate the table, applying the current filter if any."""
        table = self._get_table()
        row = table.cursor_row
        table.load(self.current_section, self._visible_items())
        if table.row_count:
            table.move_cursor(row=min(row, table.row_count - 1))

    def _update_subtitle(self) -> None:
        section = self.section
        base = f"{SECTION_TITLES[self.current_section]} · {len(section.items)} entries"
        if isinstance(section, EnvSection) and section.keychain_count:
            base += f" · {section.keychain_count} from keychain"
        n = len(section.pending_changes()) if section.dirty else 0
        if n == 1:
            self.sub_title = f"{base}  1 unsaved change"
        elif n > 1:
            self.sub_title = f"{base}  {n} unsaved changes"
        else:
            self.sub_title = base

    def _sync_dirty(self) -> None:
        """Propagate section dirty flags to the tab bar, subtitle and table."""
        flags = {name: section.dirty for name, section in self._sections.items()}
        self.query_one("#section-tabs", SectionTabs).mark_dirty(flags)
        self.dirty = any(flags.values())
        self._refresh_table()
        self._update_subtitle()

    # ------------------------------------------------------------------
    # Watchers and messages
    # ------------------------------------------------------------------

    def watch_dirty(self, dirty: bool) -> None:
        self._update_subtitle()

    def watch_loading(self, loading: bool) -> None:
        """Show or hide the loading overlay."""
        self.query_one("#loading", LoadingIndicator).display = loading
        self._get_table().display = not loading

    def watch_theme(self, theme: str) -> None:
        """Persist theme changes whenever the theme is changed."""
        save_ui_state(theme=theme)

    def watch_current_section(self, section: str) -> None:
        save_ui_state(section=section)
        self.query_one("#section-tabs", SectionTabs).current_section = section
        self._refresh_table()
        self._update_subtitle()
        self._get_table().focus()

    def on_section_tabs_tab_clicked(self, event: SectionTabs.TabClicked) -> None:
        event.stop()
        self.current_section = event.section

    def on_entry_table_row_double_clicked(self, event: EntryTable.RowDoubleClicked) -> None:
        event.stop()
        self.action_edit_entry()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self._filter = event.value
            self._refresh_table()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search":
            self._get_table().focus()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def action_next_section(self) -> None:
        """Advance to the next section (wraps around)."""
        idx = SECTIONS.index(self.current_section)
        self.current_section = SECTIONS[(idx + 1) % len(SECTIONS)]

    def action_toggle_help(self) -> None:
        self.push_screen(
            HelpScreen(self.current_section, self._settings.files, self._settings.primary_file)
        )

    def action_focus_search(self) -> None:
        """Show and focus the search bar."""
        search = self.query_one("#search", Input)
        search.display = True
        search.focus()

    def action_clear_search(self) -> None:
        """Clear active filter and hide the search bar."""
        search = self.query_one("#search", Input)
        if search.value:
            search.value = ""
            self._filter = ""
            self._refresh_table()
        search.display = False
        self._get_table().focus()

    def action_jump_top(self) -> None:
        """Vim-style gg: the first g arms the chord, a second g within 0.5s jumps."""
        if self._g_pressed:
            self._g_pressed = False
            self._get_table().move_cursor(row=0)
        else:
            self._g_pressed = True
            self.set_timer(0.5, self._reset_g)

    def _reset_g(self) -> None:
        self._g_pressed = False

    def action_jump_bottom(self) -> None:
        table = self._get_table()
        table.move_cursor(row=table.row_count - 1)

    def action_copy_value(self) -> None:
        """Copy the selected entry's value (or function source) to the clipboard."""
        item = self._selected()
        if item is None:
            return
        if isinstance(item, ShellAlias):
            value = item.expansion
        elif isinstance(item, ShellFunction):
            value = item.full_text
        elif isinstance(item, PathEntry):
            value = item.path
        else:
            value = item.value
        self.copy_to_clipboard(value)
        self.notify("Copied to clipboard", timeout=2)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _names(self) -> set[str]:
        section = self.section
        return {section.label(item) for item in section.items}

    def action_edit_entry(self) -> None:
        """Open the edit modal matching the current section."""
        item = self._selected()
        if item is None:
            return
        section = self.section

        def on_save(result) -> None:
            if result is not None and result != item:
                section.update(result)
                self._sync_dirty()
                self.notify(f"Updated {section.label(result)}", timeout=2)
                if isinstance(section, PathSection):
                    self._validate_paths()
            self._get_table().focus()

        if isinstance(item, ShellAlias):
            self.push_screen(AliasScreen(self._names(), item), on_save)
        elif isinstance(item, ShellFunction):
            self.push_screen(FunctionScreen(self._names(), item), on_save)
        elif isinstance(item, EnvironmentVariable):
            self.push_screen(EnvScreen(self._names(), item), on_save)
        elif isinstance(item, PathEntry):

            def on_path(path: str | None) -> None:
                on_save(replace(item, path=path) if path is not None else None)

            self.push_screen(PathScreen(self._names(), item.path), on_path)

    def action_add_entry(self) -> None:
        """Open the add modal matching the current section."""
        section = self.section

        def added(label: str) -> None:
            self._sync_dirty()
            self._get_table().move_cursor(row=self._get_table().row_count - 1)
            self.notify(f"Added {label}", timeout=2)

        def on_alias(alias: ShellAlias | None) -> None:
            if alias is not None and isinstance(section, AliasSection):
                added(section.add(alias.name, alias.expansion, alias.is_enabled).name)
            self._get_table().focus()

        def on_function(function: ShellFunction | None) -> None:
            if function is not None and isinstance(section, FunctionSection):
                added(section.add(function.name, function.body, function.description).name)
            self._get_table().focus()

        def on_env(variable: EnvironmentVariable | None) -> None:
            if variable is not None and isinstance(section, EnvSection):
                added(section.add(variable.key, variable.value, variable.is_keychain_derived).key)
            self._get_table().focus()

        def on_path(path: str | None) -> None:
            if path is not None and isinstance(section, PathSection):
                added(section.add(path).path)
            self._get_table().focus()

        if isinstance(section, AliasSection):
            self.push_screen(AliasScreen(self._names()), on_alias)
        elif isinstance(section, FunctionSection):
            self.push_screen(FunctionScreen(self._names()), on_function)
        elif isinstance(section, EnvSection):
            self.push_screen(EnvScreen(self._names()), on_env)
        elif isinstance(section, PathSection):
            self.push_screen(PathScreen(self._names()), on_path)

    def action_delete_entry(self) -> None:
        """Vim-style dd: delete the selected entry on the second d press."""
        if not self._d_pressed:
            self._d_pressed = True
            self.set_timer(0.5, self._reset_d)
            return

        self._d_pressed = False
        item = self._selected()
        if item is None:
            return
        section = self.section
        label = section.label(item)

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                section.delete(item)
                self._sync_dirty()
                self.notify(f"Deleted {label}", timeout=2)
            self._get_table().focus()

        self.push_screen(ConfirmScreen(f"Delete  {label}?", _provenance(item)), on_confirm)

    def _reset_d(self) -> None:
        self._d_pressed = False

    def action_toggle_alias(self) -> None:
        """Comment out or re-enable the selected alias."""
        section = self.section
        item = self._selected()
        if not isinstance(section, AliasSection) or item is None:
            return
        section.toggle_enabled(item)
        self._sync_dirty()
        state = "enabled" if item.is_enabled else "disabled"
        self.notify(f"{item.name} {state}", timeout=2)

    def _move(self, offset: int) -> None:
        if self.current_section != "path" or self._filter:
            return
        table = self._get_table()
        row = table.cursor_row
        self.path_section.move(row, row + offset)
        self._sync_dirty()
        table.move_cursor(row=max(0, min(row + offset, table.row_count - 1)))

    def action_move_down(self) -> None:
        self._move(1)

    def action_move_up(self) -> None:
        self._move(-1)

    def action_discard(self) -> None:
        """Drop pending changes in the current section."""
        section = self.section
        if not section.dirty:
            self.notify("Nothing to discard", timeout=2)
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                section.discard()
                self._sync_dirty()
                self.notify(f"Discarded changes to {section.title}", timeout=2)
            self._get_table().focus()

        self.push_screen(ConfirmScreen(f"Discard unsaved changes to {section.title}?"), on_confirm)

    # ------------------------------------------------------------------
    # Save / reload
    # ------------------------------------------------------------------

    def action_save(self) -> None:
        """Show the pending changes and write them once confirmed."""
        section = self.section
        changes = section.pending_changes()
        if not section.dirty or not changes:
            self.notify("No changes to save", timeout=2)
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._save(section)
            self._get_table().focus()

        files = list(section.modifications())
        self.push_screen(
            SaveConfirmScreen(section.title, changes, files, backup=self._settings.backup), on_confirm
        )

    def _save(self, section: Section, force: bool = False) -> None:
        try:
            written = section.save(force=force)
        except ConflictError as exc:

            def on_overwrite(confirmed: bool | None) -> None:
                if confirmed:
                    self._save(section, force=True)

            self.push_screen(
                ConfirmScreen(
                    f"{exc.path} changed on disk. Overwrite anyway?",
                    "Your edits were computed against the version loaded earlier.",
                    confirm_label="Overwrite",
                ),
                on_overwrite,
            )
            return
        except FileIOError as exc:
            self.notify(f"Save failed: {exc}", severity="error", timeout=8)
            return

        # Other sections read the same files; refresh the ones with nothing pending.
        for other in self._sections.values():
            if other is not section and not other.dirty:
                try:
                    other.load()
                except FileIOError as exc:
                    self.notify(f"Reload failed: {exc}", severity="error", timeout=8)
        self._sync_dirty()
        self._validate_paths()
        self.notify(f"Saved {', '.join(written) or 'nothing'}", timeout=3)

    def action_reload(self) -> None:
        """Re-read every file from disk, asking first if edits would be lost."""
        if not self.dirty:
            self._load_all()
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._load_all()
            else:
                self._get_table().focus()

        self.push_screen(ConfirmScreen("Discard all unsaved changes and reload?"), on_confirm)

    def action_quit_app(self) -> None:
        if not self.dirty:
            self.exit()
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self.exit()

        self.push_screen(ConfirmScreen("You have unsaved changes. Quit anyway?"), on_confirm)


def main(settings: Settings | None = None) -> None:
    ShellCraftApp(settings).run()


if __name__ == "__main__":
    main()
