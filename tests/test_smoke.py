"""Headless TUI smoke tests covering critical user journeys."""

import threading
from pathlib import Path
from typing import cast

import pytest
from textual.widgets import Input, Label, Static

from shellcraft.app import ShellCraftApp
from shellcraft.config import Settings
from shellcraft.screens.alias import AliasScreen
from shellcraft.screens.confirm import ConfirmScreen
from shellcraft.screens.env import EnvScreen
from shellcraft.screens.function import FunctionScreen
from shellcraft.screens.help import HelpScreen
from shellcraft.sections import Section
from shellcraft.widgets.entry_table import EntryTable

ZSHRC = """\
alias ll='ls -la'
alias gs='git status'
alias dps='docker ps'
export EDITOR="nvim"
export PATH="/opt/homebrew/bin:/usr/local/bin:$PATH"

mkcd() {
  mkdir -p "$1"
  cd "$1"
}
"""

ALIAS_COUNT = 3


@pytest.fixture(autouse=True)
def zshrc(write_rc, home: Path) -> Path:
    write_rc(".zshrc", ZSHRC)
    return home / ".zshrc"


def make_app() -> ShellCraftApp:
    return ShellCraftApp(Settings(files=["~/.zshrc"]))


async def wait_loaded(pilot) -> None:
    """Wait for all background workers (load / validate) to finish."""
    # The file-reading worker starts PATH validation as it finishes.
    for _ in range(2):
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()


def table(pilot) -> EntryTable:
    return pilot.app.query_one("#entry-table", EntryTable)


class TestMount:
    async def test_table_populated_on_mount(self):
        """
        Given a zshrc with three aliases
        When the UI mounts
        Then the alias table has three rows
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            assert table(pilot).row_count == ALIAS_COUNT

    async def test_search_hidden_on_mount(self):
        """
        Given the app is launched
        When the UI mounts
        Then the search input is hidden
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            assert pilot.app.query_one("#search", Input).display is False

    async def test_table_focused_and_clean(self):
        """
        Given the app is launched
        When loading completes
        Then the table has focus and nothing is dirty
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            app = cast(ShellCraftApp, pilot.app)
            assert isinstance(app.focused, EntryTable)
            assert app.dirty is False
            assert app.loading is False

    async def test_files_are_read_off_the_event_loop(self, monkeypatch):
        """
        Given the app is launched
        When the sections load their files
        Then the reads happen outside the main thread
        """
        threads = []
        real_load = Section.load

        def recording_load(self):
            threads.append(threading.current_thread())
            real_load(self)

        monkeypatch.setattr(Section, "load", recording_load)
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            assert table(pilot).row_count == ALIAS_COUNT
        assert threads
        assert all(thread is not threading.main_thread() for thread in threads)

    async def test_unterminated_function_still_loads(self, zshrc: Path):
        """
        Given a zshrc whose last function is never closed
        When the UI mounts
        Then the entries before it are still shown
        """
        zshrc.write_text(ZSHRC + "broken() {\n  echo\n")
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            assert table(pilot).row_count == ALIAS_COUNT


class TestSections:
    async def test_e_cycles_sections(self):
        """
        Given the aliases section is showing
        When the user presses e three times
        Then functions, PATH and environment variables are shown in turn
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            app = cast(ShellCraftApp, pilot.app)

            await pilot.press("e")
            assert app.current_section == "functions"
            assert table(pilot).row_count == 1
            await pilot.press("e")
            assert app.current_section == "path"
            assert table(pilot).row_count == 2
            await pilot.press("e")
            assert app.current_section == "env"
            assert table(pilot).row_count == 1
            await pilot.press("e")
            assert app.current_section == "aliases"

    async def test_last_section_is_remembered(self):
        """
        Given the user switched to the functions section
        When the app is started again
        Then it opens on the functions section
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("e")

        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            assert cast(ShellCraftApp, pilot.app).current_section == "functions"
            assert table(pilot).row_count == 1

    async def test_path_entries_are_validated(self, zshrc: Path, home: Path):
        """
        Given one PATH entry that exists under HOME and one that does not
        When loading completes
        Then each entry carries its expanded path and existence
        """
        (home / "bin").mkdir()
        zshrc.write_text('export PATH="$HOME/bin:$HOME/nope:$PATH"\n')
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            app = cast(ShellCraftApp, pilot.app)
            entries = app.path_section.items
            assert entries[0].expanded_path == str(home / "bin")
            assert [e.exists for e in entries] == [True, False]


class TestSearch:
    async def test_typing_filters_rows(self):
        """
        Given the search bar is open
        When the user types a query matching one alias
        Then the table shows only that row
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("/")
            for ch in "docker":
                await pilot.press(ch)
            assert table(pilot).row_count == 1

    async def test_escape_clears_filter(self):
        """
        Given an active filter
        When the user presses Escape
        Then all rows are restored and the search bar is hidden
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("/")
            for ch in "docker":
                await pilot.press(ch)
            await pilot.press("escape")
            assert table(pilot).row_count == ALIAS_COUNT
            assert pilot.app.query_one("#search", Input).display is False


class TestNavigation:
    async def test_j_and_k_move_and_wrap(self):
        """
        Given the cursor on the first row
        When the user presses k, then j
        Then the cursor wraps to the last row and back to the first
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("k")
            assert table(pilot).cursor_row == ALIAS_COUNT - 1
            await pilot.press("j")
            assert table(pilot).cursor_row == 0

    async def test_G_and_gg(self):
        """
        Given the table is focused
        When the user presses G and then g g
        Then the cursor jumps to the last and then the first row
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("G")
            assert table(pilot).cursor_row == ALIAS_COUNT - 1
            await pilot.press("g")
            await pilot.press("g")
            assert table(pilot).cursor_row == 0

    async def test_help_opens(self):
        """
        Given the app is loaded
        When the user presses ?
        Then the help overlay lists the primary file
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("?")
            assert isinstance(pilot.app.screen, HelpScreen)
            files = str(pilot.app.screen.query_one("#help-files", Static).render())
            assert "> ~/.zshrc" in files


class TestEditing:
    async def test_i_opens_matching_screen(self):
        """
        Given the aliases, env and functions sections in turn
        When the user presses i in each
        Then the matching edit screen is opened
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("i")
            assert isinstance(pilot.app.screen, AliasScreen)
            await pilot.press("escape")
            await pilot.press("e", "e", "e")
            await pilot.press("i")
            assert isinstance(pilot.app.screen, EnvScreen)
            await pilot.press("escape")
            await pilot.press("e", "e")
            await pilot.press("i")
            assert isinstance(pilot.app.screen, FunctionScreen)

    async def test_edit_alias_marks_dirty(self, zshrc: Path):
        """
        Given the alias edit screen for the first alias
        When a new expansion is submitted
        Then the app is dirty and the file is not yet written
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            app = cast(ShellCraftApp, pilot.app)

            await pilot.press("i")
            app.screen.query_one("#alias-expansion", Input).value = "ls -lah"
            await pilot.press("enter")
            await pilot.pause()

            assert app.dirty is True
            assert "1 unsaved change" in app.sub_title
            assert zshrc.read_text() == ZSHRC

    async def test_add_alias(self):
        """
        Given the add screen
        When a name and expansion are typed and submitted
        Then the table has one more row
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("o")
            for ch in "kc":
                await pilot.press(ch)
            await pilot.press("enter")
            for ch in "kubectl":
                await pilot.press(ch)
            await pilot.press("enter")
            await pilot.pause()
            assert table(pilot).row_count == ALIAS_COUNT + 1

    async def test_duplicate_alias_is_rejected(self):
        """
        Given the add screen
        When an existing alias name is submitted
        Then the modal stays open
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("o")
            for ch in "ll":
                await pilot.press(ch)
            await pilot.press("enter")
            for ch in "echo":
                await pilot.press(ch)
            await pilot.press("enter")
            await pilot.pause()
            assert isinstance(pilot.app.screen, AliasScreen)

    async def test_dd_deletes_after_confirm(self):
        """
        Given the table is focused
        When the user presses d d and confirms
        Then the prompt names the entry's file and line and the row is removed
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            await pilot.press("d", "d")
            assert isinstance(pilot.app.screen, ConfirmScreen)
            detail = pilot.app.screen.query_one("#confirm-detail", Label)
            assert "~/.zshrc:1" in str(detail.render())
            await pilot.press("y")
            await pilot.pause()
            assert table(pilot).row_count == ALIAS_COUNT - 1

    async def test_t_toggles_alias(self):
        """
        Given an enabled alias under the cursor
        When the user presses t
        Then the alias is disabled and the app is dirty
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            app = cast(ShellCraftApp, pilot.app)
            await pilot.press("t")
            assert app.section.items[0].is_enabled is False
            assert app.dirty is True

    async def test_J_moves_path_entry(self):
        """
        Given the PATH section with the cursor on the first entry
        When the user presses J
        Then that entry moves down one place
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            app = cast(ShellCraftApp, pilot.app)
            await pilot.press("e", "e")
            await pilot.press("J")
            assert [e.path for e in app.path_section.items] == ["/usr/local/bin", "/opt/homebrew/bin"]
            assert table(pilot).cursor_row == 1

    async def test_x_discards(self):
        """
        Given a deleted alias
        When the user presses x and confirms
        Then the alias is back and the app is clean
        """
        async with make_app().run_test(headless=True) as pilot:
            await wait_loaded(pilot)
            app = cast(ShellCraftApp, pilot.app)
            await pilot.press("t")
            await pilot.press("x")
            await pilot.press("y")
            await pilot.pause()
            assert app.dirty is False
            assert app.section.items[0].is_enabled is True
