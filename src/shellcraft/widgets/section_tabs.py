"""Horizontal section indicator bar."""

from textual.app import ComposeResult
from textual.events import Click
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from shellcraft.constants import DEFAULT_SECTION, SECTION_TITLES, SECTIONS


class SectionTabs(Widget):
    """A read-only bar showing the sections, with the active one highlighted.

    Renders as:  Aliases  [Functions]  PATH  Environment Variables

    ``current_section`` is kept in sync by the app.  A section with unsaved
    changes gets a trailing ``*``.  Clicking a tab posts
    ``SectionTabs.TabClicked``, the same flow as pressing ``e``.
    """

    class TabClicked(Message):
        """Posted when the user clicks a section tab."""

        def __init__(self, section: str) -> None:
            super().__init__()
            self.section = section

    can_focus = False

    current_section: reactive[str] = reactive(DEFAULT_SECTION, init=False)

    def compose(self) -> ComposeResult:
        for section in SECTIONS:
            classes = "tab active" if section == DEFAULT_SECTION else "tab"
            yield Static(SECTION_TITLES[section], id=f"tab-{section}", classes=classes)

    def watch_current_section(self, section: str) -> None:
        """Highlight the active tab."""
        for name in SECTIONS:
            self.query_one(f"#tab-{name}", Static).set_class(name == section, "active")

    def mark_dirty(self, dirty: dict[str, bool]) -> None:
        """Append ``*`` to the titles of sections with pending changes."""
        for name in SECTIONS:
            suffix = " *" if dirty.get(name) else ""
            self.query_one(f"#tab-{name}", Static).update(SECTION_TITLES[name] + suffix)

    def on_click(self, event: Click) -> None:
        widget = event.widget
        if widget is None or not widget.has_class("tab") or not widget.id:
            return
        self.post_message(SectionTabs.TabClicked(widget.id.removeprefix("tab-")))
