"""Application-wide constants."""

APP_TITLE = "shellcraft"

# Scanned in this order on a default load.
DEFAULT_FILES: list[str] = ["~/.zshrc", "~/.zprofile"]

# New entities land here unless they say otherwise.
PRIMARY_FILE: str = "~/.zshrc"

SECTIONS: list[str] = ["aliases", "functions", "path", "env"]
DEFAULT_SECTION: str = "aliases"

SECTION_TITLES: dict[str, str] = {
    "aliases": "Aliases",
    "functions": "Functions",
    "path": "PATH",
    "env": "Environment Variables",
}

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "aliases": ("#", "Name", "Expansion", "Category", "Source"),
    "functions": ("#", "Name", "Description", "Lines", "Source"),
    "path": ("#", "Path", "Exists", "Source"),
    "env": ("#", "Key", "Value", "Source"),
}

HELP_TEXT = """\
 Navigation
 ──────────────────────────────
 j / ↓        Move down
 k / ↑        Move up
 g g          Jump to top
 G            Jump to bottom
 e / Tab      Next section

 Edit
 ──────────────────────────────
 i / Enter    Edit selected entry
 o            Add new entry
 d d          Delete selected entry
 t            Toggle alias on/off
 J / K        Move PATH entry down/up
 x            Discard pending changes
 s            Save (shows diff first)
 r            Reload from disk

 Search
 ──────────────────────────────
 /            Open search
 Escape       Clear search / close

 General
 ──────────────────────────────
 y            Copy value to clipboard
 ?            Toggle this help
 q            Quit\
"""
