"""Settings file loading, validation, and persistence.

Schema on disk (~/.config/shellcraft/config.json):

    {
        "files": ["~/.zshrc", "~/.zprofile"],
        "primary_file": "~/.zshrc",
        "backup": true,
        "backup_keep": 20,
        "check_conflicts": true,
        "log_level": "INFO"
    }

Every key is optional.  Keys prefixed with "_" are reserved (e.g. "_comment")
and are stripped on load.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from shellcraft.constants import DEFAULT_FILES, PRIMARY_FILE

CONFIG_PATH = Path("~/.config/shellcraft/config.json").expanduser()

_README_PATH = Path("~/.config/shellcraft/README.md").expanduser()

_README_CONTENT = """\
# shellcraft configuration

Edit `config.json` in this directory to change which shell files shellcraft
reads and how it writes them back.

## Schema

```json
{
    "files": ["~/.zshrc", "~/.zprofile"],
    "primary_file": "~/.zshrc",
    "backup": true,
    "backup_keep": 20,
    "check_conflicts": true,
    "log_level": "INFO"
}
```

- `files`: scanned in order; `source`/`.` lines inside them are followed.
- `primary_file`: where new aliases, functions and variables are appended.
- `backup` / `backup_keep`: copy each file to `backups/` before overwriting it.
- `check_conflicts`: refuse to save if a file changed on disk since it was loaded.

Keys prefixed with `_` (e.g. `_comment`) are ignored by shellcraft.
"""

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseModel):
    """User-adjustable behaviour."""

    files: list[str] = Field(default_factory=lambda: list(DEFAULT_FILES))
    primary_file: str = PRIMARY_FILE
    backup: bool = True
    backup_keep: int = Field(default=20, ge=1)
    check_conflicts: bool = True
    log_level: str = "INFO"

    @field_validator("files")
    @classmethod
    def _files_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one file is required")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


class ConfigError(Exception):
    """Raised when config.json exists but cannot be parsed or validated."""


def load_settings() -> Settings:
    """Load and validate the settings file.

    Creates the config directory, an empty config.json, and a README on first
    run, returning defaults.  Raises ConfigError if the file exists but is
    malformed.
    """
    if not CONFIG_PATH.exists():
        _bootstrap()
        return Settings()

    try:
        raw: object = json.loads(CONFIG_PATH.read_text() or "{}")
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config.json is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("config.json must be a JSON object at the top level")

    # Strip reserved/comment keys.
    data = {k: v for k, v in raw.items() if not k.startswith("_")}

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist settings to disk, creating directories as needed."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(json.dumps(settings.model_dump(), indent=2))


def _bootstrap() -> None:
    """Create the config directory, an empty config.json, and a README."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text("{}\n")
    if not _README_PATH.exists():
        _README_PATH.write_text(_README_CONTENT)


# Theme and last section. Never written into config.json.
UI_STATE_PATH = Path("~/.config/shellcraft/ui.json").expanduser()


def load_ui_state() -> dict[str, str]:
    """Return the saved UI state, or an empty dict if there is none."""
    try:
        data = json.loads(UI_STATE_PATH.read_text())
    except (OSError, json.JSONDecodeError):
        return {}
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if isinstance(v, str)}


def save_ui_state(**changes: str) -> None:
    """Merge *changes* into the saved UI state."""
    state = load_ui_state() | changes
    UI_STATE_PATH.parent.mkdir(parents=True, exist_ok=True)
    UI_STATE_PATH.write_text(json.dumps(state, indent=2))
