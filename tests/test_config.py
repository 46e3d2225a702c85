"""Unit tests for settings loading, validation, and persistence."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from shellcraft.config import (
    ConfigError,
    Settings,
    load_settings,
    load_ui_state,
    save_settings,
    save_ui_state,
)


def _write(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


class TestSettings:
    def test_defaults(self):
        """
        Given no arguments
        When Settings is constructed
        Then it reads ~/.zshrc and ~/.zprofile and backs up 20 copies
        """
        settings = Settings()
        assert settings.files == ["~/.zshrc", "~/.zprofile"]
        assert settings.primary_file == "~/.zshrc"
        assert settings.backup is True
        assert settings.backup_keep == 20
        assert settings.check_conflicts is True

    def test_empty_file_list_is_rejected(self):
        """
        Given an empty files list
        When Settings is validated
        Then a ValidationError is raised
        """
        with pytest.raises(ValidationError):
            Settings(files=[])

    def test_backup_keep_must_be_positive(self):
        """
        Given backup_keep of zero
        When Settings is validated
        Then a ValidationError is raised
        """
        with pytest.raises(ValidationError):
            Settings(backup_keep=0)

    def test_log_level_is_normalised(self):
        """
        Given a lowercase log level
        When Settings is validated
        Then it is stored uppercased, and unknown levels are rejected
        """
        assert Settings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")


class TestLoadSettings:
    def test_bootstraps_when_missing(self, home: Path):
        """
        Given no config file exists
        When load_settings is called
        Then defaults are returned and the file and README are created
        """
        result = load_settings()

        assert result == Settings()
        config_dir = home / ".config" / "shellcraft"
        assert json.loads((config_dir / "config.json").read_text()) == {}
        assert (config_dir / "README.md").exists()

    def test_valid_file_is_parsed(self, home: Path):
        """
        Given a config file overriding files and backups
        When load_settings is called
        Then the overrides are applied
        """
        _write(
            home / ".config" / "shellcraft" / "config.json",
            {"files": ["~/.zshrc", "~/.aliases"], "backup": False},
        )
        settings = load_settings()
        assert settings.files == ["~/.zshrc", "~/.aliases"]
        assert settings.backup is False

    def test_underscore_keys_are_stripped(self, home: Path):
        """
        Given a config with a _comment key
        When load_settings is called
        Then the comment is ignored
        """
        _write(home / ".config" / "shellcraft" / "config.json", {"_comment": "hi", "backup_keep": 5})
        assert load_settings().backup_keep == 5

    def test_invalid_json_raises_config_error(self, home: Path):
        """
        Given a config file that is not JSON
        When load_settings is called
        Then ConfigError is raised
        """
        path = home / ".config" / "shellcraft" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_settings()

    def test_non_object_root_raises_config_error(self, home: Path):
        """
        Given a config whose root is a list
        When load_settings is called
        Then ConfigError is raised
        """
        _write(home / ".config" / "shellcraft" / "config.json", ["~/.zshrc"])
        with pytest.raises(ConfigError):
            load_settings()

    def test_invalid_field_raises_config_error(self, home: Path):
        """
        Given a config with a wrongly typed field
        When load_settings is called
        Then ConfigError is raised
        """
        _write(home / ".config" / "shellcraft" / "config.json", {"files": "~/.zshrc"})
        with pytest.raises(ConfigError):
            load_settings()


class TestSaveSettings:
    def test_round_trip(self):
        """
        Given custom settings
        When they are saved and loaded again
        Then the loaded settings are equal
        """
        settings = Settings(files=["~/.zshrc"], check_conflicts=False)
        save_settings(settings)
        assert load_settings() == settings


class TestUiState:
    def test_round_trip_merges(self):
        """
        Given no saved UI state
        When the theme and then the section are saved
        Then both are loaded back
        """
        assert load_ui_state() == {}
        save_ui_state(theme="nord")
        save_ui_state(section="path")
        assert load_ui_state() == {"theme": "nord", "section": "path"}

    def test_corrupt_file_is_ignored(self, home: Path):
        """
        Given a UI state file that is not JSON
        When load_ui_state is called
        Then an empty state is returned
        """
        path = home / ".config" / "shellcraft" / "ui.json"
        path.parent.mkdir(parents=True)
        path.write_text("nope")
        assert load_ui_state() == {}

    def test_non_string_values_are_dropped(self, home: Path):
        """
        Given a UI state file with a non-string value
        When load_ui_state is called
        Then only string values are returned
        """
        _write(home / ".config" / "shellcraft" / "ui.json", {"theme": "nord", "section": 3})
        assert load_ui_state() == {"theme": "nord"}
