"""Shared fixtures.

Every test runs with HOME pointed at its own tmp_path, so ``~/.zshrc``,
the backup store, the settings file and the log file all live inside the
sandbox.
"""

from pathlib import Path

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def home(tmp_path: Path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / ".local" / "state"))
    config_dir = home / ".config" / "shellcraft"
    monkeypatch.setattr("shellcraft.backup.BACKUP_ROOT", config_dir / "backups")
    monkeypatch.setattr("shellcraft.config.CONFIG_PATH", config_dir / "config.json")
    monkeypatch.setattr("shellcraft.config._README_PATH", config_dir / "README.md")
    monkeypatch.setattr("shellcraft.config.UI_STATE_PATH", config_dir / "ui.json")
    yield home
    # CLI runs add sinks bound to the runner's streams and this tmp_path.
    logger.remove()


@pytest.fixture
def write_rc(home: Path):
    """Write a file under HOME and return its ``~``-relative name."""

    def _write(name: str, content: str) -> str:
        path = home / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return f"~/{name}"

    return _write
