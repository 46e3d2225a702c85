"""Timestamped backups of shell config files.

Every overwrite through ``shellcraft.fileio.write_file`` first copies the
previous content to::

    ~/.config/shellcraft/backups/<key>/<filename>.<timestamp>

where ``<key>`` is the file's real path relative to the home directory,
with ``/`` written as ``%2F`` (``.zshrc``, ``dotfiles%2F.zshrc``).  Only the
newest ``keep`` copies per file are retained.
"""

import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from loguru import logger

from shellcraft.domain.text import expand_tilde, home_dir

BACKUP_ROOT = Path("~/.config/shellcraft/backups").expanduser()

DEFAULT_KEEP = 20


class BackupError(Exception):
    """Raised when a backup cannot be created or restored."""


@dataclass
class BackupInfo:
    path: Path
    filename: str
    modified: datetime
    size: int


def backup_key(path: str) -> str:
    """Directory name under ``BACKUP_ROOT`` for the file at *path*."""
    target = Path(os.path.realpath(expand_tilde(path)))
    try:
        name = str(target.relative_to(os.path.realpath(home_dir())))
    except ValueError:
        name = str(target)
    return name.replace("%", "%25").replace("/", "%2F")


def backup_file(path: str, keep: int = DEFAULT_KEEP) -> Path | None:
    """Copy *path* into the backup store and prune old copies.

    Returns the backup path, or None if *path* does not exist.
    """
    source = Path(expand_tilde(path))
    if not source.exists():
        return None

    backup_dir = BACKUP_ROOT / backup_key(path)
    # Microseconds keep two saves within the same second apart.
    stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S.%f")
    target = backup_dir / f"{source.name}.{stamp}"
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        _prune(backup_dir, keep)
    except OSError as exc:
        raise BackupError(f"Could not back up {path}: {exc}") from exc

    logger.debug("Backed up {} to {}", path, target)
    return target


def list_backups(path: str) -> list[BackupInfo]:
    """Return the backups stored for the file at *path*, newest first."""
    backup_dir = BACKUP_ROOT / backup_key(path)
    if not backup_dir.is_dir():
        return []

    backups: list[BackupInfo] = []
    for entry in backup_dir.iterdir():
        if not entry.is_file():
            continue
        stat = entry.stat()
        backups.append(
            BackupInfo(
                path=entry,
                filename=entry.name,
                modified=datetime.fromtimestamp(stat.st_mtime),
                size=stat.st_size,
            )
        )
    # Names sort chronologically; mtime is preserved from the original by copy2.
    return sorted(backups, key=lambda b: b.filename, reverse=True)


def restore_backup(backup: BackupInfo, original_path: str, keep: int = DEFAULT_KEEP) -> None:
    """Put *backup* back in place of *original_path*.

    The backup is staged next to the target before the current file is
    backed up, since that backup may prune the one being restored.  The
    staged copy then replaces the target in one ``os.replace``; on failure
    the target is left as it was.
    """
    target = Path(os.path.realpath(expand_tilde(original_path)))
    staged = target.with_name(target.name + ".shellcraft-restore")
    try:
        shutil.copy2(backup.path, staged)
        backup_file(str(target), keep=keep)
        os.replace(staged, target)
    except (OSError, BackupError) as exc:
        staged.unlink(missing_ok=True)
        raise BackupError(f"Could not restore {backup.filename}: {exc}") from exc

    logger.info("Restored {} from {}", original_path, backup.filename)


def _prune(directory: Path, keep: int) -> None:
    names = sorted(p.name for p in directory.iterdir() if p.is_file())
    for name in names[: max(0, len(names) - keep)]:
        (directory / name).unlink()
