"""Reading and atomically writing shell config files.

Paths may start with ``~``.  Files are split on ``\\n`` only, so a file
ending in a newline yields a trailing empty element and
``"\\n".join(read_lines(p))`` reproduces the file exactly.

Raises ``FileIOError`` for any read or write failure.
"""

import os
import stat
import tempfile
from pathlib import Path

from loguru import logger

from shellcraft.backup import DEFAULT_KEEP, BackupError, backup_file
from shellcraft.domain.text import expand_tilde


class FileIOError(Exception):
    """Raised when a config file cannot be read or written."""


def file_exists(path: str) -> bool:
    return Path(expand_tilde(path)).is_file()


def read_file(path: str) -> str:
    try:
        return Path(expand_tilde(path)).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileIOError(f"Could not read {path}: {exc}") from exc


def read_lines(path: str) -> list[str]:
    return read_file(path).split("\n")


def write_file(path: str, content: str, backup: bool = True, keep: int = DEFAULT_KEEP) -> None:
    """Write *content* to *path* atomically.

    Symlinks are resolved so the real file is replaced rather than the
    link.  The previous content is backed up first when *backup* is set,
    and the original permission bits are carried over to the new file.
    """
    target = Path(os.path.realpath(expand_tilde(path)))
    exists = target.exists()

    if backup and exists:
        try:
            backup_file(str(target), keep=keep)
        except BackupError as exc:
            raise FileIOError(str(exc)) from exc

    tmp: Path | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp = Path(f.name)
            f.write(content)
        # Temp files are created 0600; new files get the usual umask default.
        mode = stat.S_IMODE(target.stat().st_mode) if exists else 0o666 & ~_current_umask()
        os.chmod(tmp, mode)
        os.replace(tmp, target)
    except OSError as exc:
        if tmp is not None:
            tmp.unlink(missing_ok=True)
        raise FileIOError(f"Could not write {path}: {exc}") from exc

    logger.debug("Wrote {} ({} bytes)", target, len(content))


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_lines(lines: list[str], path: str, backup: bool = True, keep: int = DEFAULT_KEEP) -> None:
    write_file(path, "\n".join(lines), backup=backup, keep=keep)
