"""Loguru setup.

The CLI logs to stderr and a rotating file. The TUI logs to the file only.

    macOS: ~/Library/Logs/shellcraft/shellcraft.log
    Linux: ~/.local/state/shellcraft/log/shellcraft.log
"""

import sys
from pathlib import Path

import platformdirs
from loguru import logger

_CONSOLE_FORMAT = "<level>{level: <8}</level> {message}"


def setup_logger(level: str = "INFO", console: bool = True, log_dir: Path | None = None):
    """Replace loguru's default handler with shellcraft's sinks."""
    logger.remove()

    if console:
        logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)

    directory = log_dir or Path(platformdirs.user_log_dir(appname="shellcraft", ensure_exists=True))
    logger.add(
        str(directory / "shellcraft.log"),
        level="DEBUG",
        rotation="5 MB",
        retention="14 days",
    )
    return logger
