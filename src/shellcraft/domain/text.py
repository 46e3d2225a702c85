"""Pure string helpers shared by the line parser, writer and file layer.

Nothing here touches the filesystem except for reading the home directory
from the environment, so ``~`` handling can be redirected in tests by
setting ``HOME``.
"""

import os

_QUOTES = ("'", '"')


def home_dir() -> str:
    return os.path.expanduser("~")


def expand_tilde(path: str) -> str:
    """Expand a leading ``~`` or ``~/`` to the home directory.

    ``~user`` forms are left alone.
    """
    if path == "~":
        return home_dir()
    if path.startswith("~/"):
        return home_dir() + path[1:]
    return path


def contract_tilde(path: str) -> str:
    """Replace a leading home-directory prefix with ``~``."""
    home = home_dir()
    if path == home:
        return "~"
    if path.startswith(home + "/"):
        return "~" + path[len(home) :]
    return path


def expand_home_vars(value: str) -> str:
    """Expand ``${HOME}``, ``$HOME`` and a leading ``~``."""
    home = home_dir()
    value = value.replace("${HOME}", home).replace("$HOME", home)
    return expand_tilde(value)


def unquote(value: str) -> str:
    """Strip surrounding whitespace and one matching pair of quotes."""
    s = value.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in _QUOTES:
        return s[1:-1]
    return s


def quote_char(value: str) -> str:
    """Return the quote character wrapping *value*, or an empty string."""
    s = value.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in _QUOTES:
        return s[0]
    return ""


def leading_whitespace(line: str) -> int:
    """Count leading spaces and tabs."""
    return len(line) - len(line.lstrip(" \t"))


def strip_common_indentation(lines: list[str]) -> str:
    """Dedent *lines* by their smallest indentation and join with newlines.

    Blank lines do not count towards the minimum and come out empty.
    """
    non_blank = [line for line in lines if line.strip()]
    if not non_blank:
        return "\n".join(lines)

    indent = min(leading_whitespace(line) for line in non_blank)
    if indent == 0:
        return "\n".join(lines)

    return "\n".join("" if not line.strip() else line[indent:] for line in lines)
