"""Single-line recognisers for the shell constructs shellcraft understands.

Every function takes one line of text and returns a structured result or
None.  None of them know which file the line came from or what surrounds
it; multi-line state (function bodies, ``source`` following) belongs to
``shellcraft.parser``.

The config parser tries the shapes in a fixed order, which also settles
lines that could be read more than one way:

    alias → function start → PATH → export → source
"""

import re
from typing import NamedTuple

from shellcraft.domain.text import expand_home_vars, quote_char, unquote

ALIAS_RE = re.compile(r"^alias\s+([^\s=]+)=(.+)$")
COMMENTED_ALIAS_RE = re.compile(r"^#\s*alias\s+([^\s=]+)=(.+)$")

FUNCTION_START_RE = re.compile(r"^(\w[\w-]*)\(\)\s*\{")
FUNCTION_KEYWORD_RE = re.compile(r"^function\s+(\w[\w-]*)\s*(\(\))?\s*\{")

PATH_ASSIGNMENT_RE = re.compile(r"^(?:export\s+)?PATH=(.+)$")
PATH_PREPEND_RE = re.compile(r"""^PATH=["']?([^"':]+):\$PATH["']?$""")

EXPORT_RE = re.compile(r"^export\s+(\w+)=(.+)$")
ASSIGNMENT_RE = re.compile(r"^([A-Za-z_]\w*)=(.+)$")

SOURCE_RE = re.compile(r"^(?:source|\.)\s+(.+)$")

KEYCHAIN_MARKERS = ("$(security", "$( security")

_PATH_MARKERS = frozenset({"$PATH", "${PATH}"})


class ParsedAlias(NamedTuple):
    name: str
    expansion: str
    enabled: bool
    quote: str = ""


class ParsedExport(NamedTuple):
    key: str
    value: str
    exported: bool = True


def is_blank(line: str) -> bool:
    return not line.strip()


def is_comment(line: str) -> bool:
    return line.strip().startswith("#")


def parse_alias(line: str) -> ParsedAlias | None:
    """Recognise ``alias NAME=VALUE`` and its commented-out form.

    A leading ``#`` marks the alias as disabled.  The expansion is returned
    unquoted; the quote character that wrapped it is kept as metadata.
    """
    stripped = line.strip()
    match = ALIAS_RE.fullmatch(stripped)
    enabled = True
    if match is None:
        match = COMMENTED_ALIAS_RE.fullmatch(stripped)
        enabled = False
    if match is None:
        return None
    raw = match.group(2)
    return ParsedAlias(
        name=match.group(1),
        expansion=unquote(raw),
        enabled=enabled,
        quote=quote_char(raw),
    )


def parse_function_start(line: str) -> str | None:
    """Return the function name if *line* opens a function definition.

    Accepts ``name() {``, ``function name {`` and ``function name() {``.
    Anything after the opening brace is ignored here.
    """
    stripped = line.strip()
    match = FUNCTION_START_RE.match(stripped) or FUNCTION_KEYWORD_RE.match(stripped)
    return match.group(1) if match else None


def parse_path_prepend(line: str) -> str | None:
    """Return the new segment of a ``PATH="segment:$PATH"`` line."""
    match = PATH_PREPEND_RE.fullmatch(line.strip())
    return match.group(1) if match else None


def parse_path_assignment(line: str) -> list[str] | None:
    """Return the ordered segments of an ``export PATH=...`` or ``PATH=...`` line.

    ``$PATH`` references are dropped.  Returns None when the line is not a
    PATH assignment at all, and possibly an empty list when it is one that
    only re-exports ``$PATH``.
    """
    match = PATH_ASSIGNMENT_RE.fullmatch(line.strip())
    if match is None:
        return None
    return split_path_value(unquote(match.group(1)))


def parse_path(line: str) -> list[str] | None:
    """Try the prepend idiom first, then a full PATH assignment."""
    segment = parse_path_prepend(line)
    if segment is not None:
        return [segment]
    return parse_path_assignment(line)


def split_path_value(value: str) -> list[str]:
    """Split a PATH value on ``:`` into cleaned, non-empty segments.

    Each segment is unquoted and then loses any stray quote characters,
    which show up when a quoted group spans several segments, e.g.
    ``"$HOME/bin:$PATH":/usr/local/bin``.
    """
    segments: list[str] = []
    for component in value.split(":"):
        cleaned = unquote(component).replace('"', "").replace("'", "")
        if not cleaned or cleaned in _PATH_MARKERS:
            continue
        segments.append(cleaned)
    return segments


def parse_export(line: str) -> ParsedExport | None:
    """Recognise ``export KEY=VALUE`` or a bare ``KEY=VALUE`` assignment.

    PATH is never returned; it is modelled separately and the caller checks
    the PATH patterns first.
    """
    stripped = line.strip()
    match = EXPORT_RE.fullmatch(stripped)
    exported = True
    if match is None:
        match = ASSIGNMENT_RE.fullmatch(stripped)
        exported = False
    if match is None or match.group(1) == "PATH":
        return None
    return ParsedExport(key=match.group(1), value=unquote(match.group(2)), exported=exported)


def parse_source(line: str) -> str | None:
    """Return the target of a ``source FILE`` or ``. FILE`` line.

    Conditional forms such as ``[ -f FILE ] && source FILE`` are accepted.
    ``$HOME``, ``${HOME}`` and ``~`` are expanded; the path is not checked
    for existence.
    """
    candidate = line.strip()
    if candidate.startswith("["):
        _, sep, rest = candidate.partition("&&")
        if not sep:
            return None
        candidate = rest.strip()

    match = SOURCE_RE.match(candidate)
    if match is None:
        return None
    return expand_home_vars(unquote(match.group(1)))


def is_keychain_derived(value: str) -> bool:
    """Return True if *value* reads a secret from the macOS keychain."""
    return any(marker in value for marker in KEYCHAIN_MARKERS)


def is_valid_alias_name(name: str) -> bool:
    return re.fullmatch(r"[^\s=#'\"]+", name) is not None


def is_valid_function_name(name: str) -> bool:
    return re.fullmatch(r"\w[\w-]*", name) is not None


def is_valid_env_key(key: str) -> bool:
    """PATH is managed through PATH entries, never as a plain variable."""
    return key != "PATH" and re.fullmatch(r"[A-Za-z_]\w*", key) is not None
