"""Line-indexed edits and the generators that produce shell lines.

A save is expressed as a flat batch of modifications against the line
array captured at load time.  Indices are 0-based and only valid against
that array.  ``apply`` sorts the batch by descending index before applying
it, so an insert or delete never shifts a line that a later (lower-index)
modification still has to address.  Edits of the same line run in a fixed
order: insert after it, rewrite it, delete it.

The generators are the inverse of the recognisers in
``shellcraft.domain.lines``: parsing a generated line gives back the values
it was generated from.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from shellcraft.models import PathEntry

KEYCHAIN_SERVICE_PREFIX = "env/"


@dataclass(frozen=True)
class UpdateLine:
    index: int
    content: str


@dataclass(frozen=True)
class InsertAfter:
    index: int
    content: str


@dataclass(frozen=True)
class DeleteLine:
    index: int


@dataclass(frozen=True)
class AppendLine:
    content: str


Modification = UpdateLine | InsertAfter | DeleteLine | AppendLine


_RANK = {InsertAfter: 2, UpdateLine: 1, DeleteLine: 0}


def _sort_key(modification: Modification) -> tuple[float, int]:
    if isinstance(modification, AppendLine):
        return float("inf"), 0
    # Applied highest first: at one index, insert after the original line,
    # then rewrite it, then delete it.
    return modification.index, _RANK[type(modification)]


def apply(modifications: Iterable[Modification], lines: Sequence[str]) -> list[str]:
    """Apply a batch of modifications and return the new line list.

    The input list is not mutated.  Modifications at a shared index run
    inserts first, then updates, then deletes, so the result does not depend
    on the order of the batch.  Inserts sharing an index keep the order
    given.  Update and delete indices that fall outside the current list are
    ignored.  Appends go before the empty element a final newline leaves, so
    the file keeps ending in one.
    """
    result = list(lines)
    terminated = bool(result) and result[-1] == ""
    for modification in sorted(modifications, key=_sort_key, reverse=True):
        if isinstance(modification, AppendLine):
            if terminated and result and result[-1] == "":
                result.insert(len(result) - 1, modification.content)
            else:
                result.append(modification.content)
        elif isinstance(modification, UpdateLine):
            if 0 <= modification.index < len(result):
                result[modification.index] = modification.content
        elif isinstance(modification, InsertAfter):
            result.insert(max(0, min(modification.index + 1, len(result))), modification.content)
        elif isinstance(modification, DeleteLine):
            if 0 <= modification.index < len(result):
                del result[modification.index]
    return result


def replace_range(start: int, end: int, new_lines: Sequence[str]) -> list[Modification]:
    """Replace the inclusive 0-based range ``start..end`` with *new_lines*.

    Built from the four primitive operations so it can share a batch with
    other edits: the tail of the old range is deleted, the first line is
    updated in place and the rest are inserted after it in reverse, so they
    come out in order.
    """
    if not new_lines:
        return delete_range(start, end)
    mods: list[Modification] = [DeleteLine(i) for i in range(end, start, -1)]
    mods.append(UpdateLine(start, new_lines[0]))
    mods.extend(InsertAfter(start, line) for line in reversed(new_lines[1:]))
    return mods


def delete_range(start: int, end: int) -> list[Modification]:
    return [DeleteLine(i) for i in range(end, start - 1, -1)]


# ----------------------------------------------------------------------
# Generators
# ----------------------------------------------------------------------


def generate_alias_line(name: str, expansion: str, enabled: bool = True) -> str:
    """Render ``alias name='expansion'``.

    Single quotes are used unless the expansion itself contains one.
    Disabled aliases are prefixed with ``# ``.
    """
    prefix = "" if enabled else "# "
    if "'" in expansion:
        return f'{prefix}alias {name}="{expansion}"'
    return f"{prefix}alias {name}='{expansion}'"


def generate_function_block(name: str, body: str) -> str:
    """Render ``name() { ... }`` with the body indented by two spaces."""
    indented = "\n".join(f"  {line}" if line else "" for line in body.split("\n"))
    return f"{name}() {{\n{indented}\n}}"


def generate_export_line(key: str, value: str, exported: bool = True) -> str:
    """Render ``export KEY="value"``.

    Values containing a command substitution are left unquoted so the
    substitution survives.  ``exported=False`` renders a bare assignment.
    """
    prefix = "export " if exported else ""
    if "$(" in value or "`" in value:
        return f"{prefix}{key}={value}"
    return f'{prefix}{key}="{value}"'


def keychain_service_name(key: str) -> str:
    return f"{KEYCHAIN_SERVICE_PREFIX}{key}"


def generate_keychain_export_line(key: str, service: str) -> str:
    return f"export {key}=$(security find-generic-password -s '{service}' -a \"$USER\" -w)"


def generate_path_export_line(entries: Iterable[PathEntry]) -> str:
    """Render ``export PATH="/one:/two:$PATH"`` from entries sorted by order."""
    paths = ":".join(entry.path for entry in sorted(entries, key=lambda e: e.order))
    return f'export PATH="{paths}:$PATH"'


def export_header(section: str, today: date | None = None) -> str:
    """Banner placed at the top of exported section scripts."""
    stamp = (today or date.today()).isoformat()
    return f"#!/bin/zsh\n# shellcraft export: {section}\n# {stamp}\n\n"
