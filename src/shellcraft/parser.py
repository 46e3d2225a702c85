"""Multi-file parser for zsh-style startup files.

Walks each file line by line, hands every line to the recognisers in
``shellcraft.domain.lines``, tracks brace depth across function bodies and
follows ``source``/``.`` directives into other files.  Each visited file's
verbatim lines are kept in ``ParsedConfig.raw_lines`` so that edits can be
written back against exactly the text that was parsed.

Missing files and unreadable sourced files are skipped.  Only a read
failure on a file the caller asked for explicitly raises.
"""

import os
from collections.abc import Iterable

from loguru import logger

from shellcraft import fileio
from shellcraft.constants import DEFAULT_FILES
from shellcraft.domain import lines as line_parser
from shellcraft.domain.categories import infer_category
from shellcraft.domain.text import contract_tilde, expand_tilde, strip_common_indentation
from shellcraft.models import (
    EnvironmentVariable,
    ParsedConfig,
    PathEntry,
    ShellAlias,
    ShellFunction,
)


def parse(files: Iterable[str] | None = None) -> ParsedConfig:
    """Parse *files* in order (default: ``~/.zshrc`` then ``~/.zprofile``).

    Raises ``FileIOError`` if a file exists but cannot be read.
    """
    config = ParsedConfig()
    visited: set[str] = set()
    for file in DEFAULT_FILES if files is None else files:
        _parse_top_level(file, config, visited)
    return config


def parse_single_file(path: str) -> ParsedConfig:
    """Parse one file (plus anything it sources)."""
    config = ParsedConfig()
    _parse_top_level(path, config, set())
    return config


def _resolved(path: str) -> str:
    return os.path.realpath(expand_tilde(path))


def _parse_top_level(file: str, config: ParsedConfig, visited: set[str]) -> None:
    if not fileio.file_exists(file):
        logger.debug("Skipping missing file {}", file)
        return
    resolved = _resolved(file)
    if resolved in visited:
        return
    visited.add(resolved)
    lines = fileio.read_lines(file)
    config.raw_lines[file] = lines
    _parse_lines(lines, file, config, visited)


def _parse_lines(
    lines: list[str],
    source_file: str,
    config: ParsedConfig,
    visited: set[str],
) -> None:
    index = 0
    while index < len(lines):
        line = lines[index]
        line_number = index + 1

        if line_parser.is_blank(line):
            index += 1
            continue

        parsed_alias = line_parser.parse_alias(line)
        if parsed_alias is not None:
            config.aliases.append(
                ShellAlias(
                    name=parsed_alias.name,
                    expansion=parsed_alias.expansion,
                    source_file=source_file,
                    line_number=line_number,
                    category=infer_category(parsed_alias.name, parsed_alias.expansion),
                    is_enabled=parsed_alias.enabled,
                )
            )
            index += 1
            continue

        # Only disabled aliases are recognised inside comments.
        if line_parser.is_comment(line):
            index += 1
            continue

        function_name = line_parser.parse_function_start(line)
        if function_name is not None:
            function, end_index = _parse_function(function_name, lines, index, source_file, config)
            config.functions.append(function)
            index = end_index + 1
            continue

        segments = line_parser.parse_path(line)
        if segments is not None:
            config.path_entries.extend(
                PathEntry(path=segment, order=order, source_file=source_file, line_number=line_number)
                for order, segment in enumerate(segments)
            )
            index += 1
            continue

        parsed_export = line_parser.parse_export(line)
        if parsed_export is not None:
            config.environment_variables.append(
                EnvironmentVariable(
                    key=parsed_export.key,
                    value=parsed_export.value,
                    source_file=source_file,
                    line_number=line_number,
                    is_keychain_derived=line_parser.is_keychain_derived(parsed_export.value),
                    exported=parsed_export.exported,
                )
            )
            index += 1
            continue

        target = line_parser.parse_source(line)
        if target is not None:
            _follow_source(target, source_file, config, visited)

        index += 1


def _follow_source(target: str, sourcing_file: str, config: ParsedConfig, visited: set[str]) -> None:
    if not os.path.isabs(target):
        base = os.path.dirname(expand_tilde(sourcing_file))
        target = os.path.normpath(os.path.join(base, target))

    if not os.path.isfile(target):
        return
    resolved = os.path.realpath(target)
    if resolved in visited:
        return
    visited.add(resolved)

    key = contract_tilde(target)
    try:
        sourced_lines = fileio.read_lines(key)
    except fileio.FileIOError as exc:
        logger.debug("Skipping unreadable sourced file {}: {}", key, exc)
        return

    logger.debug("Following source {} -> {}", sourcing_file, key)
    config.raw_lines[key] = sourced_lines
    _parse_lines(sourced_lines, key, config, visited)


def _parse_function(
    name: str,
    lines: list[str],
    start_index: int,
    source_file: str,
    config: ParsedConfig,
) -> tuple[ShellFunction, int]:
    """Collect a function body by brace depth.

    Returns the function and the 0-based index of its last line.
    """
    description = _description_before(lines, start_index)
    start_line = lines[start_index]
    depth = start_line.count("{") - start_line.count("}")

    if depth <= 0:
        open_brace = start_line.find("{")
        close_brace = start_line.rfind("}")
        body = start_line[open_brace + 1 : close_brace].strip() if open_brace < close_brace else ""
        function = ShellFunction(
            name=name,
            body=body,
            source_file=source_file,
            line_range=(start_index + 1, start_index + 1),
            description=description,
        )
        return function, start_index

    body_lines: list[str] = []
    end_index = len(lines) - 1
    current = start_index + 1
    while current < len(lines):
        depth += lines[current].count("{") - lines[current].count("}")
        if depth <= 0:
            end_index = current
            break
        body_lines.append(lines[current])
        current += 1

    if depth > 0:
        message = (
            f"{source_file}:{start_index + 1}: function '{name}' is never closed; "
            f"treating the rest of the file as its body"
        )
        logger.warning(message)
        config.warnings.append(message)

    function = ShellFunction(
        name=name,
        body=strip_common_indentation(body_lines),
        source_file=source_file,
        line_range=(start_index + 1, end_index + 1),
        description=description,
    )
    return function, end_index


def _description_before(lines: list[str], index: int) -> str:
    """Return the text of a ``#`` comment directly above line *index*."""
    if index == 0:
        return ""
    previous = lines[index - 1].strip()
    if previous.startswith("#"):
        return previous[1:].strip()
    return ""
