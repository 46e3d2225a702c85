"""Load / edit / save controllers, one per entity type.

A section owns one slice of the parsed config: the live ``items`` the UI
edits, a deep-copied snapshot of what was loaded, and the raw lines of every
file that snapshot came from.  Nothing touches disk until ``save``, which

1. diffs ``items`` against the snapshot (matched by ``id``),
2. turns the diff into line modifications per file, addressed by the
   snapshot's line numbers,
3. applies each file's batch to the snapshot lines and writes the file once,
4. reloads, so every entity gets fresh line numbers.

Entities added in memory have no line number; they are only ever appended.
"""

import copy
from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path
from typing import Generic, TypeVar
from uuid import UUID

from loguru import logger

from shellcraft import fileio, parser
from shellcraft.config import Settings
from shellcraft.domain import lines as line_parser
from shellcraft.domain import writer
from shellcraft.domain.categories import infer_category
from shellcraft.domain.text import expand_home_vars, strip_common_indentation
from shellcraft.domain.writer import (
    AppendLine,
    DeleteLine,
    InsertAfter,
    Modification,
    UpdateLine,
)
from shellcraft.models import (
    Change,
    ChangeKind,
    EnvironmentVariable,
    ImportPreview,
    ParsedConfig,
    PathEntry,
    ShellAlias,
    ShellFunction,
)

T = TypeVar("T", ShellAlias, ShellFunction, PathEntry, EnvironmentVariable)

Batches = dict[str, list[Modification]]


class ConflictError(Exception):
    """Raised when a file changed on disk after it was loaded."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path} changed on disk since it was loaded; reload before saving")
        self.path = path


class Section(Generic[T]):
    """Shared load/diff/save machinery.

    Subclasses pick their entities out of a ``ParsedConfig`` and turn a
    diff into modifications.
    """

    title: str = ""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.items: list[T] = []
        self.raw_lines: dict[str, list[str]] = {}
        self.warnings: list[str] = []
        self.dirty: bool = False
        self._snapshot: list[T] = []

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _select(self, config: ParsedConfig) -> list[T]:
        raise NotImplementedError

    def _modifications(self) -> Batches:
        raise NotImplementedError

    def _changed(self, original: T, current: T) -> bool:
        raise NotImplementedError

    def label(self, item: T) -> str:
        raise NotImplementedError

    def export(self) -> str:
        raise NotImplementedError

    def preview_import(self, content: str) -> ImportPreview:
        raise NotImplementedError

    def apply_import(self, content: str) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    @property
    def primary_file(self) -> str:
        return self.settings.primary_file

    @property
    def snapshot(self) -> list[T]:
        return self._snapshot

    def load(self) -> None:
        """Parse the configured files and make the result the new snapshot.

        Raises ``FileIOError`` if a configured file cannot be read.
        """
        config = parser.parse(self.settings.files)
        self.raw_lines = config.raw_lines
        self.warnings = config.warnings
        self.items = self._select(config)
        self._snapshot = copy.deepcopy(self.items)
        self.dirty = False
        logger.debug("Loaded {} {}", len(self.items), self.title or type(self).__name__)

    def modifications(self) -> Batches:
        """Return the per-file modification batches a save would apply."""
        return {file: mods for file, mods in self._modifications().items() if mods}

    def save(self, force: bool = False) -> list[str]:
        """Write pending changes and reload.

        Every file is checked for outside changes before any file is
        written; on ``ConflictError`` nothing is written and the in-memory
        edits are kept.  Returns the files that were written.
        """
        batches = self.modifications()
        if not force and self.settings.check_conflicts:
            for file in batches:
                self._check_conflict(file)

        written: list[str] = []
        for file, mods in batches.items():
            updated = writer.apply(mods, self._lines_for(file))
            fileio.write_lines(
                updated, file, backup=self.settings.backup, keep=self.settings.backup_keep
            )
            logger.info("Saved {} change(s) to {}", len(mods), file)
            written.append(file)

        self.load()
        return written

    def discard(self) -> None:
        self.items = copy.deepcopy(self._snapshot)
        self.dirty = False

    def _lines_for(self, file: str) -> list[str]:
        if file in self.raw_lines:
            return self.raw_lines[file]
        if fileio.file_exists(file):
            return fileio.read_lines(file)
        # A new file starts empty but newline-terminated.
        return [""]

    def _check_conflict(self, file: str) -> None:
        if file not in self.raw_lines:
            return
        on_disk = fileio.read_lines(file) if fileio.file_exists(file) else None
        if on_disk != self.raw_lines[file]:
            logger.warning("Refusing to save {}: changed on disk", file)
            raise ConflictError(file)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def get(self, item_id: UUID | str) -> T | None:
        key = str(item_id)
        return next((item for item in self.items if str(item.id) == key), None)

    def append(self, item: T) -> T:
        self.items.append(item)
        self._mark_dirty()
        return item

    def update(self, item: T) -> None:
        """Replace the item with the same id.  Unknown ids are ignored."""
        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[index] = item
                self._mark_dirty()
                return

    def delete(self, item: T) -> None:
        self.items = [existing for existing in self.items if existing.id != item.id]
        self._mark_dirty()

    def _mark_dirty(self) -> None:
        self.dirty = True

    # ------------------------------------------------------------------
    # Diffing
    # ------------------------------------------------------------------

    def _diff(self) -> tuple[list[tuple[T, T]], list[T], list[T]]:
        """Split state into (original, current) pairs, removed and added items."""
        originals = {item.id: item for item in self._snapshot}
        current_ids = {item.id for item in self.items}
        kept = [(originals[item.id], item) for item in self.items if item.id in originals]
        removed = [item for item in self._snapshot if item.id not in current_ids]
        added = [item for item in self.items if item.id not in originals]
        return kept, removed, added

    def pending_changes(self) -> list[Change]:
        kept, removed, added = self._diff()
        changes = [Change(ChangeKind.ADDED, self.label(item)) for item in added]
        changes += [Change(ChangeKind.REMOVED, self.label(item)) for item in removed]
        changes += [
            Change(ChangeKind.UPDATED, self.label(current), detail=self.label(original))
            for original, current in kept
            if self._changed(original, current)
        ]
        return changes


class AliasSection(Section[ShellAlias]):
    title = "Aliases"

    def _select(self, config: ParsedConfig) -> list[ShellAlias]:
        return config.aliases

    def label(self, item: ShellAlias) -> str:
        return item.name

    def _changed(self, original: ShellAlias, current: ShellAlias) -> bool:
        return (original.name, original.expansion, original.is_enabled) != (
            current.name,
            current.expansion,
            current.is_enabled,
        )

    @staticmethod
    def _line(alias: ShellAlias) -> str:
        return writer.generate_alias_line(alias.name, alias.expansion, alias.is_enabled)

    def _modifications(self) -> Batches:
        batches: Batches = defaultdict(list)
        kept, removed, added = self._diff()
        for original, current in kept:
            if self._changed(original, current):
                batches[original.source_file].append(
                    UpdateLine(original.line_number - 1, self._line(current))
                )
        for alias in removed:
            batches[alias.source_file].append(DeleteLine(alias.line_number - 1))
        for alias in added:
            batches[alias.source_file].append(AppendLine(self._line(alias)))
        return batches

    def add(self, name: str, expansion: str, enabled: bool = True) -> ShellAlias:
        return self.append(
            ShellAlias(
                name=name,
                expansion=expansion,
                source_file=self.primary_file,
                category=infer_category(name, expansion),
                is_enabled=enabled,
            )
        )

    def update(self, item: ShellAlias) -> None:
        item.category = infer_category(item.name, item.expansion)
        super().update(item)

    def toggle_enabled(self, alias: ShellAlias) -> None:
        for item in self.items:
            if item.id == alias.id:
                item.is_enabled = not item.is_enabled
                self._mark_dirty()
                return

    def export(self) -> str:
        return writer.export_header(self.title) + "".join(
            self._line(alias) + "\n" for alias in self.items
        )

    def _parse_import(self, content: str) -> list[line_parser.ParsedAlias]:
        return [p for p in map(line_parser.parse_alias, content.split("\n")) if p is not None]

    def preview_import(self, content: str) -> ImportPreview:
        preview = ImportPreview(section=self.title)
        existing = {alias.name: alias for alias in self.items}
        for parsed in self._parse_import(content):
            current = existing.get(parsed.name)
            if current is None:
                preview.new_items.append(parsed.name)
            elif (current.expansion, current.is_enabled) != (parsed.expansion, parsed.enabled):
                preview.updated_items.append(parsed.name)
            else:
                preview.unchanged_count += 1
        return preview

    def apply_import(self, content: str) -> None:
        """Merge aliases from *content* by name."""
        for parsed in self._parse_import(content):
            current = next((a for a in self.items if a.name == parsed.name), None)
            if current is None:
                self.add(parsed.name, parsed.expansion, parsed.enabled)
                continue
            current.expansion = parsed.expansion
            current.is_enabled = parsed.enabled
            current.category = infer_category(current.name, current.expansion)
        self._mark_dirty()


class FunctionSection(Section[ShellFunction]):
    title = "Functions"

    def _select(self, config: ParsedConfig) -> list[ShellFunction]:
        return config.functions

    def label(self, item: ShellFunction) -> str:
        return item.name

    def _changed(self, original: ShellFunction, current: ShellFunction) -> bool:
        return (original.name, original.body, original.description) != (
            current.name,
            current.body,
            current.description,
        )

    def _modifications(self) -> Batches:
        batches: Batches = defaultdict(list)
        kept, removed, added = self._diff()

        for original, current in kept:
            if not self._changed(original, current):
                continue
            mods = batches[original.source_file]
            start, end = original.line_range[0] - 1, original.line_range[1] - 1
            if (original.name, original.body) != (current.name, current.body):
                block = writer.generate_function_block(current.name, current.body)
                mods.extend(writer.replace_range(start, end, block.split("\n")))
            if original.description != current.description:
                mods.extend(self._description_mods(original.source_file, start, current.description))

        for function in removed:
            start, end = function.line_range
            batches[function.source_file].extend(writer.delete_range(start - 1, end - 1))

        for function in added:
            mods = batches[function.source_file]
            # Keep a blank line between the new function and what precedes it.
            mods.append(AppendLine(""))
            if function.description:
                mods.append(AppendLine(f"# {function.description}"))
            block = writer.generate_function_block(function.name, function.body)
            mods.extend(AppendLine(line) for line in block.split("\n"))
        return batches

    def _description_mods(self, file: str, start: int, description: str) -> list[Modification]:
        """Edit the comment line above the function starting at 0-based *start*."""
        lines = self.raw_lines.get(file, [])
        above = start - 1
        has_comment = above >= 0 and above < len(lines) and line_parser.is_comment(lines[above])
        if description and has_comment:
            return [UpdateLine(above, f"# {description}")]
        if description:
            return [InsertAfter(above, f"# {description}")]
        if has_comment:
            return [DeleteLine(above)]
        return []

    def add(self, name: str, body: str, description: str = "") -> ShellFunction:
        return self.append(
            ShellFunction(name=name, body=body, source_file=self.primary_file, description=description)
        )

    def export(self) -> str:
        out = writer.export_header(self.title)
        for function in self.items:
            if function.description:
                out += f"# {function.description}\n"
            out += writer.generate_function_block(function.name, function.body) + "\n\n"
        return out

    def _parse_import(self, content: str) -> list[tuple[str, str, str]]:
        """Pull (name, body, description) triples out of a script."""
        lines = content.split("\n")
        results: list[tuple[str, str, str]] = []
        index = 0
        while index < len(lines):
            line = lines[index]
            name = line_parser.parse_function_start(line)
            if name is None:
                index += 1
                continue

            description = ""
            if index > 0 and line_parser.is_comment(lines[index - 1]):
                description = lines[index - 1].strip()[1:].strip()

            depth = line.count("{") - line.count("}")
            body_lines: list[str] = []
            if depth <= 0:
                open_brace, close_brace = line.find("{"), line.rfind("}")
                if open_brace < close_brace:
                    body_lines.append(line[open_brace + 1 : close_brace].strip())
            else:
                index += 1
                while index < len(lines):
                    depth += lines[index].count("{") - lines[index].count("}")
                    if depth <= 0:
                        break
                    body_lines.append(lines[index])
                    index += 1

            results.append((name, strip_common_indentation(body_lines), description))
            index += 1
        return results

    def preview_import(self, content: str) -> ImportPreview:
        preview = ImportPreview(section=self.title)
        existing = {function.name: function for function in self.items}
        for name, body, _ in self._parse_import(content):
            current = existing.get(name)
            if current is None:
                preview.new_items.append(name)
            elif current.body != body:
                preview.updated_items.append(name)
            else:
                preview.unchanged_count += 1
        return preview

    def apply_import(self, content: str) -> None:
        for name, body, description in self._parse_import(content):
            current = next((f for f in self.items if f.name == name), None)
            if current is None:
                self.add(name, body, description)
                continue
            current.body = body
            if description:
                current.description = description
        self._mark_dirty()


class PathSection(Section[PathEntry]):
    """PATH entries in their effective order.

    A file's PATH statements are only rewritten when the ordered list of
    paths it contributes has changed.  The rewrite collapses them into a
    single ``export PATH="...:$PATH"`` line at the position of the first.
    """

    title = "PATH"

    def _select(self, config: ParsedConfig) -> list[PathEntry]:
        return config.path_entries

    def load(self) -> None:
        super().load()
        self._renumber()
        self._snapshot = copy.deepcopy(self.items)

    def label(self, item: PathEntry) -> str:
        return item.path

    def _changed(self, original: PathEntry, current: PathEntry) -> bool:
        return original.path != current.path

    def _renumber(self) -> None:
        for order, entry in enumerate(self.items):
            entry.order = order

    @staticmethod
    def _paths_by_file(entries: Iterable[PathEntry]) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = defaultdict(list)
        for entry in sorted(entries, key=lambda e: e.order):
            grouped[entry.source_file].append(entry.path)
        return grouped

    def _modifications(self) -> Batches:
        batches: Batches = {}
        before = self._paths_by_file(self._snapshot)
        after = self._paths_by_file(self.items)

        statement_lines: dict[str, list[int]] = defaultdict(list)
        for entry in self._snapshot:
            if entry.line_number and entry.line_number not in statement_lines[entry.source_file]:
                statement_lines[entry.source_file].append(entry.line_number)

        for file in sorted(set(before) | set(after)):
            if before.get(file, []) == after.get(file, []):
                continue
            numbers = sorted(statement_lines.get(file, []))
            entries = [e for e in self.items if e.source_file == file]
            mods: list[Modification] = []
            if not entries:
                mods = [DeleteLine(n - 1) for n in numbers]
            elif numbers:
                mods.append(UpdateLine(numbers[0] - 1, writer.generate_path_export_line(entries)))
                mods.extend(DeleteLine(n - 1) for n in numbers[1:])
            else:
                mods.append(AppendLine(writer.generate_path_export_line(entries)))
            batches[file] = mods
        return batches

    def pending_changes(self) -> list[Change]:
        changes = super().pending_changes()
        kept, _, _ = self._diff()
        kept_ids = {current.id for _, current in kept}
        before = [e.id for e in sorted(self._snapshot, key=lambda e: e.order) if e.id in kept_ids]
        after = [e.id for e in sorted(self.items, key=lambda e: e.order) if e.id in kept_ids]
        if before != after:
            changes.append(Change(ChangeKind.UPDATED, "PATH order"))
        return changes

    def add(self, path: str) -> PathEntry:
        entry = PathEntry(path=path, order=len(self.items), source_file=self.primary_file)
        self._validate_entry(entry)
        return self.append(entry)

    def delete(self, item: PathEntry) -> None:
        super().delete(item)
        self._renumber()

    def move(self, from_index: int, to_index: int) -> None:
        """Move the entry at *from_index* so it ends up at *to_index*."""
        if not (0 <= from_index < len(self.items)):
            return
        to_index = max(0, min(to_index, len(self.items) - 1))
        if from_index == to_index:
            return
        entry = self.items.pop(from_index)
        self.items.insert(to_index, entry)
        self._renumber()
        self._mark_dirty()

    @staticmethod
    def _validate_entry(entry: PathEntry) -> None:
        entry.expanded_path = expand_home_vars(entry.path)
        entry.exists = Path(entry.expanded_path).exists()

    def validate(self) -> list[PathEntry]:
        """Resolve each entry's expanded path and check that it exists."""
        for entry in self.items:
            self._validate_entry(entry)
        return self.items

    def export(self) -> str:
        out = writer.export_header(self.title)
        if self.items:
            out += writer.generate_path_export_line(self.items) + "\n"
        return out

    @staticmethod
    def _parse_import(content: str) -> list[str]:
        paths: list[str] = []
        for line in content.split("\n"):
            segments = line_parser.parse_path(line)
            if segments:
                paths.extend(segments)
        return paths

    def preview_import(self, content: str) -> ImportPreview:
        preview = ImportPreview(section=self.title)
        existing = {entry.path for entry in self.items}
        for path in self._parse_import(content):
            if path in existing:
                preview.unchanged_count += 1
            else:
                preview.new_items.append(path)
        return preview

    def apply_import(self, content: str) -> None:
        existing = {entry.path for entry in self.items}
        for path in self._parse_import(content):
            if path not in existing:
                self.add(path)
                existing.add(path)
        self._mark_dirty()


class EnvSection(Section[EnvironmentVariable]):
    title = "Environment Variables"

    def _select(self, config: ParsedConfig) -> list[EnvironmentVariable]:
        return config.environment_variables

    def label(self, item: EnvironmentVariable) -> str:
        return item.key

    def _changed(self, original: EnvironmentVariable, current: EnvironmentVariable) -> bool:
        fields = ("key", "value", "is_keychain_derived", "exported")
        return any(getattr(original, f) != getattr(current, f) for f in fields)

    @staticmethod
    def _new_line(variable: EnvironmentVariable) -> str:
        # Keychain variables without a lookup of their own get the
        # conventional env/KEY service.
        if variable.is_keychain_derived and not line_parser.is_keychain_derived(variable.value):
            return writer.generate_keychain_export_line(
                variable.key, writer.keychain_service_name(variable.key)
            )
        return writer.generate_export_line(variable.key, variable.value, variable.exported)

    @staticmethod
    def _updated_line(original: EnvironmentVariable, current: EnvironmentVariable) -> str:
        # A renamed keychain variable points at the conventional service of
        # its new key; otherwise the substitution is kept verbatim.
        if current.is_keychain_derived and (
            current.key != original.key or not original.is_keychain_derived
        ):
            return writer.generate_keychain_export_line(
                current.key, writer.keychain_service_name(current.key)
            )
        return writer.generate_export_line(current.key, current.value, current.exported)

    def _modifications(self) -> Batches:
        batches: Batches = defaultdict(list)
        kept, removed, added = self._diff()
        for original, current in kept:
            if self._changed(original, current):
                batches[original.source_file].append(
                    UpdateLine(original.line_number - 1, self._updated_line(original, current))
                )
        for variable in removed:
            batches[variable.source_file].append(DeleteLine(variable.line_number - 1))
        for variable in added:
            batches[variable.source_file].append(AppendLine(self._new_line(variable)))
        return batches

    @property
    def keychain_count(self) -> int:
        return sum(1 for variable in self.items if variable.is_keychain_derived)

    def add(self, key: str, value: str, is_keychain: bool = False) -> EnvironmentVariable:
        return self.append(
            EnvironmentVariable(
                key=key,
                value=value,
                source_file=self.primary_file,
                is_keychain_derived=is_keychain,
            )
        )

    def export(self) -> str:
        return writer.export_header(self.title) + "".join(
            self._new_line(variable) + "\n" for variable in self.items
        )

    @staticmethod
    def _parse_import(content: str) -> list[line_parser.ParsedExport]:
        return [p for p in map(line_parser.parse_export, content.split("\n")) if p is not None]

    def preview_import(self, content: str) -> ImportPreview:
        preview = ImportPreview(section=self.title)
        existing = {variable.key: variable for variable in self.items}
        for parsed in self._parse_import(content):
            current = existing.get(parsed.key)
            if current is None:
                preview.new_items.append(parsed.key)
            elif current.value != parsed.value:
                preview.updated_items.append(parsed.key)
            else:
                preview.unchanged_count += 1
        return preview

    def apply_import(self, content: str) -> None:
        for parsed in self._parse_import(content):
            keychain = line_parser.is_keychain_derived(parsed.value)
            current = next((v for v in self.items if v.key == parsed.key), None)
            if current is None:
                self.add(parsed.key, parsed.value, is_keychain=keychain)
                continue
            current.value = parsed.value
            current.is_keychain_derived = keychain
        self._mark_dirty()


def all_sections(settings: Settings | None = None) -> dict[str, Section]:
    """One section per entity type, keyed like ``constants.SECTIONS``."""
    return {
        "aliases": AliasSection(settings),
        "functions": FunctionSection(settings),
        "path": PathSection(settings),
        "env": EnvSection(settings),
    }
