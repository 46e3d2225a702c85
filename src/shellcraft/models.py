"""Domain models."""

from dataclasses import dataclass, field
from enum import Enum, auto
from uuid import UUID, uuid4


class AliasCategory(Enum):
    GIT = "Git"
    NAVIGATION = "Navigation"
    DOCKER = "Docker"
    SYSTEM = "System"
    NETWORK = "Network"
    GENERAL = "General"


@dataclass
class ShellAlias:
    name: str
    expansion: str
    source_file: str = "~/.zshrc"
    line_number: int = 0
    category: AliasCategory = AliasCategory.GENERAL
    is_enabled: bool = True
    id: UUID = field(default_factory=uuid4, compare=False)

    def matches(self, query: str) -> bool:
        """Return True if name or expansion contains the query (case-insensitive)."""
        q = query.lower()
        return q in self.name.lower() or q in self.expansion.lower()


@dataclass
class ShellFunction:
    """A shell function and the inclusive, 1-based line range it occupies.

    Unsaved functions carry ``(0, 0)``.  For one-liners start and end are
    the same line.
    """

    name: str
    body: str
    source_file: str = "~/.zshrc"
    line_range: tuple[int, int] = (0, 0)
    description: str = ""
    id: UUID = field(default_factory=uuid4, compare=False)

    @property
    def full_text(self) -> str:
        return f"{self.name}() {{\n{self.body}\n}}"

    def matches(self, query: str) -> bool:
        q = query.lower()
        return any(q in text.lower() for text in (self.name, self.description, self.body))


@dataclass
class PathEntry:
    """One segment of a PATH assignment.

    ``$PATH`` itself is never an entry; it is re-added when the assignment
    is written back.  ``expanded_path`` and ``exists`` are filled in by
    path validation and are not persisted.
    """

    path: str
    order: int = 0
    source_file: str = "~/.zshrc"
    line_number: int = 0
    expanded_path: str = ""
    exists: bool = True
    id: UUID = field(default_factory=uuid4, compare=False)

    def matches(self, query: str) -> bool:
        return query.lower() in self.path.lower()


@dataclass
class EnvironmentVariable:
    key: str
    value: str
    source_file: str = "~/.zshrc"
    line_number: int = 0
    is_keychain_derived: bool = False
    exported: bool = True
    id: UUID = field(default_factory=uuid4, compare=False)

    def matches(self, query: str) -> bool:
        """Return True if key or value contains the query (case-insensitive)."""
        q = query.lower()
        return q in self.key.lower() or q in self.value.lower()


@dataclass
class ParsedConfig:
    """Everything one parse produced.

    ``raw_lines`` maps each visited file (keyed by the path as requested, or
    tilde-contracted for sourced files) to its verbatim lines.  Line numbers
    in the entity lists are only valid against these lines.
    """

    aliases: list[ShellAlias] = field(default_factory=list)
    functions: list[ShellFunction] = field(default_factory=list)
    path_entries: list[PathEntry] = field(default_factory=list)
    environment_variables: list[EnvironmentVariable] = field(default_factory=list)
    raw_lines: dict[str, list[str]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


class ChangeKind(Enum):
    ADDED = auto()
    REMOVED = auto()
    UPDATED = auto()


@dataclass
class Change:
    """One pending change, as listed on the save-confirm screen."""

    kind: ChangeKind
    label: str
    detail: str = ""


@dataclass
class ImportPreview:
    section: str
    new_items: list[str] = field(default_factory=list)
    updated_items: list[str] = field(default_factory=list)
    unchanged_count: int = 0

    @property
    def total_changes(self) -> int:
        return len(self.new_items) + len(self.updated_items)

    @property
    def summary(self) -> str:
        parts: list[str] = []
        if self.new_items:
            parts.append(f"{len(self.new_items)} new")
        if self.updated_items:
            parts.append(f"{len(self.updated_items)} updated")
        if self.unchanged_count:
            parts.append(f"{self.unchanged_count} unchanged")
        return ", ".join(parts) or "nothing to import"
