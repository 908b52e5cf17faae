"""
Data model for debarrel.

Contains the per-file analysis records (export and import maps), the rewrite
plan built for each consumer file, and the report structures returned by a run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple, Union


@dataclass(frozen=True)
class Position:
    """Byte span of one top-level statement."""

    start: int
    end: int

    @property
    def key(self) -> str:
        return f"{self.start}:{self.end}"

    @classmethod
    def from_key(cls, key: str) -> "Position":
        start, end = key.split(":")
        return cls(int(start), int(end))


@dataclass(frozen=True)
class Name:
    """A single binding: the exported name, an optional local alias and the type-only flag."""

    name: str
    alias: Optional[str] = None
    is_type: bool = False

    @property
    def local(self) -> str:
        return self.alias or self.name


@dataclass
class PathAliases:
    """Resolved `compilerOptions.paths` table."""

    base_url: str
    paths: Dict[str, List[str]] = field(default_factory=dict)
    # True when baseUrl was set explicitly, which also makes bare specifiers resolve against it.
    declared_base_url: bool = False


# ---------------------------------------------------------------------------
# Analysis records
# ---------------------------------------------------------------------------


@dataclass
class ExportEntry:
    """
    What one (or several merged) re-export statements forward from a single target.

    An empty ``exported_names`` set means "every name" and only occurs for star
    re-exports of external packages. ``aliases`` maps an exported name to the
    name it has in the target (``export { a as b }`` gives ``{"b": "a"}``).
    """

    specifier: str
    pos: Position
    exported_names: Set[str] = field(default_factory=set)
    aliases: Dict[str, str] = field(default_factory=dict)
    re_exported_ns: Optional[str] = None
    external_specifier: Optional[str] = None
    star: bool = False
    type_names: Set[str] = field(default_factory=set)

    @property
    def aliased_defaults(self) -> Dict[str, str]:
        """Local names bound to the target's default export."""
        return {exported: "default" for exported, original in self.aliases.items() if original == "default"}

    def merge(self, other: "ExportEntry") -> None:
        """Fold another statement targeting the same path into this entry."""
        self.exported_names.update(other.exported_names)
        self.type_names.update(other.type_names)
        self.star = self.star or other.star
        for exported, original in other.aliases.items():
            self.aliases.setdefault(exported, original)
        if other.re_exported_ns and not self.re_exported_ns:
            self.re_exported_ns = other.re_exported_ns

    def claims(self, name: str) -> bool:
        """Check whether a binding called ``name`` can be satisfied through this entry."""
        if not self.exported_names:
            return bool(self.external_specifier)
        return name in self.exported_names

    def forwards(self, name: str) -> bool:
        """Check whether the target's binding ``name`` reaches the barrel, under its own name or renamed."""
        return self.claims(name) or name in self.aliases.values()


class ImportKind(Enum):
    """Binding style of an import item."""

    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "ns"
    ALIASED = "as"
    EXPORT = "export"


@dataclass
class ImportItem:
    """
    One binding group from one import or re-export statement.

    ``local_name`` is the default or namespace binding. For a star re-export
    ``is_star`` is set and ``local_name`` holds the namespace name of
    ``export * as ns from``, if any.
    """

    kind: ImportKind
    pos: Position
    names: List[Name] = field(default_factory=list)
    local_name: Optional[str] = None
    is_star: bool = False
    is_type: bool = False
    original_specifier: Optional[str] = None
    specifier_prefix: str = ""
    specifier_suffix: str = ""


ExportMap = Dict[str, ExportEntry]
ImportMap = Dict[str, List[ImportItem]]


@dataclass
class FileRecord:
    """Analysis summary of one source file, cached for the lifetime of a run."""

    path: str
    is_barrel: bool
    exports: ExportMap = field(default_factory=dict)
    imports: ImportMap = field(default_factory=dict)
    dynamic_imports: Set[str] = field(default_factory=set)
    source: bytes = b""
    single_quote: bool = False

    @property
    def text(self) -> str:
        return self.source.decode("utf-8")

    def statement_text(self, pos: Position) -> str:
        return self.source[pos.start:pos.end].decode("utf-8")


# ---------------------------------------------------------------------------
# Rewrite plan
# ---------------------------------------------------------------------------


class RewriteKind(Enum):
    IMPORT = "import"
    EXPORT = "export"


@dataclass
class RewriteItem:
    """Everything to emit for one target of one rewritten statement."""

    kind: RewriteKind
    named: List[Name] = field(default_factory=list)
    default_name: Optional[str] = None
    default_is_type: bool = False
    external_specifier: Optional[str] = None
    re_exported_ns: Optional[str] = None
    original_specifier: Optional[str] = None
    specifier_prefix: str = ""
    specifier_suffix: str = ""
    unsafe_ns_name: Optional[str] = None
    star: bool = False

    def add_named(self, name: Name) -> None:
        if name not in self.named:
            self.named.append(name)


class RewritePlan:
    """Mapping of statement position to ``{target: RewriteItem}``."""

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, RewriteItem]] = {}

    def slot(self, pos: Position) -> Dict[str, RewriteItem]:
        return self._entries.setdefault(pos.key, {})

    def get(self, pos: Position) -> Optional[Dict[str, RewriteItem]]:
        return self._entries.get(pos.key)

    def discard(self, pos: Position) -> None:
        self._entries.pop(pos.key, None)

    def prune(self) -> None:
        """Drop positions that ended up with no target."""
        for key in [key for key, targets in self._entries.items() if not targets]:
            del self._entries[key]

    def positions(self) -> Set[str]:
        return set(self._entries)

    def items(self) -> Iterator[Tuple[Position, Dict[str, RewriteItem]]]:
        for key, targets in self._entries.items():
            yield Position.from_key(key), targets

    def descending(self) -> List[Tuple[Position, Dict[str, RewriteItem]]]:
        return sorted(self.items(), key=lambda entry: entry[0].start, reverse=True)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pos: object) -> bool:
        if isinstance(pos, Position):
            return pos.key in self._entries
        return pos in self._entries


@dataclass(frozen=True)
class Traced:
    """A binding resolved to a definer file or an external specifier."""

    target: str


@dataclass(frozen=True)
class Untraceable:
    """No entry in the transitive export graph claims the binding."""

    name: str


TraceResult = Union[Traced, Untraceable]


# ---------------------------------------------------------------------------
# Run options, progress and results
# ---------------------------------------------------------------------------


class ProgressType(Enum):
    FILES = "files"
    BARREL = "barrel"
    SCANNING = "scanning"
    REWRITING = "rewriting"
    DONE = "done"


@dataclass
class ProgressEvent:
    """Progress notification emitted by the orchestrator."""

    type: ProgressType
    count: int = 0
    path: Optional[str] = None
    current: int = 0
    total: int = 0


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass
class DebarrelOptions:
    """Options for one run. ``ext`` of None means "follow the original specifier"."""

    cwd: str = "."
    only: List[str] = field(default_factory=list)
    files: Optional[List[str]] = None
    skip: List[str] = field(default_factory=list)
    barrel: List[str] = field(default_factory=list)
    ext: Optional[str] = None
    write: bool = False
    check: bool = False
    unsafe_namespace: bool = False
    organize_imports: bool = False
    progress: Optional[ProgressCallback] = None

    @property
    def dry_run(self) -> bool:
        return not self.write or self.check


class PreservationReason(Enum):
    SKIP = "skip"
    NAMESPACE_IMPORT = "namespace-import"
    NON_TS_IMPORT = "non-ts-import"
    DYNAMIC_IMPORT = "dynamic-import"


@dataclass
class PreservedBarrel:
    path: str
    reason: PreservationReason
    consumers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "reason": self.reason.value, "consumers": list(self.consumers)}


@dataclass
class UntraceableImport:
    barrel_path: str
    consumer_path: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"barrel_path": self.barrel_path, "consumer_path": self.consumer_path, "name": self.name}


@dataclass
class FileError:
    path: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "message": self.message}


@dataclass
class RunResult:
    """Report of a single run."""

    modified: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    preserved: List[PreservedBarrel] = field(default_factory=list)
    untraceable_imports: List[UntraceableImport] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)
    example_diff: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return bool(self.modified or self.deleted)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modified": list(self.modified),
            "deleted": list(self.deleted),
            "preserved": [barrel.to_dict() for barrel in self.preserved],
            "untraceable_imports": [item.to_dict() for item in self.untraceable_imports],
            "errors": [error.to_dict() for error in self.errors],
            "example_diff": self.example_diff,
        }
