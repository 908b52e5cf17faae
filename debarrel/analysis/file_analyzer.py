"""
File analyzer for TypeScript and JavaScript modules.

Turns one source file into a FileRecord: whether it is a barrel, its export
map (what each re-export forwards and from where), its import map (what each
import or re-export pulls in) and the targets of its dynamic imports.
Records are cached per absolute path for the lifetime of a run.
"""

import logging
import os
from typing import Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from ..errors import ModuleReadError
from ..models import (
    ExportEntry,
    ExportMap,
    FileRecord,
    ImportItem,
    ImportKind,
    ImportMap,
    Name,
    Position,
)
from .parser import (
    ModuleParser,
    declaration_names,
    dynamic_import_specifiers,
    first_child_of_type,
    has_keyword,
    is_reexport,
    namespace_export_name,
    node_text,
    source_of,
    specifier_names,
    statements,
    string_value,
)
from .resolver import ModuleResolver
from .specifier import parse_specifier

logger = logging.getLogger(__name__)


def is_barrel_statements(nodes: List[Node]) -> bool:
    """A barrel has at least one statement and only ``export ... from`` statements."""
    return bool(nodes) and all(is_reexport(node) for node in nodes)


def extract_exported_names(nodes: List[Node]) -> Set[str]:
    """Names a module exports, with ``default`` for a default export."""
    names: Set[str] = set()
    for node in nodes:
        if node.type != "export_statement":
            continue
        if has_keyword(node, "default") or has_keyword(node, "="):
            names.add("default")
            continue

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            names.update(declaration_names(declaration))

        clause = first_child_of_type(node, "export_clause")
        if clause is not None:
            for specifier in clause.named_children:
                if specifier.type == "export_specifier":
                    name, alias = specifier_names(specifier)
                    names.add(alias or name)

        namespace = namespace_export_name(node)
        if namespace:
            names.add(namespace)
    return names


def detect_single_quote(nodes: List[Node]) -> bool:
    """Quote style of the first import statement's specifier."""
    for node in nodes:
        if node.type == "import_statement":
            source = source_of(node)
            if source is not None:
                return node_text(source).startswith("'")
    return False


class FileAnalyzer:
    """
    Builds and caches FileRecords.

    Example:
        analyzer = FileAnalyzer(ModuleResolver())
        record = analyzer.analyze("/project/src/index.ts")
        if record.is_barrel:
            print(sorted(record.exports))
    """

    def __init__(self, resolver: ModuleResolver, parser: Optional[ModuleParser] = None):
        self.resolver = resolver
        self.parser = parser or ModuleParser()
        self._records: Dict[str, FileRecord] = {}
        self._exported_names: Dict[str, Set[str]] = {}

    def cached(self, path: str) -> Optional[FileRecord]:
        return self._records.get(path)

    def seed(self, record: FileRecord) -> None:
        """Install a prebuilt record, replacing any cached one."""
        self._records[record.path] = record

    def analyze(self, path: str) -> FileRecord:
        """
        Analyze ``path``, returning the cached record when there is one.

        Raises:
            ModuleReadError: if the file cannot be read or is not UTF-8
            ModuleParseError: if the file does not parse
        """
        cached = self._records.get(path)
        if cached is not None:
            return cached

        source, root = self._load(path)
        nodes = statements(root)
        is_barrel = is_barrel_statements(nodes)

        record = FileRecord(
            path=path,
            is_barrel=is_barrel,
            exports=self._build_export_map(path, nodes),
            imports=self._build_import_map(path, nodes),
            dynamic_imports=set() if is_barrel else self._find_dynamic_imports(path, root),
            source=source,
            single_quote=detect_single_quote(nodes),
        )
        self._records[path] = record
        logger.debug(
            f"Analyzed {path}: barrel={is_barrel}, {len(record.exports)} export targets, "
            f"{len(record.imports)} import targets"
        )
        return record

    def exported_names(self, path: str) -> Set[str]:
        """Names exported by ``path``, cached separately from full records."""
        cached = self._exported_names.get(path)
        if cached is None:
            _, root = self._load(path)
            cached = extract_exported_names(statements(root))
            self._exported_names[path] = cached
        return set(cached)

    def _load(self, path: str) -> Tuple[bytes, Node]:
        try:
            with open(path, "rb") as f:
                source = f.read()
        except OSError as e:
            raise ModuleReadError(path, e.strerror or str(e)) from e
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ModuleReadError(path, f"not valid UTF-8 ({e.reason})") from e
        return source, self.parser.parse(path, source).root_node

    # ------------------------------------------------------------------
    # Export map
    # ------------------------------------------------------------------

    def _build_export_map(self, path: str, nodes: List[Node]) -> ExportMap:
        exports: ExportMap = {}
        for node in nodes:
            if not is_reexport(node):
                continue

            specifier = string_value(source_of(node))
            resolved = self.resolver.resolve(path, parse_specifier(specifier).path)
            if not resolved:
                continue

            pos = Position(node.start_byte, node.end_byte)
            if os.path.isabs(resolved):
                key, entry = resolved, self._local_export(node, resolved, specifier, pos)
            else:
                key, entry = specifier, self._external_export(node, specifier, pos)

            existing = exports.get(key)
            if existing is None:
                exports[key] = entry
            else:
                existing.merge(entry)
        return exports

    def _local_export(self, node: Node, resolved: str, specifier: str, pos: Position) -> ExportEntry:
        clause = first_child_of_type(node, "export_clause")
        if clause is not None:
            type_only = has_keyword(node, "type")
            entry = ExportEntry(specifier=specifier, pos=pos)
            for element in clause.named_children:
                if element.type != "export_specifier":
                    continue
                name, alias = specifier_names(element)
                exported = alias or name
                entry.exported_names.add(exported)
                if type_only or has_keyword(element, "type"):
                    entry.type_names.add(exported)
                if alias and alias != name:
                    entry.aliases[alias] = name
            return entry

        namespace = namespace_export_name(node)
        if namespace:
            return ExportEntry(specifier=specifier, pos=pos, exported_names={namespace}, re_exported_ns=namespace)
        # `export *` never forwards the default export
        names = self.exported_names(resolved) - {"default"}
        return ExportEntry(specifier=specifier, pos=pos, exported_names=names, star=True)

    @staticmethod
    def _external_export(node: Node, specifier: str, pos: Position) -> ExportEntry:
        entry = ExportEntry(specifier=specifier, pos=pos, external_specifier=specifier)
        namespace = namespace_export_name(node)
        clause = first_child_of_type(node, "export_clause")
        if namespace:
            entry.exported_names.add(namespace)
            entry.re_exported_ns = namespace
        elif clause is None:
            entry.star = True
        if clause is not None:
            for element in clause.named_children:
                if element.type == "export_specifier":
                    name, alias = specifier_names(element)
                    entry.exported_names.add(alias or name)
                    if alias and alias != name:
                        entry.aliases[alias] = name
        return entry

    # ------------------------------------------------------------------
    # Import map
    # ------------------------------------------------------------------

    def _build_import_map(self, path: str, nodes: List[Node]) -> ImportMap:
        imports: ImportMap = {}
        for node in nodes:
            if node.type == "import_statement":
                items = self._import_items(node)
                # `import "./x"` binds nothing but still depends on the module
                side_effect = not items and source_of(node) is not None
            elif is_reexport(node):
                items = self._reexport_items(node)
                side_effect = False
            else:
                continue
            if not items and not side_effect:
                continue

            original = string_value(source_of(node))
            prefix, specifier_path, suffix = parse_specifier(original)
            resolved = self.resolver.resolve(path, specifier_path)
            if not resolved or not os.path.isabs(resolved):
                continue

            for item in items:
                item.original_specifier = specifier_path
                item.specifier_prefix = prefix
                item.specifier_suffix = suffix
            imports.setdefault(resolved, []).extend(items)
        return imports

    @staticmethod
    def _import_items(node: Node) -> List[ImportItem]:
        if source_of(node) is None:
            return []
        clause = first_child_of_type(node, "import_clause")
        if clause is None:
            return []

        pos = Position(node.start_byte, node.end_byte)
        type_only = has_keyword(node, "type")
        items: List[ImportItem] = []

        for child in clause.named_children:
            if child.type == "namespace_import":
                identifier = first_child_of_type(child, "identifier")
                if identifier is not None:
                    items.append(ImportItem(ImportKind.NAMESPACE, pos, local_name=node_text(identifier)))
            elif child.type == "named_imports":
                for element in child.named_children:
                    if element.type != "import_specifier":
                        continue
                    name, alias = specifier_names(element)
                    is_type = type_only or has_keyword(element, "type")
                    items.append(
                        ImportItem(
                            ImportKind.ALIASED if alias else ImportKind.NAMED,
                            pos,
                            names=[Name(name, alias, is_type)],
                        )
                    )
            elif child.type == "identifier":
                items.append(ImportItem(ImportKind.DEFAULT, pos, local_name=node_text(child), is_type=type_only))
        return items

    @staticmethod
    def _reexport_items(node: Node) -> List[ImportItem]:
        pos = Position(node.start_byte, node.end_byte)
        type_only = has_keyword(node, "type")
        clause = first_child_of_type(node, "export_clause")
        if clause is None:
            return [ImportItem(ImportKind.EXPORT, pos, is_star=True, local_name=namespace_export_name(node))]

        items: List[ImportItem] = []
        for element in clause.named_children:
            if element.type != "export_specifier":
                continue
            name, alias = specifier_names(element)
            is_type = type_only or has_keyword(element, "type")
            items.append(ImportItem(ImportKind.EXPORT, pos, names=[Name(name, alias, is_type)]))
        return items

    # ------------------------------------------------------------------
    # Dynamic imports
    # ------------------------------------------------------------------

    def _find_dynamic_imports(self, path: str, root: Node) -> Set[str]:
        found: Set[str] = set()
        for specifier in dynamic_import_specifiers(root):
            resolved = self.resolver.resolve(path, parse_specifier(specifier).path)
            if resolved and os.path.isabs(resolved):
                found.add(resolved)
        return found
