"""
Organize imports.

Merges import declarations that name the same module with the same type-only
flag into the first of them. Namespace imports and side-effect imports are
left alone, comments stay where they are and no other code moves.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from tree_sitter import Node

from ..analysis.parser import (
    ModuleParser,
    first_child_of_type,
    has_keyword,
    node_text,
    source_of,
    statements,
    string_value,
)

logger = logging.getLogger(__name__)


@dataclass
class ImportGroup:
    """Mergeable import declarations of one module."""

    source: str
    type_only: bool
    nodes: List[Node] = field(default_factory=list)


def _mergeable(node: Node) -> bool:
    if node.type != "import_statement" or source_of(node) is None:
        return False
    clause = first_child_of_type(node, "import_clause")
    if clause is None:
        return False
    return all(child.type != "namespace_import" for child in clause.named_children)


def _has_default(node: Node) -> bool:
    clause = first_child_of_type(node, "import_clause")
    return any(child.type == "identifier" for child in clause.named_children)


def _group_imports(root: Node) -> List[ImportGroup]:
    groups: Dict[Tuple[str, bool, bool], ImportGroup] = {}
    for node in statements(root):
        if not _mergeable(node):
            continue
        source = node_text(source_of(node))
        type_only = has_keyword(node, "type")
        # `import type D, { a }` is not valid, so type-only defaults merge only with each other
        key = (string_value(source_of(node)), type_only, type_only and _has_default(node))
        group = groups.get(key)
        if group is None:
            group = groups[key] = ImportGroup(source, key[1])
        group.nodes.append(node)
    return [group for group in groups.values() if len(group.nodes) > 1]


def _merge(group: ImportGroup) -> Optional[str]:
    """Text of the merged declaration, or None if two default bindings conflict."""
    default: Optional[str] = None
    specifiers: List[str] = []
    for node in group.nodes:
        clause = first_child_of_type(node, "import_clause")
        for child in clause.named_children:
            if child.type == "identifier":
                name = node_text(child)
                if default is not None and default != name:
                    return None
                default = name
            elif child.type == "named_imports":
                for element in child.named_children:
                    if element.type != "import_specifier":
                        continue
                    text = " ".join(node_text(element).split())
                    if text not in specifiers:
                        specifiers.append(text)

    parts: List[str] = []
    if default:
        parts.append(default)
    if specifiers:
        parts.append("{ " + ", ".join(specifiers) + " }")
    if not parts:
        return None
    keyword = "import type" if group.type_only else "import"
    return f"{keyword} {', '.join(parts)} from {group.source};"


def _removal_end(source: bytes, end: int) -> int:
    """Extend a removed statement over its line break."""
    if source[end:end + 2] == b"\r\n":
        return end + 2
    if source[end:end + 1] == b"\n":
        return end + 1
    return end


def organize_imports(text: str, path: str, parser: Optional[ModuleParser] = None) -> str:
    """
    Merge duplicate imports in ``text``.

    Raises:
        ModuleParseError: if ``text`` does not parse
    """
    parser = parser or ModuleParser()
    source = text.encode("utf-8")
    root = parser.parse(path, source).root_node

    edits: List[Tuple[int, int, bytes]] = []
    for group in _group_imports(root):
        merged = _merge(group)
        if merged is None:
            logger.debug(f"Not merging imports of {group.source} in {path}: conflicting default bindings")
            continue
        first, *rest = group.nodes
        edits.append((first.start_byte, first.end_byte, merged.encode("utf-8")))
        for node in rest:
            edits.append((node.start_byte, _removal_end(source, node.end_byte), b""))

    if not edits:
        return text

    for start, end, replacement in sorted(edits, key=lambda edit: edit[0], reverse=True):
        source = source[:start] + replacement + source[end:]
    logger.debug(f"Organized imports in {path}")
    return source.decode("utf-8")
