"""
Tree-sitter boundary for TypeScript and JavaScript modules.

Everything that knows about concrete tree-sitter node types lives here. The
rest of the package works with byte positions, statement nodes and the small
helper functions below.
"""

import logging
from typing import Dict, Iterator, List, Optional, Set, Tuple

import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser, Tree

from ..constants import TYPESCRIPT_ONLY_EXTENSIONS
from ..errors import ModuleParseError

logger = logging.getLogger(__name__)

NON_STATEMENT_NODES = {"comment", "hash_bang_line"}

NAMED_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "internal_module",
    "module",
}

VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}


class ModuleParser:
    """Parses module source with the grammar matching the file extension."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def _parser_for(self, path: str) -> Parser:
        grammar = "typescript" if path.endswith(TYPESCRIPT_ONLY_EXTENSIONS) else "tsx"
        parser = self._parsers.get(grammar)
        if parser is None:
            if grammar == "typescript":
                language = Language(tstypescript.language_typescript())
            else:
                language = Language(tstypescript.language_tsx())
            parser = Parser(language)
            self._parsers[grammar] = parser
        return parser

    def parse(self, path: str, source: bytes) -> Tree:
        """
        Parse ``source`` and return the tree.

        Raises:
            ModuleParseError: if the tree contains a syntax error
        """
        tree = self._parser_for(path).parse(source)
        if tree.root_node.has_error:
            line = _first_error_line(tree.root_node)
            logger.debug(f"Syntax error in {path} at line {line}")
            raise ModuleParseError(path, line)
        return tree


def _first_error_line(root: Node) -> Optional[int]:
    for node in iter_nodes(root):
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
    return None


def iter_nodes(root: Node) -> Iterator[Node]:
    """Depth-first walk over every node below ``root``."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def statements(root: Node) -> List[Node]:
    """Top-level statements, skipping comments and a leading hashbang."""
    return [child for child in root.named_children if child.type not in NON_STATEMENT_NODES]


def node_text(node: Node) -> str:
    return node.text.decode("utf-8")


def string_value(node: Node) -> str:
    """Contents of a string literal node without its quotes."""
    return node_text(node)[1:-1]


def has_keyword(node: Node, keyword: str) -> bool:
    """True if ``node`` has a direct anonymous child token ``keyword``."""
    return any(not child.is_named and child.type == keyword for child in node.children)


def source_of(statement: Node) -> Optional[Node]:
    """The module specifier string of an import or export-from statement."""
    source = statement.child_by_field_name("source")
    if source is not None and source.type == "string":
        return source
    if statement.type == "import_statement":
        for child in statement.children:
            if child.type == "string":
                return child
    return None


def is_reexport(statement: Node) -> bool:
    """An ``export ... from "x"`` statement."""
    return statement.type == "export_statement" and source_of(statement) is not None


def first_child_of_type(node: Node, node_type: str) -> Optional[Node]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def namespace_export_name(statement: Node) -> Optional[str]:
    """Name bound by ``export * as ns from "x"``."""
    namespace = first_child_of_type(statement, "namespace_export")
    if namespace is None:
        return None
    for child in namespace.named_children:
        if child.type == "identifier":
            return node_text(child)
        if child.type == "string":
            return string_value(child)
    return None


def specifier_names(specifier: Node) -> Tuple[str, Optional[str]]:
    """
    ``(name, alias)`` of an import or export specifier.

    ``name`` is the name in the source module, ``alias`` the local or exported
    name when renamed.
    """
    name_node = specifier.child_by_field_name("name")
    alias_node = specifier.child_by_field_name("alias")
    name = _identifier_or_string(name_node) if name_node is not None else ""
    alias = _identifier_or_string(alias_node) if alias_node is not None else None
    return name, alias


def _identifier_or_string(node: Node) -> str:
    if node.type == "string":
        return string_value(node)
    return node_text(node)


def declaration_names(node: Node) -> Set[str]:
    """Names introduced by an exported declaration."""
    names: Set[str] = set()
    if node.type in NAMED_DECLARATIONS:
        name = node.child_by_field_name("name")
        if name is not None and name.type in ("identifier", "type_identifier", "nested_identifier"):
            names.add(node_text(name))
    elif node.type in VARIABLE_DECLARATIONS:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                names.add(node_text(name))
    elif node.type == "ambient_declaration":
        for child in node.named_children:
            names.update(declaration_names(child))
    return names


def dynamic_import_specifiers(root: Node) -> Iterator[str]:
    """Literal specifiers passed to ``import(...)`` anywhere in the tree."""
    for node in iter_nodes(root):
        if node.type != "call_expression":
            continue
        function = node.child_by_field_name("function")
        if function is None or function.type != "import":
            continue
        arguments = node.child_by_field_name("arguments")
        if arguments is None or not arguments.named_children:
            continue
        first = arguments.named_children[0]
        if first.type == "string":
            yield string_value(first)
