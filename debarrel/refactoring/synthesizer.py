"""
Declaration synthesizer.

Prints the replacement statements for one rewritten statement, in the shape
the TypeScript printer produces: ``import { a, b as c } from "x";``,
``import type { T } from "x";``, ``import * as ns from "x";``,
``export * from "x";`` and the ``const ns = { a, b };`` object used by unsafe
namespace rewrites.
"""

import re
from typing import Callable, Dict, List, Optional

from ..models import Name, RewriteItem, RewriteKind

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][\w$]*$")

SpecifierBuilder = Callable[[str, RewriteItem], str]


class DeclarationSynthesizer:
    """Turns RewriteItems into statement text with a fixed quote style."""

    def __init__(self, single_quote: bool = False):
        self.quote = "'" if single_quote else '"'

    def string_literal(self, value: str) -> str:
        escaped = value.replace("\\", "\\\\").replace(self.quote, "\\" + self.quote)
        return f"{self.quote}{escaped}{self.quote}"

    def declarations(self, rewrite: RewriteItem, specifier: str) -> List[str]:
        """Statements for one target of a rewritten statement."""
        if rewrite.kind is RewriteKind.EXPORT:
            return self.export_declarations(rewrite, specifier)
        return self.import_declarations(rewrite, specifier)

    def import_declarations(self, rewrite: RewriteItem, specifier: str) -> List[str]:
        source = self.string_literal(specifier)
        lines: List[str] = []
        if rewrite.re_exported_ns:
            lines.append(f"import * as {rewrite.re_exported_ns} from {source};")

        named = rewrite.named
        default = rewrite.default_name
        if default and rewrite.default_is_type and named:
            # `import type D, { a }` is not valid, so a type-only default gets its own statement
            lines.append(f"import type {default} from {source};")
            default = None

        if default is None and not named:
            return lines

        type_only = (default is None or rewrite.default_is_type) and bool(named or default) and all(
            name.is_type for name in named
        )
        parts: List[str] = []
        if default:
            parts.append(default)
        if named:
            parts.append(self._named_block(named, per_binding_type=not type_only))
        keyword = "import type" if type_only else "import"
        lines.append(f"{keyword} {', '.join(parts)} from {source};")
        return lines

    def export_declarations(self, rewrite: RewriteItem, specifier: str) -> List[str]:
        source = self.string_literal(specifier)
        lines: List[str] = []
        if rewrite.star:
            lines.append(f"export * from {source};")
        if rewrite.re_exported_ns:
            lines.append(f"export * as {rewrite.re_exported_ns} from {source};")
        if rewrite.named:
            type_only = all(name.is_type for name in rewrite.named)
            keyword = "export type" if type_only else "export"
            block = self._named_block(rewrite.named, per_binding_type=not type_only)
            lines.append(f"{keyword} {block} from {source};")
        return lines

    @staticmethod
    def namespace_object(name: str, identifiers: List[str]) -> str:
        """``const name = { a, b };``"""
        return f"const {name} = {{ {', '.join(identifiers)} }};"

    def replacement(self, targets: Dict[str, RewriteItem], specifier_for: SpecifierBuilder) -> str:
        """
        Full replacement text for one statement: the declarations of every
        target joined by newlines, followed by the namespace object of an
        unsafe namespace rewrite.
        """
        lines: List[str] = []
        unsafe_name: Optional[str] = None
        identifiers: List[str] = []

        for target, rewrite in targets.items():
            lines.extend(self.declarations(rewrite, specifier_for(target, rewrite)))
            if rewrite.unsafe_ns_name:
                unsafe_name = rewrite.unsafe_ns_name
                for local in _local_names(rewrite):
                    if local not in identifiers:
                        identifiers.append(local)

        if unsafe_name and identifiers:
            lines.append(self.namespace_object(unsafe_name, identifiers))
        return "\n".join(lines)

    def _named_block(self, names: List[Name], per_binding_type: bool) -> str:
        return "{ " + ", ".join(self._specifier(name, per_binding_type) for name in names) + " }"

    @staticmethod
    def _specifier(name: Name, per_binding_type: bool) -> str:
        text = _module_export_name(name.name)
        if name.alias and name.alias != name.name:
            text = f"{text} as {_module_export_name(name.alias)}"
        if per_binding_type and name.is_type:
            text = f"type {text}"
        return text


def _module_export_name(name: str) -> str:
    """Identifiers print bare, anything else as a string literal name."""
    if IDENTIFIER_PATTERN.match(name):
        return name
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _local_names(rewrite: RewriteItem) -> List[str]:
    names = [name.local for name in rewrite.named]
    if rewrite.default_name:
        names.append(rewrite.default_name)
    if rewrite.re_exported_ns:
        names.append(rewrite.re_exported_ns)
    return names
