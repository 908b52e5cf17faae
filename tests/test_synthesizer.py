"""
Tests for synthesizer module.
"""

import pytest

from debarrel.models import Name, RewriteItem, RewriteKind
from debarrel.refactoring.synthesizer import DeclarationSynthesizer


@pytest.fixture
def synthesizer():
    """Synthesizer with double quotes."""
    return DeclarationSynthesizer()


def import_item(**kwargs):
    return RewriteItem(kind=RewriteKind.IMPORT, **kwargs)


def export_item(**kwargs):
    return RewriteItem(kind=RewriteKind.EXPORT, **kwargs)


class TestImportDeclarations:
    """Tests for synthesized import statements."""

    def test_named_and_aliased(self, synthesizer):
        """Test a plain named import block."""
        item = import_item(named=[Name("a"), Name("b", "c")])
        assert synthesizer.declarations(item, "./x") == ['import { a, b as c } from "./x";']

    def test_default_and_named(self, synthesizer):
        """Test a default binding followed by named bindings."""
        item = import_item(named=[Name("a")], default_name="D")
        assert synthesizer.declarations(item, "./x") == ['import D, { a } from "./x";']

    def test_default_only(self, synthesizer):
        """Test a default-only import."""
        assert synthesizer.declarations(import_item(default_name="D"), "./x") == ['import D from "./x";']

    def test_all_types(self, synthesizer):
        """Test that an all-type block uses ``import type``."""
        item = import_item(named=[Name("A", None, True), Name("B", None, True)])
        assert synthesizer.declarations(item, "./x") == ['import type { A, B } from "./x";']

    def test_mixed_types(self, synthesizer):
        """Test per-binding type modifiers in a mixed block."""
        item = import_item(named=[Name("a"), Name("T", None, True)])
        assert synthesizer.declarations(item, "./x") == ['import { a, type T } from "./x";']

    def test_type_default_alone(self, synthesizer):
        """Test a type-only default binding."""
        item = import_item(default_name="Props", default_is_type=True)
        assert synthesizer.declarations(item, "./x") == ['import type Props from "./x";']

    def test_type_default_with_named(self, synthesizer):
        """Test that a type-only default is split from value bindings."""
        item = import_item(named=[Name("a")], default_name="Props", default_is_type=True)
        assert synthesizer.declarations(item, "./x") == [
            'import type Props from "./x";',
            'import { a } from "./x";',
        ]

    def test_namespace(self, synthesizer):
        """Test a namespace import."""
        item = import_item(re_exported_ns="utils")
        assert synthesizer.declarations(item, "./x") == ['import * as utils from "./x";']

    def test_string_export_name(self, synthesizer):
        """Test that non-identifier names are quoted."""
        item = import_item(named=[Name("my-name", "myName")])
        assert synthesizer.declarations(item, "./x") == ['import { "my-name" as myName } from "./x";']

    def test_single_quotes(self):
        """Test the single quote style."""
        item = import_item(named=[Name("a")])
        assert DeclarationSynthesizer(single_quote=True).declarations(item, "./x") == ["import { a } from './x';"]


class TestExportDeclarations:
    """Tests for synthesized export statements."""

    def test_star(self, synthesizer):
        """Test ``export *``."""
        assert synthesizer.declarations(export_item(star=True), "./x") == ['export * from "./x";']

    def test_namespace(self, synthesizer):
        """Test ``export * as ns``."""
        assert synthesizer.declarations(export_item(re_exported_ns="ns"), "./x") == ['export * as ns from "./x";']

    def test_named_with_default_alias(self, synthesizer):
        """Test re-exporting a default under a name."""
        item = export_item(named=[Name("default", "helper"), Name("b")])
        assert synthesizer.declarations(item, "./x") == ['export { default as helper, b } from "./x";']

    def test_type_only(self, synthesizer):
        """Test ``export type``."""
        item = export_item(named=[Name("T", None, True)])
        assert synthesizer.declarations(item, "./x") == ['export type { T } from "./x";']

    def test_star_and_named(self, synthesizer):
        """Test a star and a named block for one target."""
        item = export_item(star=True, named=[Name("a")])
        assert synthesizer.declarations(item, "./x") == ['export * from "./x";', 'export { a } from "./x";']


class TestReplacement:
    """Tests for DeclarationSynthesizer.replacement."""

    def test_joins_targets(self, synthesizer):
        """Test that targets are emitted in order, one statement per line."""
        targets = {
            "/src/a.ts": import_item(named=[Name("a")]),
            "/src/b.ts": import_item(named=[Name("b")]),
        }
        text = synthesizer.replacement(targets, lambda target, rewrite: "." + target[4:-3])
        assert text == 'import { a } from "./a";\nimport { b } from "./b";'

    def test_unsafe_namespace_object(self, synthesizer):
        """Test the namespace object appended for unsafe namespace rewrites."""
        targets = {
            "/src/a.ts": import_item(named=[Name("a")], unsafe_ns_name="utils"),
            "/src/b.ts": import_item(named=[Name("b", "bee")], unsafe_ns_name="utils"),
        }
        text = synthesizer.replacement(targets, lambda target, rewrite: "." + target[4:-3])
        assert text.splitlines()[-1] == "const utils = { a, bee };"

    def test_string_literal_escapes_quote(self):
        """Test escaping inside the specifier."""
        assert DeclarationSynthesizer(single_quote=True).string_literal("it's") == "'it\\'s'"
