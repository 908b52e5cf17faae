"""
Tests for reporter module.
"""

from debarrel.models import PreservationReason, PreservedBarrel, UntraceableImport
from debarrel.orchestration.reporter import extract_statement_line, group_preserved, group_untraceable


class TestExtractStatementLine:
    """Tests for extract_statement_line function."""

    def test_plain_statement(self):
        """Test a statement without comments."""
        assert extract_statement_line('import { a } from "./x";') == 'import { a } from "./x";'

    def test_leading_comments_removed(self):
        """Test that leading line and block comments are dropped."""
        text = '// one\n/* two */\nexport { a } from "./x";'
        assert extract_statement_line(text) == 'export { a } from "./x";'


class TestGrouping:
    """Tests for report grouping helpers."""

    def test_group_preserved_order(self):
        """Test that reasons come in report order and barrels are sorted."""
        preserved = [
            PreservedBarrel("/p/b.ts", PreservationReason.NAMESPACE_IMPORT, ["/p/app.ts"]),
            PreservedBarrel("/p/a.ts", PreservationReason.NAMESPACE_IMPORT, ["/p/app.ts"]),
            PreservedBarrel("/p/c.ts", PreservationReason.DYNAMIC_IMPORT, ["/p/lazy.ts"]),
        ]
        grouped = group_preserved(preserved)
        assert list(grouped) == [PreservationReason.DYNAMIC_IMPORT, PreservationReason.NAMESPACE_IMPORT]
        assert [barrel.path for barrel in grouped[PreservationReason.NAMESPACE_IMPORT]] == ["/p/a.ts", "/p/b.ts"]

    def test_group_untraceable(self):
        """Test grouping by barrel and consumer without duplicates."""
        items = [
            UntraceableImport("/p/index.ts", "/p/app.ts", "a"),
            UntraceableImport("/p/index.ts", "/p/app.ts", "a"),
            UntraceableImport("/p/index.ts", "/p/app.ts", "b"),
            UntraceableImport("/p/index.ts", "/p/other.ts", "c"),
        ]
        assert group_untraceable(items) == {"/p/index.ts": {"/p/app.ts": ["a", "b"], "/p/other.ts": ["c"]}}
