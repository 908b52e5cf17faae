"""
Tests for specifier module.
"""

from debarrel.analysis.specifier import (
    ensure_extension,
    extension_of,
    is_relative_or_absolute,
    parse_specifier,
    strip_query,
)


class TestParseSpecifier:
    """Tests for parse_specifier function."""

    def test_plain_relative(self):
        """Test a specifier without prefix or suffix."""
        assert parse_specifier("./utils") == ("", "./utils", "")

    def test_loader_prefix(self):
        """Test that everything up to the last bang is the prefix."""
        parsed = parse_specifier("style-loader!css-loader!./app.css")
        assert parsed.prefix == "style-loader!css-loader!"
        assert parsed.path == "./app.css"
        assert parsed.suffix == ""

    def test_query_suffix(self):
        """Test a query suffix."""
        assert parse_specifier("./icon.svg?raw") == ("", "./icon.svg", "?raw")

    def test_hash_suffix(self):
        """Test a hash suffix."""
        assert parse_specifier("./data#frag") == ("", "./data", "#frag")

    def test_bang_after_query_belongs_to_suffix(self):
        """Test that a bang after the query does not start a prefix."""
        assert parse_specifier("./file?a!b") == ("", "./file", "?a!b")

    def test_prefix_and_suffix(self):
        """Test both parts at once."""
        assert parse_specifier("raw-loader!./file.txt?inline") == ("raw-loader!", "./file.txt", "?inline")


class TestSpecifierHelpers:
    """Tests for the small specifier helpers."""

    def test_strip_query(self):
        """Test query removal."""
        assert strip_query("./a?x=1") == "./a"
        assert strip_query("./a") == "./a"

    def test_is_relative_or_absolute(self):
        """Test relative, absolute and bare specifiers."""
        assert is_relative_or_absolute("./a")
        assert is_relative_or_absolute("../a")
        assert is_relative_or_absolute("/abs/a")
        assert not is_relative_or_absolute("react")
        assert not is_relative_or_absolute("@/utils")

    def test_extension_of(self):
        """Test script extension detection."""
        assert extension_of("./a.js") == ".js"
        assert extension_of("./a.mts") == ".mts"
        assert extension_of("./a") is None
        assert extension_of("./a.css") is None

    def test_ensure_extension_replaces(self):
        """Test that the script extension is replaced."""
        assert ensure_extension("/src/a.ts", ".js") == "/src/a.js"

    def test_ensure_extension_strips(self):
        """Test that an empty or missing extension strips it."""
        assert ensure_extension("/src/a.ts", "") == "/src/a"
        assert ensure_extension("/src/a.tsx", None) == "/src/a"
