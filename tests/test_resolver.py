"""
Tests for resolver module.
"""

import os

import pytest

from conftest import write_files
from debarrel.analysis.resolver import ModuleResolver, infer_alias_specifier, try_map_to_alias
from debarrel.models import PathAliases


@pytest.fixture
def root(tmp_path):
    """Project with plain files, an index directory and a local package."""
    write_files(
        tmp_path,
        {
            "src/app.ts": "",
            "src/utils/index.ts": "",
            "src/utils/format.ts": "",
            "src/widget.tsx": "",
            "src/data.json": "{}",
            "src/pkg/package.json": '{"main": "./lib/entry.js"}',
            "src/pkg/lib/entry.ts": "",
            "node_modules/react/index.js": "",
        },
    )
    return os.path.realpath(str(tmp_path))


@pytest.fixture
def resolver():
    """Resolver without path aliases."""
    return ModuleResolver()


class TestResolve:
    """Tests for ModuleResolver.resolve."""

    def test_tries_extensions(self, root, resolver):
        """Test that a missing extension is tried."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "./utils/format") == os.path.join(root, "src/utils/format.ts")

    def test_js_extension_maps_to_ts(self, root, resolver):
        """Test that a .js specifier finds the .ts source."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "./utils/format.js") == os.path.join(root, "src/utils/format.ts")

    def test_jsx_extension_maps_to_tsx(self, root, resolver):
        """Test that a .jsx specifier finds the .tsx source."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "./widget.jsx") == os.path.join(root, "src/widget.tsx")

    def test_directory_index(self, root, resolver):
        """Test that a directory resolves to its index file."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "./utils") == os.path.join(root, "src/utils/index.ts")

    def test_package_main(self, root, resolver):
        """Test that a directory with package.json uses its main field."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "./pkg") == os.path.join(root, "src/pkg/lib/entry.ts")

    def test_json_file(self, root, resolver):
        """Test that JSON modules resolve."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "./data") == os.path.join(root, "src/data.json")

    def test_unresolved_relative_is_none(self, root, resolver):
        """Test that a missing relative module is None."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "./missing") is None

    def test_node_modules_package_returns_specifier(self, root, resolver):
        """Test that installed packages are reported by name."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "react") == "react"

    def test_unknown_bare_specifier_is_external(self, root, resolver):
        """Test that an unresolved bare specifier is treated as external."""
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "not-installed/sub?x") == "not-installed/sub"

    def test_path_alias(self, root):
        """Test resolution through compilerOptions.paths."""
        aliases = PathAliases(base_url=root, paths={"@/*": ["src/*"]}, declared_base_url=True)
        resolver = ModuleResolver(aliases)
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "@/utils") == os.path.join(root, "src/utils/index.ts")

    def test_declared_base_url_resolves_bare(self, root):
        """Test that an explicit baseUrl makes bare specifiers project-relative."""
        aliases = PathAliases(base_url=os.path.join(root, "src"), paths={}, declared_base_url=True)
        resolver = ModuleResolver(aliases)
        app = os.path.join(root, "src/app.ts")
        assert resolver.resolve(app, "utils/format") == os.path.join(root, "src/utils/format.ts")


class TestBuildSpecifier:
    """Tests for ModuleResolver.build_specifier."""

    def test_relative_without_extension(self, root, resolver):
        """Test that the original's missing extension is kept."""
        app = os.path.join(root, "src/app.ts")
        target = os.path.join(root, "src/utils/format.ts")
        assert resolver.build_specifier(app, target, original_specifier="./utils") == "./utils/format"

    def test_follows_original_extension(self, root, resolver):
        """Test that the original's extension is applied to the new target."""
        app = os.path.join(root, "src/app.ts")
        target = os.path.join(root, "src/utils/format.ts")
        assert resolver.build_specifier(app, target, original_specifier="./utils/index.js") == "./utils/format.js"

    def test_forced_extension(self, root, resolver):
        """Test that an explicit extension wins."""
        app = os.path.join(root, "src/app.ts")
        target = os.path.join(root, "src/utils/format.ts")
        assert resolver.build_specifier(app, target, ext=".mjs", original_specifier="./utils") == "./utils/format.mjs"

    def test_empty_extension_strips(self, root, resolver):
        """Test that an empty extension strips it."""
        app = os.path.join(root, "src/app.ts")
        target = os.path.join(root, "src/utils/format.ts")
        assert resolver.build_specifier(app, target, ext="", original_specifier="./utils/index.js") == "./utils/format"

    def test_parent_directory(self, root, resolver):
        """Test a target above the consumer."""
        consumer = os.path.join(root, "src/utils/format.ts")
        target = os.path.join(root, "src/app.ts")
        assert resolver.build_specifier(consumer, target, original_specifier="..") == "../app"

    def test_declared_alias_is_kept(self, root):
        """Test that an aliased import stays aliased."""
        aliases = PathAliases(base_url=root, paths={"@/*": ["src/*"]}, declared_base_url=True)
        resolver = ModuleResolver(aliases)
        app = os.path.join(root, "src/app.ts")
        target = os.path.join(root, "src/utils/format.ts")
        assert resolver.build_specifier(app, target, original_specifier="@/utils") == "@/utils/format"


class TestAliasHelpers:
    """Tests for the alias mapping helpers."""

    def test_try_map_to_alias(self):
        """Test mapping a path back under its alias."""
        aliases = PathAliases(base_url="/app", paths={"~/*": ["src/*"]})
        assert try_map_to_alias("/app/src/a/b.ts", aliases, "~/a") == "~/a/b"

    def test_try_map_to_alias_outside_base(self):
        """Test that targets outside the alias base are not mapped."""
        aliases = PathAliases(base_url="/app", paths={"~/*": ["src/*"]})
        assert try_map_to_alias("/app/lib/b.ts", aliases, "~/a") is None

    def test_infer_alias_specifier(self):
        """Test inferring an undeclared alias from the original segments."""
        assert infer_alias_specifier("@/utils", "/app/src/utils/format.ts") == "@/utils/format"

    def test_infer_alias_needs_segments(self):
        """Test that a single-segment specifier cannot be inferred."""
        assert infer_alias_specifier("lodash", "/app/src/lodash.ts") is None
