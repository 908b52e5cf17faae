"""
Tests for the command-line interface.
"""

import json

import pytest

from conftest import exists, read
from debarrel.cli.main import build_options, create_parser, main

FILES = {
    "src/utils/format.ts": "export const format = (v: string) => v;\n",
    "src/utils/index.ts": 'export { format } from "./format";\n',
    "src/app.ts": 'import { format } from "./utils";\nformat("a");\n',
}


@pytest.fixture
def root(project):
    """Small project with one barrel."""
    return project(FILES)


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test default option values."""
        args = create_parser().parse_args([])
        options = build_options(args)
        assert options.cwd == "."
        assert options.files is None
        assert options.ext is None
        assert not options.write
        assert options.dry_run

    def test_repeatable_options(self):
        """Test that list options accumulate."""
        args = create_parser().parse_args(["-o", "a.ts", "--only", "b.ts", "-s", "c.ts", "-f", "src/**/*.ts"])
        options = build_options(args)
        assert options.only == ["a.ts", "b.ts"]
        assert options.skip == ["c.ts"]
        assert options.files == ["src/**/*.ts"]

    def test_ext_gets_a_dot(self):
        """Test that ``--ext js`` means ``.js``."""
        assert build_options(create_parser().parse_args(["--ext", "js"])).ext == ".js"
        assert build_options(create_parser().parse_args(["--ext", ""])).ext == ""

    def test_ci_alias(self):
        """Test that ``--ci`` is the same as ``--check``."""
        assert create_parser().parse_args(["--ci"]).check


class TestMain:
    """Tests for the main entry point."""

    def test_dry_run(self, root, capsys):
        """Test that the default run only reports."""
        assert main(["--cwd", str(root), "--no-rich"]) == 0
        captured = capsys.readouterr()
        assert "modified: src/app.ts" in captured.out
        assert "deleted: src/utils/index.ts" in captured.out
        assert '+ import { format } from "./utils/format";' in captured.out
        assert "Run with --write" in captured.err
        assert exists(root, "src/utils/index.ts")

    def test_write(self, root, capsys):
        """Test that ``--write`` applies the changes."""
        assert main(["--cwd", str(root), "--write", "--no-rich"]) == 0
        assert read(root, "src/app.ts") == 'import { format } from "./utils/format";\nformat("a");\n'
        assert not exists(root, "src/utils/index.ts")

    def test_check_fails_with_changes(self, root, capsys):
        """Test the exit status of check mode."""
        assert main(["--cwd", str(root), "--check", "--no-rich"]) == 1
        assert "Check failed" in capsys.readouterr().err
        assert exists(root, "src/utils/index.ts")

    def test_check_passes_when_clean(self, root):
        """Test that check mode passes once everything is rewired."""
        main(["--cwd", str(root), "--write", "--no-rich"])
        assert main(["--cwd", str(root), "--check", "--no-rich"]) == 0

    def test_json_output(self, root, capsys):
        """Test the machine-readable report."""
        assert main(["--cwd", str(root), "--json"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert [path.endswith("app.ts") for path in report["modified"]] == [True]
        assert report["deleted"][0].endswith("index.ts")
        assert report["errors"] == []

    def test_missing_cwd(self, tmp_path, capsys):
        """Test that a missing working directory is a configuration error."""
        assert main(["--cwd", str(tmp_path / "missing"), "--no-rich"]) == 1
        assert "Working directory does not exist" in capsys.readouterr().err

    def test_bad_config_file(self, root, tmp_path, capsys):
        """Test that an invalid configuration file aborts the run."""
        config = tmp_path / "bad.yaml"
        config.write_text("rewrite:\n  quote_style: backtick\n", encoding="utf-8")
        assert main(["--cwd", str(root), "--config", str(config), "--no-rich"]) == 1
        assert "quote_style" in capsys.readouterr().err

    def test_config_file_in_project(self, root):
        """Test that a configuration file in the project applies its defaults."""
        (root / "debarrel.yaml").write_text("rewrite:\n  quote_style: single\n", encoding="utf-8")
        main(["--cwd", str(root), "--write", "--no-rich"])
        assert read(root, "src/app.ts") == "import { format } from './utils/format';\nformat(\"a\");\n"
