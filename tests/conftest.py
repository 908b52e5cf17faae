"""
Shared fixtures for debarrel tests.
"""

import os

import pytest

from debarrel.api import Debarrel
from debarrel.models import DebarrelOptions


def write_files(root, files):
    """Write ``{relative_path: content}`` below ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def project(tmp_path):
    """Factory creating a project directory from a mapping of files."""
    root = tmp_path / "project"
    root.mkdir()

    def make(files):
        write_files(root, files)
        return root

    return make


@pytest.fixture
def run():
    """Run debarrel on a project directory with the given options."""

    def execute(root, **kwargs):
        kwargs.setdefault("write", True)
        return Debarrel().run(DebarrelOptions(cwd=str(root), **kwargs))

    return execute


def read(root, relative):
    return (root / relative).read_text(encoding="utf-8")


def exists(root, relative):
    return os.path.exists(os.path.join(str(root), relative))


def relative(paths, root):
    """Sorted project-relative POSIX forms of absolute result paths."""
    base = os.path.realpath(str(root))
    return sorted(os.path.relpath(path, base).replace(os.sep, "/") for path in paths)
