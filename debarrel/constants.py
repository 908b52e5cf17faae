"""Shared constants and path predicates."""

import re
from typing import Optional

EXTENSIONS = ("ts", "tsx", "js", "jsx", "mjs", "mts", "cjs", "cts")
SCRIPT_EXTENSIONS = tuple(f".{ext}" for ext in EXTENSIONS)
JS_EXT_PATTERN = re.compile(r"\.(%s)$" % "|".join(EXTENSIONS))
DEFAULT_GLOBS = [f"**/*{ext}" for ext in SCRIPT_EXTENSIONS]
RESOLVER_EXTENSIONS = SCRIPT_EXTENSIONS + (".json",)

# A specifier ending in the key may name a file with any of the listed extensions.
EXTENSION_ALIASES = {
    ".js": (".js", ".ts", ".tsx"),
    ".jsx": (".jsx", ".tsx"),
    ".mjs": (".mjs", ".mts"),
    ".cjs": (".cjs", ".cts"),
}

# Grammar selection: everything not listed here is parsed with the tsx grammar.
TYPESCRIPT_ONLY_EXTENSIONS = (".ts", ".mts", ".cts")

# Consumers with these suffixes are reported as namespace-import holdouts.
TS_CONSUMER_SUFFIXES = (".ts", ".tsx")

DEFAULT_IGNORE = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/out/**",
    "**/coverage/**",
    "**/*.d.ts",
]

NON_SCRIPT_GLOB = "**/*.{astro,html,marko,mdx,svelte,vue}"

CONFIG_FILE_NAMES = [
    "debarrel.json",
    "debarrel.yaml",
    "debarrel.yml",
    ".debarrel.json",
    ".debarrel.yaml",
    ".debarrel.yml",
]

_IGNORED_PATH_PATTERN = re.compile(r"/node_modules/|\.d\.ts$")
_BUILD_OUTPUT_DIRS = re.compile(r"^(?:apps|packages|libs|modules)/[^/]+/(dist|build|out|coverage)/")


def is_ignored_path(file_path: str, base: Optional[str] = None) -> bool:
    """Return True for dependency files, declaration files and workspace build output."""
    if _IGNORED_PATH_PATTERN.search(file_path):
        return True
    if base:
        prefix = base.rstrip("/") + "/"
        relative_path = file_path[len(prefix):] if file_path.startswith(prefix) else file_path
        if _BUILD_OUTPUT_DIRS.match(relative_path):
            return True
    return False
