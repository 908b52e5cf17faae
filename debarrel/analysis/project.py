"""
Project-level configuration: tsconfig.json, the project file set and package entry points.

tsconfig files are JSONC (comments and trailing commas allowed) and may extend
other configs. Only the parts debarrel needs are interpreted: ``baseUrl`` and
``paths`` for aliases, ``files``/``include``/``exclude`` for the file list,
and ``outDir``/``rootDir`` for entry-point detection.
"""

import fnmatch
import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from ..constants import JS_EXT_PATTERN, is_ignored_path
from ..models import PathAliases

logger = logging.getLogger(__name__)

TSCONFIG_NAME = "tsconfig.json"
TS_SOURCE_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts")
JS_SOURCE_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs")
TSCONFIG_DEFAULT_EXCLUDE = ["node_modules", "bower_components", "jspm_packages"]


# ---------------------------------------------------------------------------
# JSONC
# ---------------------------------------------------------------------------


def strip_jsonc(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments and trailing commas outside of strings."""
    out: List[str] = []
    i = 0
    n = len(text)
    in_string = False
    escaped = False

    while i < n:
        c = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if in_string:
            out.append(c)
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            i += 1
            continue

        if c == '"':
            in_string = True
            out.append(c)
            i += 1
        elif c == "/" and nxt == "/":
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif c == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        elif c == ",":
            j = i + 1
            while j < n:
                if text[j].isspace():
                    j += 1
                elif text.startswith("//", j):
                    end = text.find("\n", j)
                    j = n if end == -1 else end
                elif text.startswith("/*", j):
                    end = text.find("*/", j + 2)
                    j = n if end == -1 else end + 2
                else:
                    break
            if j < n and text[j] in "}]":
                i += 1
            else:
                out.append(c)
                i += 1
        else:
            out.append(c)
            i += 1

    return "".join(out)


def load_jsonc(path: str) -> Optional[Dict[str, Any]]:
    """Load a JSONC object, returning None when the file is missing or malformed."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError:
        return None
    try:
        data = json.loads(strip_jsonc(raw))
    except ValueError as e:
        logger.warning(f"Ignoring malformed {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


# ---------------------------------------------------------------------------
# Globbing
# ---------------------------------------------------------------------------


def expand_braces(pattern: str) -> List[str]:
    """
    Expand ``{a,b}`` alternatives.

    Example:
        >>> expand_braces("**/*.{ts,tsx}")
        ['**/*.ts', '**/*.tsx']
    """
    match = re.search(r"\{([^{}]*)\}", pattern)
    if not match:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded: List[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def match_glob(rel_path: str, pattern: str) -> bool:
    """
    Match a POSIX relative path against a glob.

    Segments are compared with fnmatch, and a ``**`` segment spans any number
    of directories, including none.

    Example:
        >>> match_glob("src/deep/a.ts", "**/*.ts")
        True
    """
    return _match_parts(rel_path.split("/"), _strip_dot_slash(pattern).split("/"))


def _match_parts(parts: List[str], pattern: List[str]) -> bool:
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(_match_parts(parts[i:], rest) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_parts(parts[1:], rest)


def expand_globs(patterns: Iterable[str]) -> List[str]:
    return [expanded for pattern in patterns for expanded in expand_braces(pattern)]


def glob_files(patterns: Iterable[str], cwd: str, ignore: Iterable[str] = ()) -> List[str]:
    """
    Absolute paths of files under ``cwd`` matching any pattern and no ignore pattern.

    Dot files, dot directories and node_modules are never matched.
    """
    include = expand_globs(patterns)
    if not include:
        return []
    excluded = expand_globs(ignore)

    def is_excluded(rel_path: str) -> bool:
        return any(match_glob(rel_path, pattern) for pattern in excluded)

    matches: List[str] = []
    for root, dirs, files in os.walk(cwd):
        rel_root = os.path.relpath(root, cwd).replace(os.sep, "/")
        rel_root = "" if rel_root == "." else rel_root + "/"
        dirs[:] = sorted(
            d for d in dirs if not d.startswith(".") and d != "node_modules" and not is_excluded(rel_root + d + "/")
        )
        for name in sorted(files):
            if name.startswith("."):
                continue
            rel_path = rel_root + name
            if any(match_glob(rel_path, pattern) for pattern in include) and not is_excluded(rel_path):
                matches.append(os.path.join(root, name))
    return matches


# ---------------------------------------------------------------------------
# tsconfig
# ---------------------------------------------------------------------------


@dataclass
class TsConfig:
    """A tsconfig with its ``extends`` chain applied."""

    path: str
    compiler_options: Dict[str, Any] = field(default_factory=dict)
    # Directory of the config that declared each compiler option.
    option_dirs: Dict[str, str] = field(default_factory=dict)
    files: Optional[List[str]] = None
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None
    # Directory of the config that declared files/include/exclude.
    spec_dir: str = ""

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)

    def option_path(self, key: str) -> Optional[str]:
        """An option holding a path, made absolute relative to its declaring config."""
        value = self.compiler_options.get(key)
        if not isinstance(value, str):
            return None
        base = self.option_dirs.get(key, self.directory)
        return os.path.normpath(os.path.join(base, value))


def find_tsconfig(start_dir: str) -> Optional[str]:
    directory = start_dir
    while True:
        candidate = os.path.join(directory, TSCONFIG_NAME)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        directory = parent


def _resolve_extends(config_path: str, value: str) -> Optional[str]:
    directory = os.path.dirname(config_path)
    if value.startswith(("./", "../", "/")):
        candidate = os.path.normpath(os.path.join(directory, value))
        for option in (candidate, candidate + ".json"):
            if os.path.isfile(option):
                return option
        return None

    # Package-provided base configs
    search = directory
    while True:
        base = os.path.join(search, "node_modules", value)
        for option in (base, base + ".json", os.path.join(base, TSCONFIG_NAME)):
            if os.path.isfile(option):
                return option
        parent = os.path.dirname(search)
        if parent == search:
            return None
        search = parent


def load_tsconfig(path: str, _seen: Optional[Set[str]] = None) -> Optional[TsConfig]:
    """Load ``path`` and merge the configs it extends, later configs overriding earlier ones."""
    seen = _seen if _seen is not None else set()
    if path in seen:
        logger.warning(f"Circular tsconfig extends chain at {path}")
        return None
    seen.add(path)

    data = load_jsonc(path)
    if data is None:
        return None

    config = TsConfig(path=path, spec_dir=os.path.dirname(path))

    extends = data.get("extends")
    parents = [extends] if isinstance(extends, str) else extends if isinstance(extends, list) else []
    for parent_ref in parents:
        if not isinstance(parent_ref, str):
            continue
        parent_path = _resolve_extends(path, parent_ref)
        if parent_path is None:
            logger.debug(f"Cannot resolve extends {parent_ref!r} in {path}")
            continue
        parent = load_tsconfig(parent_path, seen)
        if parent is None:
            continue
        config.compiler_options.update(parent.compiler_options)
        config.option_dirs.update(parent.option_dirs)
        for key in ("files", "include", "exclude"):
            if getattr(parent, key) is not None:
                setattr(config, key, getattr(parent, key))
                config.spec_dir = parent.spec_dir

    options = data.get("compilerOptions")
    if isinstance(options, dict):
        for key, value in options.items():
            config.compiler_options[key] = value
            config.option_dirs[key] = os.path.dirname(path)

    own_spec = False
    for key in ("files", "include", "exclude"):
        value = data.get(key)
        if isinstance(value, list):
            setattr(config, key, [item for item in value if isinstance(item, str)])
            own_spec = True
    if own_spec:
        config.spec_dir = os.path.dirname(path)

    return config


def extract_path_aliases(config: TsConfig) -> Optional[PathAliases]:
    paths = config.compiler_options.get("paths")
    if not isinstance(paths, dict):
        return None

    base_url = config.option_path("baseUrl")
    declared = base_url is not None
    if base_url is None:
        base_url = config.option_dirs.get("paths", config.directory)

    table = {
        pattern: [target for target in targets if isinstance(target, str)]
        for pattern, targets in paths.items()
        if isinstance(targets, list)
    }
    return PathAliases(base_url=base_url, paths=table, declared_base_url=declared)


def tsconfig_file_names(config: TsConfig) -> List[str]:
    """Source files selected by a tsconfig's ``files``, ``include`` and ``exclude``."""
    extensions = TS_SOURCE_EXTENSIONS
    if config.compiler_options.get("allowJs"):
        extensions = extensions + JS_SOURCE_EXTENSIONS

    base = config.spec_dir
    names: List[str] = []
    seen: Set[str] = set()

    for name in config.files or []:
        path = os.path.normpath(os.path.join(base, name))
        if os.path.isfile(path) and path not in seen:
            seen.add(path)
            names.append(path)

    include = config.include
    if include is None:
        include = [] if config.files is not None else ["**/*"]

    exclude = list(config.exclude) if config.exclude is not None else list(TSCONFIG_DEFAULT_EXCLUDE)
    out_dir = config.option_path("outDir")
    if config.exclude is None and out_dir and out_dir.startswith(base + os.sep):
        exclude.append(os.path.relpath(out_dir, base).replace(os.sep, "/"))

    include_patterns = [_directory_pattern(base, pattern) for pattern in include]
    exclude_patterns: List[str] = []
    for pattern in exclude:
        pattern = _strip_dot_slash(pattern)
        exclude_patterns.extend([pattern, pattern.rstrip("/") + "/**"])

    for path in glob_files(include_patterns, base, exclude_patterns):
        if path.endswith(extensions) and path not in seen:
            seen.add(path)
            names.append(path)
    return names


def _strip_dot_slash(pattern: str) -> str:
    return pattern[2:] if pattern.startswith("./") else pattern


def _directory_pattern(base: str, pattern: str) -> str:
    """An include entry naming a directory selects everything below it."""
    pattern = _strip_dot_slash(pattern)
    if not any(char in pattern for char in "*?") and os.path.isdir(os.path.join(base, pattern)):
        return pattern.rstrip("/") + "/**/*"
    return pattern


@dataclass
class ProjectConfig:
    """What the project's tsconfig contributes to a run."""

    aliases: Optional[PathAliases] = None
    files: List[str] = field(default_factory=list)
    tsconfig_path: Optional[str] = None


def load_project_config(cwd: str) -> ProjectConfig:
    """Find the nearest tsconfig.json above ``cwd`` and extract aliases and the file list."""
    tsconfig_path = find_tsconfig(cwd)
    if tsconfig_path is None:
        logger.debug(f"No {TSCONFIG_NAME} found above {cwd}")
        return ProjectConfig()

    config = load_tsconfig(tsconfig_path)
    if config is None:
        return ProjectConfig(tsconfig_path=tsconfig_path)

    logger.info(f"Using {tsconfig_path}")
    return ProjectConfig(
        aliases=extract_path_aliases(config),
        files=tsconfig_file_names(config),
        tsconfig_path=tsconfig_path,
    )


def relevant_project_files(project: ProjectConfig, base: str) -> List[str]:
    """tsconfig files that live under ``base`` and are not ignored."""
    prefix = base.rstrip("/") + "/"
    return [path for path in project.files if path.startswith(prefix) and not is_ignored_path(path, base)]


# ---------------------------------------------------------------------------
# Package entry points
# ---------------------------------------------------------------------------


@dataclass
class EntryPointData:
    resolved_paths: Set[str] = field(default_factory=set)
    # Source files (extension-less) that compile to an entry point inside outDir.
    source_stems: Set[str] = field(default_factory=set)


class EntryPointChecker:
    """
    Decides whether a file is a public entry point of its nearest package.

    A file is an entry point when the nearest ``package.json`` lists it in
    ``exports``, ``main`` or ``module``. When the package compiles from
    ``rootDir`` into ``outDir``, the source file of a listed output file counts
    too, with any script extension.
    """

    def __init__(self) -> None:
        self._packages: Dict[str, Optional[Dict[str, Any]]] = {}
        self._entry_points: Dict[str, EntryPointData] = {}

    def __call__(self, file_path: str) -> bool:
        return self.is_entry_point(file_path)

    def is_entry_point(self, file_path: str) -> bool:
        directory = os.path.dirname(file_path)
        while directory != os.path.dirname(directory):
            data = self._package_entry_points(directory)
            if data is None:
                directory = os.path.dirname(directory)
                continue
            if file_path in data.resolved_paths:
                return True
            return JS_EXT_PATTERN.sub("", file_path) in data.source_stems
        return False

    def _read_package(self, package_dir: str) -> Optional[Dict[str, Any]]:
        if package_dir not in self._packages:
            manifest = None
            package_json = os.path.join(package_dir, "package.json")
            if os.path.isfile(package_json):
                try:
                    with open(package_json, "r", encoding="utf-8") as f:
                        loaded = json.load(f)
                    manifest = loaded if isinstance(loaded, dict) else None
                except (OSError, ValueError) as e:
                    logger.debug(f"Ignoring unreadable {package_json}: {e}")
            self._packages[package_dir] = manifest
        return self._packages[package_dir]

    def _package_entry_points(self, package_dir: str) -> Optional[EntryPointData]:
        cached = self._entry_points.get(package_dir)
        if cached is not None:
            return cached

        manifest = self._read_package(package_dir)
        if manifest is None:
            return None

        out_dir = None
        root_dir = os.path.join(package_dir, "src")
        tsconfig_path = os.path.join(package_dir, TSCONFIG_NAME)
        if os.path.isfile(tsconfig_path):
            config = load_tsconfig(tsconfig_path)
            if config is not None:
                out_dir = config.option_path("outDir")
                root_dir = config.option_path("rootDir") or root_dir

        data = EntryPointData()
        exports = manifest.get("exports")
        if exports:
            self._collect_exports(exports, package_dir, out_dir, root_dir, data)
        for key in ("main", "module"):
            if isinstance(manifest.get(key), str):
                self._add(os.path.normpath(os.path.join(package_dir, manifest[key])), out_dir, root_dir, data)

        self._entry_points[package_dir] = data
        return data

    def _collect_exports(
        self, exports: Any, package_dir: str, out_dir: Optional[str], root_dir: str, data: EntryPointData
    ) -> None:
        if isinstance(exports, str):
            if "*" not in exports:
                self._add(os.path.normpath(os.path.join(package_dir, exports)), out_dir, root_dir, data)
        elif isinstance(exports, dict):
            for value in exports.values():
                self._collect_exports(value, package_dir, out_dir, root_dir, data)
        elif isinstance(exports, list):
            for value in exports:
                self._collect_exports(value, package_dir, out_dir, root_dir, data)

    @staticmethod
    def _add(file_path: str, out_dir: Optional[str], root_dir: str, data: EntryPointData) -> None:
        data.resolved_paths.add(file_path)
        if out_dir and file_path.startswith(out_dir + os.sep):
            relative = file_path[len(out_dir) + 1:]
            data.source_stems.add(JS_EXT_PATTERN.sub("", os.path.join(root_dir, relative)))
