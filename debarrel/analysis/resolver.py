"""
Module resolution and specifier rebuilding.

``ModuleResolver.resolve`` maps a specifier written in one file to the absolute
path of the module it names, following Node/TypeScript conventions: extension
probing, ``.js`` -> ``.ts`` extension aliasing, directory index files,
``package.json`` main fields and ``compilerOptions.paths`` aliases. Anything
that lands in a dependency directory is reported by its specifier.

``ModuleResolver.build_specifier`` goes the other way and prints the
specifier a consumer should use to reach a new target.
"""

import json
import logging
import os
import re
from typing import Dict, List, Optional, Sequence

from ..constants import EXTENSION_ALIASES, JS_EXT_PATTERN, RESOLVER_EXTENSIONS
from ..models import PathAliases
from .specifier import ensure_extension, extension_of, is_relative_or_absolute, strip_query

logger = logging.getLogger(__name__)

PACKAGE_MAIN_FIELDS = ("module", "main")


class ModuleResolver:
    """Resolves specifiers for one run. Owns the realpath and package.json caches."""

    def __init__(
        self,
        aliases: Optional[PathAliases] = None,
        extensions: Sequence[str] = RESOLVER_EXTENSIONS,
    ):
        self.aliases = aliases
        self.extensions = tuple(extensions)
        self._realpath_cache: Dict[str, str] = {}
        self._package_main_cache: Dict[str, Optional[List[str]]] = {}

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, from_path: str, specifier: str) -> Optional[str]:
        """
        Resolve ``specifier`` as written in ``from_path``.

        Returns:
            An absolute path for project files, the cleaned specifier for
            packages (including unresolvable bare specifiers) and None for
            relative or absolute specifiers that do not resolve.
        """
        clean = strip_query(specifier)
        relative_or_absolute = is_relative_or_absolute(clean)

        resolved = self._resolve_path(from_path, clean)
        if resolved is None:
            if relative_or_absolute:
                logger.debug(f"Cannot resolve {clean!r} from {from_path}")
                return None
            if not self._package_exists(from_path, clean):
                logger.debug(f"Treating unresolved bare specifier {clean!r} in {from_path} as external")
            return clean

        if "node_modules" in resolved:
            return clean
        return resolved

    def _resolve_path(self, from_path: str, specifier: str) -> Optional[str]:
        if is_relative_or_absolute(specifier):
            if specifier.startswith("/"):
                candidate = specifier
            else:
                candidate = os.path.normpath(os.path.join(os.path.dirname(from_path), specifier))
            return self._resolve_candidate(candidate)

        if self.aliases:
            for target in self._alias_candidates(specifier):
                resolved = self._resolve_candidate(target)
                if resolved:
                    return resolved
            if self.aliases.declared_base_url:
                resolved = self._resolve_candidate(os.path.join(self.aliases.base_url, specifier))
                if resolved:
                    return resolved

        package_dir = self._find_package_dir(from_path, specifier)
        if package_dir:
            return self._resolve_candidate(package_dir)
        return None

    def _alias_candidates(self, specifier: str) -> List[str]:
        """Paths an aliased specifier may point at, most specific pattern first."""
        candidates: List[str] = []
        for pattern, targets in sorted_alias_patterns(self.aliases):
            if "*" in pattern:
                prefix, _, suffix = pattern.partition("*")
                if not (specifier.startswith(prefix) and specifier.endswith(suffix)):
                    continue
                if len(specifier) < len(prefix) + len(suffix):
                    continue
                wildcard = specifier[len(prefix):len(specifier) - len(suffix)]
                for target in targets:
                    candidates.append(os.path.join(self.aliases.base_url, target.replace("*", wildcard)))
            elif pattern == specifier:
                candidates.extend(os.path.join(self.aliases.base_url, target) for target in targets)
        return candidates

    def _resolve_candidate(self, candidate: str) -> Optional[str]:
        """Resolve a filesystem candidate as a file, then as a directory."""
        resolved = self._resolve_as_file(candidate)
        if resolved:
            return resolved
        if os.path.isdir(candidate):
            return self._resolve_as_directory(candidate)
        return None

    def _resolve_as_file(self, candidate: str) -> Optional[str]:
        if os.path.isfile(candidate):
            return self.realpath(candidate)

        ext = os.path.splitext(candidate)[1]
        if ext in EXTENSION_ALIASES:
            stem = candidate[: -len(ext)]
            for alternative in EXTENSION_ALIASES[ext]:
                if os.path.isfile(stem + alternative):
                    return self.realpath(stem + alternative)

        for extension in self.extensions:
            if os.path.isfile(candidate + extension):
                return self.realpath(candidate + extension)
        return None

    def _resolve_as_directory(self, directory: str) -> Optional[str]:
        for entry in self._package_main_fields(directory) or []:
            resolved = self._resolve_as_file(os.path.normpath(os.path.join(directory, entry)))
            if resolved:
                return resolved
            index = os.path.join(directory, entry)
            if os.path.isdir(index):
                resolved = self._resolve_index(index)
                if resolved:
                    return resolved
        return self._resolve_index(directory)

    def _resolve_index(self, directory: str) -> Optional[str]:
        for extension in self.extensions:
            index = os.path.join(directory, "index" + extension)
            if os.path.isfile(index):
                return self.realpath(index)
        return None

    def _package_main_fields(self, directory: str) -> Optional[List[str]]:
        if directory in self._package_main_cache:
            return self._package_main_cache[directory]

        fields: Optional[List[str]] = None
        package_json = os.path.join(directory, "package.json")
        if os.path.isfile(package_json):
            try:
                with open(package_json, "r", encoding="utf-8") as f:
                    manifest = json.load(f)
                fields = [manifest[key] for key in PACKAGE_MAIN_FIELDS if isinstance(manifest.get(key), str)]
            except (OSError, ValueError) as e:
                logger.debug(f"Ignoring unreadable {package_json}: {e}")

        self._package_main_cache[directory] = fields
        return fields

    def _find_package_dir(self, from_path: str, specifier: str) -> Optional[str]:
        """Locate ``node_modules/<package>[/subpath]`` walking up from ``from_path``."""
        directory = os.path.dirname(from_path)
        while True:
            candidate = os.path.join(directory, "node_modules", specifier)
            if os.path.exists(candidate) or self._resolve_as_file(candidate):
                return candidate
            parent = os.path.dirname(directory)
            if parent == directory:
                return None
            directory = parent

    def _package_exists(self, from_path: str, specifier: str) -> bool:
        parts = specifier.split("/")
        package = "/".join(parts[:2]) if specifier.startswith("@") else parts[0]
        directory = os.path.dirname(from_path)
        while True:
            if os.path.isdir(os.path.join(directory, "node_modules", package)):
                return True
            parent = os.path.dirname(directory)
            if parent == directory:
                return False
            directory = parent

    def realpath(self, path: str) -> str:
        cached = self._realpath_cache.get(path)
        if cached is not None:
            return cached
        try:
            real = os.path.realpath(path, strict=True)
        except OSError:
            real = path
        self._realpath_cache[path] = real
        return real

    # ------------------------------------------------------------------
    # Specifier building
    # ------------------------------------------------------------------

    def build_specifier(
        self,
        from_path: str,
        to_path: str,
        ext: Optional[str] = None,
        original_specifier: Optional[str] = None,
    ) -> str:
        """
        Build the specifier ``from_path`` should use to import ``to_path``.

        Alias forms are preferred: first a declared path alias covering the
        target, then an alias inferred from the original specifier's segments.
        Otherwise a relative path from the consumer's real directory is used.

        Args:
            from_path: Consumer file
            to_path: New target file
            ext: Forced extension (``""`` strips it); None follows the original specifier
            original_specifier: Path portion of the specifier being replaced
        """
        if original_specifier and not is_relative_or_absolute(original_specifier):
            alias_specifier = None
            if self.aliases:
                alias_specifier = try_map_to_alias(to_path, self.aliases, original_specifier)
            if alias_specifier is None:
                alias_specifier = infer_alias_specifier(original_specifier, to_path)
            if alias_specifier is not None:
                detected = ext if ext is not None else extension_of(original_specifier)
                return ensure_extension(alias_specifier, detected) if detected else alias_specifier

        real_from_dir = self.realpath(os.path.dirname(from_path))

        if ext is not None:
            final_ext = ext
        elif original_specifier:
            final_ext = extension_of(original_specifier)
        else:
            final_ext = os.path.splitext(to_path)[1] or None

        target = ensure_extension(to_path, final_ext)
        relative = os.path.relpath(target, real_from_dir)
        return relative if relative.startswith(".") else f"./{relative}"


def sorted_alias_patterns(aliases: PathAliases):
    """Alias patterns ordered by the length of their literal prefix, longest first."""
    return sorted(
        aliases.paths.items(),
        key=lambda item: len(item[0].split("*", 1)[0]),
        reverse=True,
    )


def try_map_to_alias(absolute_path: str, aliases: PathAliases, original_specifier: str) -> Optional[str]:
    """
    Re-derive an alias specifier for ``absolute_path`` using the alias the
    original specifier matched. Succeeds only when the target lies under the
    alias's mapped base directory.
    """
    if is_relative_or_absolute(original_specifier):
        return None

    for pattern, targets in sorted_alias_patterns(aliases):
        pattern_regex = re.compile("^" + "(.*)".join(re.escape(part) for part in pattern.split("*")) + "$")
        if not pattern_regex.match(original_specifier) or not targets:
            continue

        target_base = targets[0].split("*", 1)[0]
        resolved_target_base = os.path.join(aliases.base_url, target_base)
        if target_base.endswith("/") and not resolved_target_base.endswith("/"):
            resolved_target_base += "/"

        if absolute_path.startswith(resolved_target_base):
            relative_part = absolute_path[len(resolved_target_base):]
            alias_base = pattern.split("*", 1)[0]
            return alias_base + JS_EXT_PATTERN.sub("", relative_part)

    return None


def infer_alias_specifier(original_specifier: str, target_path: str) -> Optional[str]:
    """
    Infer an alias specifier for aliases that are not declared in tsconfig.

    The segments after the alias prefix of the original specifier are looked up
    in the target path; the alias prefix is then re-applied to the target path
    from the first matching segment on.

    Example:
        >>> infer_alias_specifier("@/utils", "/app/src/utils/format.ts")
        '@/utils/format'
    """
    original_parts = original_specifier.split("/")
    target_parts = JS_EXT_PATTERN.sub("", target_path).split("/")
    if len(original_parts) < 2:
        return None

    for start in range(len(target_parts)):
        matches = True
        for offset in range(1, len(original_parts)):
            index = start + offset - 1
            if index >= len(target_parts):
                break
            if original_parts[offset] != target_parts[index]:
                matches = False
                break
        if matches:
            return original_parts[0] + "/" + "/".join(target_parts[start:])

    return None
