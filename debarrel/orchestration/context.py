"""
Run-scoped state.

A RunContext owns every cache of one run (file records, exported-name cache,
realpath cache) together with the barrel tracker, and is passed explicitly to
each component. Nothing is cached at module level, so independent runs never
share state.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Optional, Set

from ..analysis.file_analyzer import FileAnalyzer
from ..analysis.project import EntryPointChecker, ProjectConfig, glob_files, load_project_config
from ..analysis.resolver import ModuleResolver
from ..config import DebarrelConfig, QuoteStyle
from ..constants import SCRIPT_EXTENSIONS, is_ignored_path
from ..errors import ConfigurationError
from ..models import DebarrelOptions, FileRecord, ProgressEvent, ProgressType
from ..refactoring.tracker import BarrelTracker

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Shared state of a single run."""

    base: str
    options: DebarrelOptions
    config: DebarrelConfig
    project: ProjectConfig
    resolver: ModuleResolver
    analyzer: FileAnalyzer
    tracker: BarrelTracker = field(default_factory=BarrelTracker)
    preserved_barrels: Set[str] = field(default_factory=set)
    included_barrels: Set[str] = field(default_factory=set)
    entry_points: Callable[[str], bool] = field(default_factory=EntryPointChecker)

    @property
    def only_mode(self) -> bool:
        return bool(self.options.only)

    @property
    def ext(self) -> Optional[str]:
        if self.options.ext is not None:
            return self.options.ext
        return self.config.rewrite_settings.ext

    @property
    def unsafe_namespace(self) -> bool:
        return self.options.unsafe_namespace or self.config.rewrite_settings.unsafe_namespace

    @property
    def organize_imports(self) -> bool:
        return self.options.organize_imports or self.config.rewrite_settings.organize_imports

    @property
    def dry_run(self) -> bool:
        return self.options.dry_run

    def is_protected(self, path: str) -> bool:
        """Skipped barrels and package entry points are never rewritten through or deleted."""
        return path in self.preserved_barrels or self.entry_points(path)

    def is_barrel(self, path: str, record: FileRecord) -> bool:
        return record.is_barrel or path in self.included_barrels

    def is_barrel_path(self, path: str) -> bool:
        """Analyze ``path`` if it is a script module and report whether it acts as a barrel."""
        if path in self.included_barrels:
            return True
        if not path.endswith(SCRIPT_EXTENSIONS):
            return False
        return self.analyzer.analyze(path).is_barrel

    def is_ignored(self, path: str) -> bool:
        return is_ignored_path(path, self.base)

    def single_quote(self, record: FileRecord) -> bool:
        style = self.config.rewrite_settings.quote_style
        if style is QuoteStyle.AUTO:
            return record.single_quote
        return style is QuoteStyle.SINGLE

    def emit(self, event_type: ProgressType, **kwargs) -> None:
        if self.options.progress is not None:
            self.options.progress(ProgressEvent(event_type, **kwargs))

    def register_barrel(self, path: str) -> bool:
        """Register ``path`` with the tracker, announcing it the first time."""
        if self.tracker.register(path):
            self.emit(ProgressType.BARREL, path=path)
            return True
        return False


def create_context(options: DebarrelOptions, config: Optional[DebarrelConfig] = None) -> RunContext:
    """
    Build the context for a run rooted at ``options.cwd``.

    Raises:
        ConfigurationError: if the working directory does not exist
    """
    config = config or DebarrelConfig.default()
    cwd = os.path.abspath(options.cwd)
    if not os.path.isdir(cwd):
        raise ConfigurationError(f"Working directory does not exist: {cwd}")
    base = os.path.realpath(cwd)

    project = load_project_config(base)
    resolver = ModuleResolver(project.aliases, config.resolution_settings.extensions)

    included_barrels = set(glob_files(options.barrel, base)) if options.barrel else set()
    preserved_barrels = set(glob_files(options.skip, base)) if options.skip else set()
    if included_barrels:
        logger.debug(f"Force-included barrels: {sorted(included_barrels)}")
    if preserved_barrels:
        logger.debug(f"Skipped barrels: {sorted(preserved_barrels)}")

    return RunContext(
        base=base,
        options=options,
        config=config,
        project=project,
        resolver=resolver,
        analyzer=FileAnalyzer(resolver),
        preserved_barrels=preserved_barrels,
        included_barrels=included_barrels,
    )
