"""
Debarrel Orchestrator

Drives one run over the project's file set.

Stages:
1. Project files (explicit globs, tsconfig file list, or the default globs)
2. Explicit barrels (``only`` mode)
3. Per-file pass: discover barrels, build the rewrite plan, apply it
4. Non-script consumers (Vue, Svelte, Astro, ... files importing barrels)
5. Classification of every tracked barrel into deleted and preserved
6. Deletion (write mode only) and the final report
"""

import dataclasses
import logging
import os
import re
from typing import List, Optional

from ..analysis.project import glob_files, relevant_project_files
from ..analysis.specifier import parse_specifier
from ..constants import DEFAULT_GLOBS, SCRIPT_EXTENSIONS
from ..errors import DebarrelError
from ..models import FileError, FileRecord, ProgressType, RewritePlan, RunResult
from ..refactoring.applier import RewriteApplier
from ..refactoring.rewriter import RewriteBuilder
from .context import RunContext
from .reporter import ExampleCandidate, format_example_diff, pick_best_example

logger = logging.getLogger(__name__)

NON_SCRIPT_IMPORT_PATTERN = re.compile(r"""(?:import|export)\s+(?:[\s\S]*?\s+from\s+)?['"]([^'"]+)['"]""")


class DebarrelOrchestrator:
    """Runs every stage of a debarrel pass against one RunContext."""

    def __init__(self, ctx: RunContext):
        self.ctx = ctx
        self.builder = RewriteBuilder(ctx)
        self.applier = RewriteApplier(ctx)

    def run(self) -> RunResult:
        ctx = self.ctx
        result = RunResult()

        files = self.project_files()
        ctx.emit(ProgressType.FILES, count=len(files))
        logger.debug(f"Processing {len(files)} files under {ctx.base}")

        if ctx.only_mode:
            self.register_explicit_barrels(result)

        example = self.process_files(files, result)
        ctx.emit(ProgressType.REWRITING)

        self.track_non_script_consumers()
        ctx.emit(ProgressType.DONE)

        classification = ctx.tracker.classify(ctx.base, ctx.is_protected)
        result.deleted = classification.deleted
        result.preserved = classification.preserved
        self.delete_barrels(result)

        result.untraceable_imports = list(ctx.tracker.untraceable_imports)
        if example is not None:
            result.example_diff = format_example_diff(example, self.applier)
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def project_files(self) -> List[str]:
        ctx = self.ctx
        ignore = ctx.config.resolution_settings.ignore_patterns
        if ctx.options.files is not None:
            return glob_files(ctx.options.files, ctx.base, ignore)

        relevant = relevant_project_files(ctx.project, ctx.base)
        if relevant:
            return relevant
        return glob_files(DEFAULT_GLOBS, ctx.base, ignore)

    def register_explicit_barrels(self, result: RunResult) -> None:
        """Read and register the barrels named with ``only``."""
        ctx = self.ctx
        for path in ctx.options.only:
            barrel_path = ctx.resolver.realpath(path if os.path.isabs(path) else os.path.join(ctx.base, path))
            relative = os.path.relpath(barrel_path, ctx.base)
            try:
                record = ctx.analyzer.analyze(barrel_path)
            except DebarrelError as e:
                logger.error(f"Error reading {relative}: {e}")
                result.errors.append(FileError(barrel_path, str(e)))
                continue

            if not ctx.is_barrel(barrel_path, record):
                logger.warning(f"File is not a barrel: {relative}")
                continue
            if ctx.is_protected(barrel_path):
                logger.warning(f"File is in skip list: {relative}")
                continue

            if not record.is_barrel:
                ctx.analyzer.seed(dataclasses.replace(record, is_barrel=True, dynamic_imports=set()))
            ctx.register_barrel(barrel_path)

    def process_files(self, files: List[str], result: RunResult) -> Optional[ExampleCandidate]:
        ctx = self.ctx
        example: Optional[ExampleCandidate] = None
        total = len(files)

        for index, path in enumerate(files, 1):
            if ctx.only_mode and path in ctx.tracker:
                continue
            ctx.emit(ProgressType.SCANNING, path=path, current=index, total=total)

            try:
                record = ctx.analyzer.analyze(path)
                self.builder.discover_barrels(path, record)
                plan = self.builder.build(path, record)
                if not plan:
                    continue

                content = self.applier.apply(path, record, plan)

                if ctx.dry_run:
                    example = pick_best_example(plan, record, path, example, ctx.single_quote(record))
                else:
                    with open(path, "w", encoding="utf-8", newline="") as f:
                        f.write(content)
                    logger.info(f"Rewrote {path}")
                self.mark_rewritten_barrels(path, record, plan)
                result.modified.append(path)
            except (DebarrelError, OSError) as e:
                logger.error(f"Error processing {os.path.relpath(path, ctx.base)}: {e}")
                result.errors.append(FileError(path, str(e)))

        return example

    def mark_rewritten_barrels(self, consumer_path: str, record: FileRecord, plan: RewritePlan) -> None:
        """A consumer counts as rewritten for a barrel only if every statement importing it was rewritten."""
        tracker = self.ctx.tracker
        for target, items in record.imports.items():
            if target not in tracker or not items:
                continue
            if all(item.pos in plan for item in items):
                tracker.mark_rewritten(target, consumer_path)

    def track_non_script_consumers(self) -> None:
        """Record files such as ``.vue`` or ``.astro`` that import barrels as unrewritable consumers."""
        ctx = self.ctx
        settings = ctx.config.resolution_settings
        for path in glob_files(settings.non_script_globs, ctx.base, settings.ignore_patterns):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    content = f.read()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Cannot read {path}: {e}")
                continue

            for match in NON_SCRIPT_IMPORT_PATTERN.finditer(content):
                specifier = parse_specifier(match.group(1)).path
                resolved = ctx.resolver.resolve(path, specifier)
                if not resolved or not os.path.isabs(resolved) or not resolved.startswith(ctx.base):
                    continue

                if resolved in ctx.tracker:
                    ctx.tracker.add_consumer(resolved, path)
                elif not ctx.only_mode and resolved.endswith(SCRIPT_EXTENSIONS):
                    self._register_non_script_target(resolved, path)

    def _register_non_script_target(self, target: str, consumer_path: str) -> None:
        ctx = self.ctx
        if ctx.is_ignored(target):
            return
        try:
            record = ctx.analyzer.analyze(target)
        except DebarrelError as e:
            logger.debug(f"Skipping {target} imported by {consumer_path}: {e}")
            return
        if ctx.is_barrel(target, record):
            ctx.register_barrel(target)
            ctx.tracker.add_consumer(target, consumer_path)

    def delete_barrels(self, result: RunResult) -> None:
        if self.ctx.dry_run:
            return
        for path in result.deleted:
            try:
                os.remove(path)
                logger.info(f"Deleted {path}")
            except OSError as e:
                logger.error(f"Error deleting {path}: {e}")
                result.errors.append(FileError(path, f"Cannot delete: {e.strerror or e}"))
