"""
Rewrite builder.

For one consumer file, traces every binding it pulls from a barrel through the
chain of barrels to the module that defines it and collects the result in a
RewritePlan keyed by statement position. Bindings that cannot be traced are
reported to the tracker and their whole statement is left untouched.
"""

import logging
import os
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

from ..models import (
    ExportEntry,
    FileRecord,
    ImportItem,
    ImportKind,
    Name,
    RewriteItem,
    RewriteKind,
    RewritePlan,
    Traced,
    TraceResult,
    Untraceable,
)

if TYPE_CHECKING:
    from ..orchestration.context import RunContext

logger = logging.getLogger(__name__)


class RewriteBuilder:
    """
    Builds rewrite plans for consumer files.

    Example:
        builder = RewriteBuilder(ctx)
        builder.discover_barrels(path, record)
        plan = builder.build(path, record)
    """

    def __init__(self, ctx: "RunContext"):
        self.ctx = ctx

    # ------------------------------------------------------------------
    # Barrel discovery
    # ------------------------------------------------------------------

    def discover_barrels(self, consumer_path: str, record: FileRecord) -> None:
        """Register the barrels ``consumer_path`` depends on and record it as their consumer."""
        ctx = self.ctx
        if ctx.only_mode:
            self._record_tracked_consumers(consumer_path, record)
            return

        if record.is_barrel and ctx.entry_points(consumer_path):
            ctx.register_barrel(consumer_path)
        if consumer_path in ctx.included_barrels:
            ctx.register_barrel(consumer_path)

        for target in sorted(record.dynamic_imports):
            if ctx.is_ignored(target):
                continue
            if ctx.is_barrel_path(target):
                ctx.register_barrel(target)
                ctx.tracker.add_dynamic_consumer(target, consumer_path)

        for target in record.imports:
            if ctx.is_ignored(target):
                continue
            if ctx.is_barrel_path(target):
                ctx.register_barrel(target)
                ctx.tracker.add_consumer(target, consumer_path)
                if record.is_barrel:
                    ctx.register_barrel(consumer_path)

    def _record_tracked_consumers(self, consumer_path: str, record: FileRecord) -> None:
        tracker = self.ctx.tracker
        for target in record.dynamic_imports:
            if target in tracker:
                tracker.add_dynamic_consumer(target, consumer_path)
        for target in record.imports:
            if target in tracker:
                tracker.add_consumer(target, consumer_path)

    # ------------------------------------------------------------------
    # Plan building
    # ------------------------------------------------------------------

    def build(self, consumer_path: str, record: FileRecord) -> RewritePlan:
        """
        Build the rewrite plan for one consumer.

        Barrels are not rewritten unless they are protected (skipped or an
        entry point), since an unprotected barrel is deleted or kept as a whole.
        """
        ctx = self.ctx
        plan = RewritePlan()
        if ctx.is_barrel(consumer_path, record) and not ctx.is_protected(consumer_path):
            return plan

        added: Set[str] = set()
        for target, items in record.imports.items():
            if not items or ctx.is_ignored(target) or ctx.is_protected(target):
                continue

            if ctx.only_mode:
                if target not in ctx.tracker:
                    continue
            elif not ctx.is_barrel_path(target):
                continue
            else:
                ctx.register_barrel(target)

            self._rewrite_items(consumer_path, target, items, plan, added)

        plan.prune()
        return plan

    def _rewrite_items(
        self,
        consumer_path: str,
        barrel_path: str,
        items: List[ImportItem],
        plan: RewritePlan,
        added: Set[str],
    ) -> None:
        failed = set()
        for item in items:
            missing: List[str] = []
            if item.kind is ImportKind.NAMESPACE or (item.is_star and item.local_name):
                rewritten = self._rewrite_namespace(item, barrel_path, plan, added, missing)
            elif item.is_star:
                rewritten = self._rewrite_star(item, barrel_path, plan, added, missing)
            else:
                rewritten = True
                for name in self._bindings(item):
                    result = self.trace_export(name, item, barrel_path, plan, added)
                    if isinstance(result, Untraceable):
                        missing.append(result.name)

            for name in missing:
                self.ctx.tracker.record_untraceable(barrel_path, consumer_path, name)
            if missing or not rewritten:
                failed.add(item.pos)

        for pos in failed:
            plan.discard(pos)

    @staticmethod
    def _bindings(item: ImportItem) -> List[Name]:
        if item.kind is ImportKind.DEFAULT:
            return [Name("default", None, item.is_type)]
        return list(item.names)

    # ------------------------------------------------------------------
    # Tracing
    # ------------------------------------------------------------------

    def trace_export(
        self,
        name: Name,
        item: ImportItem,
        owner: str,
        plan: RewritePlan,
        added: Set[str],
        visited: Optional[Set[Tuple[str, str]]] = None,
    ) -> TraceResult:
        """
        Trace ``name`` through the re-exports of the barrel ``owner``.

        Each export entry of ``owner`` is tried in order. External entries
        match directly. Internal entries are followed: a non-barrel target is
        a definer and ends the trace, a barrel target is registered and
        searched recursively with the name its entry maps to.

        Returns:
            Traced with the definer path (or external specifier), or
            Untraceable when nothing in the transitive export graph claims
            the name.
        """
        ctx = self.ctx
        visited = set() if visited is None else visited
        exports = ctx.analyzer.analyze(owner).exports

        for target, entry in exports.items():
            if not os.path.isabs(target):
                if entry.claims(name.name):
                    effective = self._effective_name(name, item, entry)
                    if self._add_rewrite(effective, item, entry, target, plan, added):
                        return Traced(target)
                continue

            if ctx.is_ignored(target):
                continue

            if entry.re_exported_ns is not None and entry.re_exported_ns == name.name:
                definer = self._single_definer(target, owner, set())
                if definer is not None:
                    self._add_namespace(name.local, item, definer, plan, added)
                    return Traced(definer)
                continue

            if not entry.star and not entry.claims(name.name):
                continue

            effective = self._effective_name(name, item, entry)
            if ctx.is_barrel_path(target):
                self._register_intermediate(target, owner)
            elif self._add_rewrite(effective, item, entry, target, plan, added):
                logger.debug(f"Traced '{name.name}' from {owner} to {target}")
                return Traced(target)

            key = (target, effective.name)
            if key in visited:
                continue
            visited.add(key)
            result = self.trace_export(effective, item, target, plan, added, visited)
            if isinstance(result, Traced):
                return result

        return Untraceable(name.name)

    @staticmethod
    def _effective_name(name: Name, item: ImportItem, entry: ExportEntry) -> Name:
        """
        The binding to look for behind ``entry``.

        A renamed re-export maps the requested name to the target's name; the
        consumer's visible name is kept as the alias.
        """
        underlying = entry.aliases.get(name.name)
        if underlying is None:
            return name
        if name.alias:
            display = name.alias
        elif name.name == "default" and item.kind is ImportKind.DEFAULT and item.local_name:
            display = item.local_name
        else:
            display = name.name
        return Name(underlying, None if display == underlying else display, name.is_type)

    def _register_intermediate(self, barrel_path: str, owner: str) -> None:
        if not self.ctx.only_mode:
            self.ctx.register_barrel(barrel_path)
        self.ctx.tracker.add_consumer(barrel_path, owner)

    def _single_definer(self, path: str, owner: str, visited: Set[str]) -> Optional[str]:
        """
        Follow ``path`` through barrels that forward everything from exactly
        one internal module. Returns the final non-barrel module, or None if
        the chain fans out, renames or leaves the project.
        """
        ctx = self.ctx
        if not ctx.is_barrel_path(path):
            return path
        record = ctx.analyzer.analyze(path)
        if path in visited:
            return None
        visited.add(path)
        if path != owner:
            self._register_intermediate(path, owner)

        # external entries count too: a namespace of the definer alone would lose them
        if len(record.exports) != 1:
            return None
        target, entry = next(iter(record.exports.items()))
        if not os.path.isabs(target) or ctx.is_ignored(target):
            return None
        if entry.re_exported_ns or entry.aliases:
            return None
        return self._single_definer(target, path, visited)

    # ------------------------------------------------------------------
    # Plan accumulation
    # ------------------------------------------------------------------

    @staticmethod
    def _slot_item(item: ImportItem, target: str, plan: RewritePlan) -> RewriteItem:
        slot = plan.slot(item.pos)
        rewrite = slot.get(target)
        if rewrite is None:
            rewrite = RewriteItem(
                kind=RewriteKind.EXPORT if item.kind is ImportKind.EXPORT else RewriteKind.IMPORT,
                external_specifier=None if os.path.isabs(target) else target,
                original_specifier=item.original_specifier,
                specifier_prefix=item.specifier_prefix,
                specifier_suffix=item.specifier_suffix,
            )
            slot[target] = rewrite
        return rewrite

    def _add_rewrite(
        self,
        name: Name,
        item: ImportItem,
        entry: ExportEntry,
        target: str,
        plan: RewritePlan,
        added: Set[str],
    ) -> bool:
        if not entry.forwards(name.name):
            return False

        key = f"{item.pos.key}:{name.name}:{name.alias or ''}"
        if key in added:
            return True
        added.add(key)

        rewrite = self._slot_item(item, target, plan)
        is_type = name.is_type or item.is_type
        if item.kind is not ImportKind.EXPORT and name.name == "default":
            local = name.alias or item.local_name
            if rewrite.default_name is None or rewrite.default_name == local:
                rewrite.default_name = local
                rewrite.default_is_type = is_type
                return True
        rewrite.add_named(Name(name.name, name.alias, is_type))
        return True

    def _add_namespace(self, local_name: str, item: ImportItem, definer: str, plan: RewritePlan, added: Set[str]) -> None:
        key = f"{item.pos.key}:*:{local_name}"
        if key in added:
            return
        added.add(key)
        self._slot_item(item, definer, plan).re_exported_ns = local_name

    # ------------------------------------------------------------------
    # Namespace imports
    # ------------------------------------------------------------------

    def _rewrite_namespace(
        self,
        item: ImportItem,
        barrel_path: str,
        plan: RewritePlan,
        added: Set[str],
        missing: List[str],
    ) -> bool:
        """
        Rewrite ``import * as ns`` (or ``export * as ns``) from a barrel.

        Only a barrel that resolves to a single definer is rewritten safely.
        Otherwise the statement is left alone, unless unsafe namespace mode
        expands it into named imports plus a synthetic object.

        Returns:
            False when the statement has to stay as it is
        """
        definer = self._single_definer(barrel_path, barrel_path, set())
        if definer is not None:
            self._add_namespace(item.local_name, item, definer, plan, added)
            return True

        if not (self.ctx.unsafe_namespace and item.kind is ImportKind.NAMESPACE):
            logger.debug(f"Leaving namespace import of {barrel_path} untouched: more than one definer")
            return False
        return self._rewrite_unsafe_namespace(item, barrel_path, plan, added, missing)

    def _rewrite_unsafe_namespace(
        self,
        item: ImportItem,
        barrel_path: str,
        plan: RewritePlan,
        added: Set[str],
        missing: List[str],
    ) -> bool:
        ctx = self.ctx
        barrel = ctx.analyzer.analyze(barrel_path)
        proxy = self._proxy(item, ImportKind.NAMED)

        for target, entry in barrel.exports.items():
            if not os.path.isabs(target) or ctx.is_ignored(target):
                continue
            for exported in sorted(entry.exported_names):
                if exported == "default":
                    continue
                name = Name(exported, None, exported in entry.type_names)
                if isinstance(self.trace_export(name, proxy, barrel_path, plan, added), Untraceable):
                    missing.append(exported)

        targets = plan.get(item.pos) or {}
        if not targets:
            return False
        for rewrite in targets.values():
            rewrite.unsafe_ns_name = item.local_name
        logger.warning(
            f"Rewriting namespace import '{item.local_name}' of {barrel_path} as an object literal; "
            f"type-only members and name collisions are not checked"
        )
        return True

    # ------------------------------------------------------------------
    # Star re-exports
    # ------------------------------------------------------------------

    def _rewrite_star(
        self,
        item: ImportItem,
        barrel_path: str,
        plan: RewritePlan,
        added: Set[str],
        missing: List[str],
    ) -> bool:
        """Expand ``export * from barrel`` into re-exports of every definer behind it."""
        self._expand_star(item, barrel_path, plan, added, {barrel_path}, missing)
        return bool(plan.get(item.pos))

    def _expand_star(
        self,
        item: ImportItem,
        owner: str,
        plan: RewritePlan,
        added: Set[str],
        visited: Set[str],
        missing: List[str],
    ) -> None:
        ctx = self.ctx
        proxy = self._proxy(item, ImportKind.EXPORT)

        for target, entry in ctx.analyzer.analyze(owner).exports.items():
            if not os.path.isabs(target):
                self._add_external_star(item, target, entry, plan)
                continue
            if ctx.is_ignored(target):
                continue

            if entry.star:
                if ctx.is_barrel_path(target):
                    self._register_intermediate(target, owner)
                    if target not in visited:
                        visited.add(target)
                        self._expand_star(item, target, plan, added, visited, missing)
                else:
                    self._slot_item(item, target, plan).star = True
                continue

            # `export *` never forwards the default export
            for exported in sorted(entry.exported_names - {"default"}):
                name = Name(exported, None, exported in entry.type_names)
                if isinstance(self.trace_export(name, proxy, owner, plan, added), Untraceable):
                    missing.append(exported)

    def _add_external_star(self, item: ImportItem, specifier: str, entry: ExportEntry, plan: RewritePlan) -> None:
        rewrite = self._slot_item(item, specifier, plan)
        if entry.star:
            rewrite.star = True
        if entry.re_exported_ns:
            rewrite.re_exported_ns = entry.re_exported_ns
        for exported in sorted(entry.exported_names - {"default"}):
            if exported == entry.re_exported_ns:
                continue
            underlying = entry.aliases.get(exported)
            if underlying is not None:
                rewrite.add_named(Name(underlying, exported, exported in entry.type_names))
            else:
                rewrite.add_named(Name(exported, None, exported in entry.type_names))

    @staticmethod
    def _proxy(item: ImportItem, kind: ImportKind) -> ImportItem:
        """An item sharing ``item``'s statement and specifier, used to trace single names."""
        return ImportItem(
            kind=kind,
            pos=item.pos,
            is_type=item.is_type,
            original_specifier=item.original_specifier,
            specifier_prefix=item.specifier_prefix,
            specifier_suffix=item.specifier_suffix,
        )
