"""
Barrel tracker.

Registry of discovered barrel files and their consumers. After every consumer
has been processed, ``classify`` decides which barrels can be deleted and why
the others must stay.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Set

from ..constants import TS_CONSUMER_SUFFIXES, is_ignored_path
from ..models import PreservationReason, PreservedBarrel, UntraceableImport

logger = logging.getLogger(__name__)


@dataclass
class BarrelState:
    consumers: Set[str] = field(default_factory=set)
    rewritten_consumers: Set[str] = field(default_factory=set)
    dynamic_consumers: Set[str] = field(default_factory=set)

    def unrewritten(self, deletable: Set[str]) -> List[str]:
        """Consumers still depending on the barrel, given the barrels already deletable."""
        return sorted(
            consumer
            for consumer in self.consumers
            if consumer not in self.rewritten_consumers and consumer not in deletable
        )


@dataclass
class Classification:
    deleted: List[str] = field(default_factory=list)
    preserved: List[PreservedBarrel] = field(default_factory=list)


class BarrelTracker:
    """Tracks barrels, their consumers and the untraceable bindings found while rewriting."""

    def __init__(self) -> None:
        self.barrels: Dict[str, BarrelState] = {}
        self.untraceable_imports: List[UntraceableImport] = []

    def register(self, barrel_path: str) -> bool:
        """Start tracking ``barrel_path``. Returns False if it was already tracked."""
        if barrel_path in self.barrels:
            return False
        self.barrels[barrel_path] = BarrelState()
        logger.info(f"Discovered barrel {barrel_path}")
        return True

    def has(self, barrel_path: str) -> bool:
        return barrel_path in self.barrels

    def __contains__(self, barrel_path: object) -> bool:
        return barrel_path in self.barrels

    def add_consumer(self, barrel_path: str, consumer_path: str) -> None:
        state = self.barrels.get(barrel_path)
        if state is not None:
            state.consumers.add(consumer_path)

    def mark_rewritten(self, barrel_path: str, consumer_path: str) -> None:
        state = self.barrels.get(barrel_path)
        if state is not None:
            state.rewritten_consumers.add(consumer_path)

    def add_dynamic_consumer(self, barrel_path: str, consumer_path: str) -> None:
        state = self.barrels.get(barrel_path)
        if state is not None:
            state.dynamic_consumers.add(consumer_path)

    def record_untraceable(self, barrel_path: str, consumer_path: str, name: str) -> None:
        logger.warning(f"Cannot trace '{name}' imported by {consumer_path} through {barrel_path}")
        self.untraceable_imports.append(UntraceableImport(barrel_path, consumer_path, name))

    def classify(self, base: str, is_protected: Callable[[str], bool]) -> Classification:
        """
        Split the tracked barrels under ``base`` into deleted and preserved.

        A barrel is deletable when nothing imports it dynamically, it is not
        protected (skipped or a package entry point) and each consumer has
        either been rewritten or is itself a deletable barrel. Deletability is
        propagated until no new barrel qualifies.

        Args:
            base: Project root; barrels outside it are ignored
            is_protected: Predicate for skipped barrels and entry points
        """
        in_scope = {
            path: state
            for path, state in self.barrels.items()
            if path.startswith(base) and not is_ignored_path(path, base)
        }

        deletable: Set[str] = set()
        changed = True
        while changed:
            changed = False
            for path, state in in_scope.items():
                if path in deletable or state.dynamic_consumers or is_protected(path):
                    continue
                if state.unrewritten(deletable):
                    continue
                deletable.add(path)
                changed = True

        result = Classification()
        for path, state in in_scope.items():
            if path in deletable:
                result.deleted.append(path)
            else:
                result.preserved.extend(self._preservation_reasons(path, state, is_protected, deletable))
        return result

    @staticmethod
    def _preservation_reasons(
        path: str,
        state: BarrelState,
        is_protected: Callable[[str], bool],
        deletable: Set[str],
    ) -> List[PreservedBarrel]:
        if state.dynamic_consumers:
            return [PreservedBarrel(path, PreservationReason.DYNAMIC_IMPORT, sorted(state.dynamic_consumers))]
        if is_protected(path):
            return [PreservedBarrel(path, PreservationReason.SKIP, [])]

        non_script: List[str] = []
        script: List[str] = []
        for consumer in state.unrewritten(deletable):
            if consumer.endswith(TS_CONSUMER_SUFFIXES):
                script.append(consumer)
            else:
                non_script.append(consumer)

        reasons: List[PreservedBarrel] = []
        if non_script:
            reasons.append(PreservedBarrel(path, PreservationReason.NON_TS_IMPORT, non_script))
        if script:
            reasons.append(PreservedBarrel(path, PreservationReason.NAMESPACE_IMPORT, script))
        return reasons
