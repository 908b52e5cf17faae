"""
Report helpers: the example diff shown in dry-run and check mode, and the
groupings the CLI renders.
"""

import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..models import (
    FileRecord,
    PreservationReason,
    PreservedBarrel,
    RewriteItem,
    RewritePlan,
    UntraceableImport,
)
from ..refactoring.applier import RewriteApplier
from ..refactoring.synthesizer import DeclarationSynthesizer

LEADING_COMMENTS = re.compile(r"^\s*(//[^\n]*\n|/\*[\s\S]*?\*/\s*)*(import|export)")

REASON_ORDER = [
    PreservationReason.DYNAMIC_IMPORT,
    PreservationReason.SKIP,
    PreservationReason.NAMESPACE_IMPORT,
    PreservationReason.NON_TS_IMPORT,
]


@dataclass
class ExampleCandidate:
    """The rewritten statement with the most distinct targets seen so far."""

    original: str
    targets: Dict[str, RewriteItem]
    consumer_path: str
    single_quote: bool = False


def extract_statement_line(text: str) -> str:
    """Statement text without leading comments."""
    match = LEADING_COMMENTS.match(text)
    if match:
        return text[match.start(2):].strip()
    return text.strip()


def pick_best_example(
    plan: RewritePlan,
    record: FileRecord,
    consumer_path: str,
    current: Optional[ExampleCandidate],
    single_quote: bool = False,
) -> Optional[ExampleCandidate]:
    best = current
    for pos, targets in plan.items():
        if len(targets) > (len(best.targets) if best else 0):
            best = ExampleCandidate(
                extract_statement_line(record.statement_text(pos)), targets, consumer_path, single_quote
            )
    return best


def format_example_diff(candidate: ExampleCandidate, applier: RewriteApplier) -> str:
    """``- original`` followed by one ``+ replacement`` line per synthesized statement."""
    replacement = applier.render(
        candidate.consumer_path, candidate.targets, DeclarationSynthesizer(candidate.single_quote)
    )
    lines = [f"- {candidate.original}"]
    lines.extend(f"+ {line}" for line in replacement.splitlines())
    return "\n".join(lines)


def group_preserved(preserved: List[PreservedBarrel]) -> "OrderedDict[PreservationReason, List[PreservedBarrel]]":
    grouped: "OrderedDict[PreservationReason, List[PreservedBarrel]]" = OrderedDict()
    for reason in REASON_ORDER:
        entries = [barrel for barrel in preserved if barrel.reason is reason]
        if entries:
            grouped[reason] = sorted(entries, key=lambda barrel: barrel.path)
    return grouped


def group_untraceable(untraceable: List[UntraceableImport]) -> Dict[str, Dict[str, List[str]]]:
    """barrel -> consumer -> names, in discovery order"""
    grouped: Dict[str, Dict[str, List[str]]] = {}
    for item in untraceable:
        names = grouped.setdefault(item.barrel_path, {}).setdefault(item.consumer_path, [])
        if item.name not in names:
            names.append(item.name)
    return grouped
