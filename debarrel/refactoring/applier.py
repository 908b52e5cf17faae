"""
Apply rewrite plans to source text.

Statement spans are replaced with synthesized declarations in descending
start order, so every splice leaves the offsets of the remaining spans intact.
"""

import logging
from typing import TYPE_CHECKING, Dict, Optional

from ..models import FileRecord, RewriteItem, RewritePlan
from .organize import organize_imports
from .synthesizer import DeclarationSynthesizer

if TYPE_CHECKING:
    from ..orchestration.context import RunContext

logger = logging.getLogger(__name__)


class RewriteApplier:
    """Renders rewrite plans against the run's resolver and rewrite settings."""

    def __init__(self, ctx: "RunContext"):
        self.ctx = ctx

    def specifier_for(self, consumer_path: str, target: str, rewrite: RewriteItem) -> str:
        """
        Specifier text for ``target`` as seen from ``consumer_path``.

        External specifiers are printed as written in the barrel. Internal
        targets get a freshly built path with the original loader prefix and
        query/hash suffix reattached.
        """
        if rewrite.external_specifier:
            return rewrite.external_specifier
        path = self.ctx.resolver.build_specifier(
            consumer_path,
            target,
            ext=self.ctx.ext,
            original_specifier=rewrite.original_specifier,
        )
        return f"{rewrite.specifier_prefix}{path}{rewrite.specifier_suffix}"

    def render(
        self,
        consumer_path: str,
        targets: Dict[str, RewriteItem],
        synthesizer: Optional[DeclarationSynthesizer] = None,
    ) -> str:
        """Replacement text for one statement span."""
        synthesizer = synthesizer or DeclarationSynthesizer()
        return synthesizer.replacement(
            targets,
            lambda target, rewrite: self.specifier_for(consumer_path, target, rewrite),
        )

    def apply(self, consumer_path: str, record: FileRecord, plan: RewritePlan) -> str:
        """
        New text of ``consumer_path`` with every planned rewrite applied.

        Raises:
            ModuleParseError: if organizing imports is enabled and the rewritten text does not parse
        """
        synthesizer = DeclarationSynthesizer(self.ctx.single_quote(record))
        source = record.source
        for pos, targets in plan.descending():
            replacement = self.render(consumer_path, targets, synthesizer).encode("utf-8")
            source = source[:pos.start] + replacement + source[pos.end:]

        text = source.decode("utf-8")
        if self.ctx.organize_imports:
            text = organize_imports(text, consumer_path, self.ctx.analyzer.parser)
        return text
