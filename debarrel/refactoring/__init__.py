"""
Refactoring module for debarrel

Provides the rewrite side of a run:
- Barrel tracking and deleted/preserved classification
- Tracing bindings through barrels into rewrite plans
- Declaration synthesis and application of plans to source text
- Optional merging of duplicate imports
"""

__all__ = [
    "BarrelTracker",
    "DeclarationSynthesizer",
    "RewriteApplier",
    "RewriteBuilder",
    "organize_imports",
]


def __getattr__(name: str):
    if name == "BarrelTracker":
        from .tracker import BarrelTracker
        return BarrelTracker
    if name == "DeclarationSynthesizer":
        from .synthesizer import DeclarationSynthesizer
        return DeclarationSynthesizer
    if name == "RewriteApplier":
        from .applier import RewriteApplier
        return RewriteApplier
    if name == "RewriteBuilder":
        from .rewriter import RewriteBuilder
        return RewriteBuilder
    if name == "organize_imports":
        from .organize import organize_imports
        return organize_imports
    raise AttributeError(name)
