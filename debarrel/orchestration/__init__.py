"""
Orchestration module for debarrel

Provides the run pipeline:
- Run-scoped context owning every cache and the barrel tracker
- The orchestrator driving discovery, rewriting, classification and deletion
- Report helpers for the example diff and grouped output
"""

__all__ = [
    "DebarrelOrchestrator",
    "RunContext",
    "create_context",
]


def __getattr__(name: str):
    if name == "DebarrelOrchestrator":
        from .orchestrator import DebarrelOrchestrator
        return DebarrelOrchestrator
    if name in {"RunContext", "create_context"}:
        from .context import RunContext, create_context
        return {"RunContext": RunContext, "create_context": create_context}[name]
    raise AttributeError(name)
