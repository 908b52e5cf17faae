"""
debarrel - remove barrel re-export files from TypeScript and JavaScript projects

Rewrites every import that goes through a barrel (a module made only of
``export ... from`` statements) to import from the module that defines the
binding, then deletes the barrels nothing depends on anymore.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Debarrel",
    "DebarrelOptions",
    "RunResult",
    "DebarrelConfig",
    "load_config",
]


def __getattr__(name):
    """Lazy loading of the API classes to keep the tree-sitter import off module import."""
    if name == "Debarrel":
        from .api import Debarrel
        return Debarrel

    if name in {"DebarrelOptions", "RunResult"}:
        from .models import DebarrelOptions, RunResult
        return {
            "DebarrelOptions": DebarrelOptions,
            "RunResult": RunResult,
        }[name]

    if name in {"DebarrelConfig", "load_config"}:
        from .config import DebarrelConfig, load_config
        return {
            "DebarrelConfig": DebarrelConfig,
            "load_config": load_config,
        }[name]

    raise AttributeError(f"module 'debarrel' has no attribute '{name}'")
