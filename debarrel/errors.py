"""
Exception hierarchy for debarrel.

Per-file failures (read, parse, delete) are caught by the orchestrator and
turned into FileError records; only ConfigurationError aborts a run.
"""

from typing import Optional


class DebarrelError(Exception):
    """Base class for all debarrel errors."""

    pass


class ModuleReadError(DebarrelError):
    """Raised when a source file cannot be read or decoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class ModuleParseError(DebarrelError):
    """Raised when a source file does not parse cleanly."""

    def __init__(self, path: str, line: Optional[int] = None):
        self.path = path
        self.line = line
        location = f" near line {line}" if line is not None else ""
        super().__init__(f"Syntax error in {path}{location}")


class ConfigurationError(DebarrelError):
    """Raised when configuration validation fails or the project cannot be set up."""

    pass
