"""
Main API interface for debarrel

Provides a small facade over the run pipeline: build a run-scoped context,
drive the orchestrator and return the RunResult.
"""

import logging
from typing import Optional

from .config import DebarrelConfig
from .models import DebarrelOptions, RunResult
from .orchestration.context import create_context
from .orchestration.orchestrator import DebarrelOrchestrator

logger = logging.getLogger(__name__)


class Debarrel:
    """
    Main API class for debarrel.

    Example:
        result = Debarrel().run(DebarrelOptions(cwd="my-app", write=True))
        for path in result.deleted:
            print(path)
    """

    def __init__(self, config: Optional[DebarrelConfig] = None):
        """
        Initialize debarrel with optional configuration.

        Args:
            config: Tool defaults. If None, uses default configuration.
        """
        self.config = config or DebarrelConfig.default()

    def run(self, options: DebarrelOptions) -> RunResult:
        """
        Rewrite barrel imports under ``options.cwd`` and remove unused barrels.

        Every call starts from a fresh context, so runs never share caches.

        Raises:
            ConfigurationError: if the working directory cannot be used
        """
        ctx = create_context(options, self.config)
        mode = "check" if options.check else ("write" if options.write else "dry-run")
        logger.debug(f"Starting {mode} run in {ctx.base}")

        result = DebarrelOrchestrator(ctx).run()
        logger.debug(
            f"Finished: {len(result.modified)} modified, {len(result.deleted)} deleted, "
            f"{len(result.preserved)} preserved, {len(result.errors)} errors"
        )
        return result


def debarrel(options: DebarrelOptions, config: Optional[DebarrelConfig] = None) -> RunResult:
    """Run debarrel once with ``options``."""
    return Debarrel(config).run(options)
