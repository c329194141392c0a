"""
Non-interactive schema push.

Runs the schema migration tool with an affirmative answer stream on its
stdin so confirmation prompts never block.
"""

import logging
from typing import Optional

from .commands import CommandRunner
from .config import StackupConfig
from .models import CommandResult

logger = logging.getLogger(__name__)


class SchemaPusher:
    """Force-pushes the database schema through the migration tool."""

    def __init__(self, config: StackupConfig, runner: Optional[CommandRunner] = None):
        self.config = config
        self.runner = runner or CommandRunner(config, operation="migration_push")

    def push(self) -> CommandResult:
        """
        Push the schema.

        The answer stream outlives the migration tool, so the pipeline can
        end with a broken-pipe status; which statuses count as success comes
        from ``config.benign_exit_codes``.
        """
        logger.info(
            f"Pushing schema: {' '.join(self.config.migration_command)} "
            f"(cwd: {self.config.migration_cwd})"
        )
        result = self.runner.run_pipeline(
            self.config.affirmative_command,
            self.config.migration_command,
            cwd=self.config.migration_cwd,
            benign_exit_codes=self.config.benign_exit_codes,
        )

        if result.failed:
            logger.error(f"Schema push failed with exit code {result.exit_code}")
        return result
