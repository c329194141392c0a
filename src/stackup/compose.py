"""
Docker Compose client.

Thin wrapper over the container orchestration CLI used by the launcher.
"""

import logging
from typing import List, Optional

from .commands import CommandRunner
from .config import StackupConfig
from .models import CommandResult

logger = logging.getLogger(__name__)


class ComposeClient:
    """Runs ``docker compose`` subcommands for the current project."""

    def __init__(self, config: StackupConfig, runner: Optional[CommandRunner] = None):
        self.config = config
        self.runner = runner or CommandRunner(config, operation="compose")

    def _command(self, *args: str) -> List[str]:
        return list(self.config.compose_command) + list(args)

    def already_running(self) -> bool:
        """
        Check whether the project's containers are already up.

        Any failure of the status query counts as not running, so the
        caller falls through to a fresh launch.
        """
        result = self.runner.run(self._command("ps", "--format", "json"), quiet=True)
        if result.failed:
            logger.debug(f"Container status query failed: {result.output}")
            return False

        output = result.stdout.strip()
        running = bool(output) and output != "[]"
        logger.debug(f"Containers running: {running}")
        return running

    def up(self) -> CommandResult:
        """Start the project's containers in the background."""
        logger.info("Starting containers")
        return self.runner.run(self._command("up", "-d"))

    def ps(self) -> CommandResult:
        """Get the human-readable container status table."""
        return self.runner.run(self._command("ps"))
