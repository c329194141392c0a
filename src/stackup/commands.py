"""
External command invocation for Stackup

Runs container orchestration and schema migration tools as subprocesses,
capturing their output into CommandResult objects. Which exit codes count
as success is decided by the caller through ``benign_exit_codes``.
"""

import logging
import subprocess
import time
from typing import Iterable, List, Optional, Tuple

from .config import StackupConfig
from .logging_config import SubprocessLogHandler
from .models import CommandResult

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND_EXIT_CODE = 127


def normalize_exit_code(return_code: int) -> int:
    """Map a Popen return code to a shell-style exit status.

    Processes killed by a signal report ``-signum``; shells report them as
    ``128 + signum`` (a writer killed by SIGPIPE exits 141).
    """
    if return_code < 0:
        return 128 - return_code
    return return_code


def pipeline_exit_code(producer_code: int, consumer_code: int) -> int:
    """Composite status of ``producer | consumer`` with pipefail semantics."""
    if consumer_code != 0:
        return consumer_code
    return producer_code


class CommandRunner:
    """
    Runs external commands once, without retries or timeouts.

    Every invocation is logged to a per-operation subprocess log file when
    file logging is enabled.
    """

    def __init__(
        self,
        config: StackupConfig,
        operation: str = "command",
        log_handler: Optional[SubprocessLogHandler] = None,
    ):
        """Initialize command runner with configuration."""
        self.config = config
        self.operation = operation
        if log_handler is None and config.enable_file_logging:
            log_handler = SubprocessLogHandler(operation, config.log_dir)
        self.log_handler = log_handler

    def run(
        self,
        command: List[str],
        cwd: Optional[str] = None,
        benign_exit_codes: Iterable[int] = (0,),
        quiet: bool = False,
    ) -> CommandResult:
        """
        Run a single command and capture its output.

        Args:
            command: Command and arguments
            cwd: Working directory for the command
            benign_exit_codes: Exit codes treated as success
            quiet: Log the outcome at debug level, for queries allowed to fail

        Returns:
            CommandResult with exit code and captured output
        """
        benign = tuple(benign_exit_codes)
        self._log_command(command, cwd)
        start_time = time.time()

        try:
            process = subprocess.run(
                command,
                capture_output=True,
                text=True,
                cwd=cwd,
            )
        except FileNotFoundError as e:
            result = self._not_found_result(command, e, benign, start_time)
            self._log_result(result, quiet)
            return result

        result = CommandResult(
            command=list(command),
            exit_code=normalize_exit_code(process.returncode),
            stdout=process.stdout or "",
            stderr=process.stderr or "",
            elapsed_time=time.time() - start_time,
            benign_exit_codes=benign,
        )
        self._log_result(result, quiet)
        return result

    def run_pipeline(
        self,
        producer: List[str],
        consumer: List[str],
        cwd: Optional[str] = None,
        benign_exit_codes: Iterable[int] = (0,),
    ) -> CommandResult:
        """
        Run ``producer | consumer`` and capture the consumer's output.

        The producer's stdout feeds the consumer's stdin. Once the consumer
        exits, the producer's next write fails with a broken pipe, which is
        why callers usually list 141 among the benign exit codes.

        Args:
            producer: Command writing to the pipe
            consumer: Command reading from the pipe
            cwd: Working directory for both commands
            benign_exit_codes: Composite exit codes treated as success

        Returns:
            CommandResult for the whole pipeline
        """
        benign = tuple(benign_exit_codes)
        command = list(producer) + ["|"] + list(consumer)
        self._log_command(command, cwd)
        start_time = time.time()

        try:
            producer_process = subprocess.Popen(
                producer,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                cwd=cwd,
            )
        except FileNotFoundError as e:
            result = self._not_found_result(command, e, benign, start_time)
            self._log_result(result)
            return result

        try:
            consumer_process = subprocess.Popen(
                consumer,
                stdin=producer_process.stdout,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                cwd=cwd,
            )
        except FileNotFoundError as e:
            producer_process.kill()
            producer_process.stdout.close()
            producer_process.wait()
            result = self._not_found_result(command, e, benign, start_time)
            self._log_result(result)
            return result

        # Only the consumer may hold the read end, so the producer sees EPIPE
        producer_process.stdout.close()
        stdout, stderr = consumer_process.communicate()
        producer_code = producer_process.wait()

        exit_code = pipeline_exit_code(
            normalize_exit_code(producer_code),
            normalize_exit_code(consumer_process.returncode),
        )
        logger.debug(
            f"Pipeline exit codes: producer={producer_code}, "
            f"consumer={consumer_process.returncode}, composite={exit_code}"
        )

        result = CommandResult(
            command=command,
            exit_code=exit_code,
            stdout=stdout or "",
            stderr=stderr or "",
            elapsed_time=time.time() - start_time,
            benign_exit_codes=benign,
        )
        self._log_result(result)
        return result

    def _not_found_result(
        self,
        command: List[str],
        error: FileNotFoundError,
        benign: Tuple[int, ...],
        start_time: float,
    ) -> CommandResult:
        missing = error.filename or command[0]
        logger.debug(f"Command not found: {missing}")
        return CommandResult(
            command=list(command),
            exit_code=COMMAND_NOT_FOUND_EXIT_CODE,
            stderr=f"Command not found: {missing}",
            elapsed_time=time.time() - start_time,
            benign_exit_codes=benign,
        )

    def _log_command(self, command: List[str], cwd: Optional[str]) -> None:
        logger.debug(f"Running: {' '.join(command)} (cwd: {cwd or '.'})")
        if self.log_handler:
            self.log_handler.log_command(command)

    def _log_result(self, result: CommandResult, quiet: bool = False) -> None:
        if quiet:
            logger.debug(result.get_summary())
        elif result.success:
            logger.info(result.get_summary())
        else:
            logger.error(result.get_summary())

        if self.log_handler:
            self.log_handler.log_output(result.stdout)
            self.log_handler.log_output(result.stderr, logging.WARNING)
            self.log_handler.log_completion(
                result.exit_code, result.elapsed_time, result.success
            )
