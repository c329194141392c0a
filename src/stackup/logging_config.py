"""
Logging configuration for Stackup

Provides structured logging with both console output and file logging.
External command logs are directed to dedicated files in the logs/ directory.
"""

import logging
import logging.handlers
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional


def setup_logging(
    log_dir: str = "logs",
    verbose: bool = False,
    log_level: Optional[str] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Set up logging for Stackup operations.

    Args:
        log_dir: Directory for log files
        verbose: Enable verbose console output
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        enable_file_logging: Whether to write logs to files

    Returns:
        Configured logger instance
    """
    log_path = Path(log_dir)

    if log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # Console output is meant for the developer; keep it to warnings unless verbose
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level if verbose else max(level, logging.WARNING))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if enable_file_logging:
        log_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"stackup_{timestamp}.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,  # 10MB files, 5 backups
        )
        file_handler.setLevel(logging.DEBUG)  # Always debug level for files
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logger = logging.getLogger("stackup")
    logger.debug(f"Logging initialized - Level: {logging.getLevelName(level)}")
    if enable_file_logging:
        logger.debug(f"Log directory: {log_path.absolute()}")

    return logger


def get_subprocess_log_file(operation: str, log_dir: str = "logs") -> str:
    """
    Generate timestamped log file path for external command operations.

    Args:
        operation: Operation name (e.g., 'compose_up', 'migration_push')
        log_dir: Base log directory

    Returns:
        Full path to log file for subprocess output
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = Path(log_dir)

    if "compose" in operation.lower() or "container" in operation.lower():
        subdir = "compose"
    elif "migration" in operation.lower() or "schema" in operation.lower():
        subdir = "migrations"
    else:
        subdir = ""

    if subdir:
        log_file = log_path / subdir / f"{operation}_{timestamp}.log"
    else:
        log_file = log_path / f"{operation}_{timestamp}.log"

    log_file.parent.mkdir(parents=True, exist_ok=True)

    return str(log_file)


def mask_sensitive_data(message: str) -> str:
    """
    Mask sensitive information in log messages.

    Args:
        message: Log message that may contain sensitive data

    Returns:
        Message with sensitive information masked
    """
    # Mask database URLs
    message = re.sub(
        r"(postgres(?:ql)?://[^:/@\s]+):([^@\s]+)@",
        r"\1:***@",
        message,
    )

    # Mask password parameters
    message = re.sub(
        r"password[=\s]+[^\s]+", "password=***", message, flags=re.IGNORECASE
    )

    return message


class SubprocessLogHandler:
    """
    Handler for external command operations with dedicated logging.
    """

    def __init__(self, operation: str, log_dir: str = "logs"):
        """
        Initialize subprocess log handler.

        Args:
            operation: Name of the operation being logged
            log_dir: Base directory for log files
        """
        self.operation = operation
        self.log_file = get_subprocess_log_file(operation, log_dir)
        self.logger = logging.getLogger(f"stackup.subprocess.{operation}")

        # One file per handler instance
        for existing in self.logger.handlers[:]:
            self.logger.removeHandler(existing)
            existing.close()

        handler = logging.FileHandler(self.log_file)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        self.logger.addHandler(handler)
        self.logger.setLevel(logging.DEBUG)
        # Command output belongs in the operation log, not on the console
        self.logger.propagate = False

    def log_command(self, command: List[str]) -> None:
        """Log the command being executed."""
        masked_command = [mask_sensitive_data(arg) for arg in command]
        self.logger.info(f"Executing command: {' '.join(masked_command)}")

    def log_output(self, output: str, level: int = logging.INFO) -> None:
        """Log subprocess output."""
        if output.strip():
            masked_output = mask_sensitive_data(output.strip())
            self.logger.log(level, masked_output)

    def log_completion(
        self, return_code: int, elapsed_time: float, success: Optional[bool] = None
    ) -> None:
        """Log subprocess completion."""
        if success is None:
            success = return_code == 0

        if success:
            self.logger.info(
                f"✓ {self.operation} completed (exit code {return_code}) in {elapsed_time:.2f}s"
            )
        else:
            self.logger.error(
                f"✗ {self.operation} failed with return code {return_code} after {elapsed_time:.2f}s"
            )

    def get_log_file_path(self) -> str:
        """Get the path to the log file for this operation."""
        return self.log_file
