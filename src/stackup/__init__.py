"""
Stackup: local development stack helpers

Starts the Docker Compose services on conflict-free ports and pushes the
database schema without interactive prompts.
"""

__version__ = "0.1.0"
__author__ = "Stackup Contributors"

from .config import StackupConfig
from .logging_config import setup_logging

__all__ = [
    "StackupConfig",
    "setup_logging",
]
