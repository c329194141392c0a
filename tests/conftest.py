"""
Pytest configuration and fixtures for Stackup tests.

Provides common fixtures and test utilities across all test modules.
"""

import os
import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from stackup.config import StackupConfig


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """
    Create temporary workspace directory for test files.

    Yields:
        Path to temporary workspace
    """
    temp_dir = tempfile.mkdtemp(prefix="stackup_workspace_")
    workspace = Path(temp_dir)

    yield workspace

    shutil.rmtree(temp_dir)


@pytest.fixture
def isolated_test_env(temp_workspace: Path) -> Generator[dict[str, str], None, None]:
    """
    Create isolated test environment with clean environment variables.

    Runs the test from inside the temporary workspace so the .env file
    read by the configuration is the workspace's own.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()
    original_cwd = os.getcwd()

    for key in list(os.environ.keys()):
        if key.startswith("STACKUP_"):
            del os.environ[key]

    os.environ.update(
        {
            "STACKUP_LOG_DIR": str(temp_workspace / "logs"),
            "STACKUP_ENABLE_FILE_LOGGING": "false",
        }
    )
    os.chdir(temp_workspace)

    yield original_env

    os.chdir(original_cwd)
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def test_config(isolated_test_env: dict[str, str], temp_workspace: Path) -> StackupConfig:
    """
    Create test configuration with safe defaults.

    Returns:
        Test configuration instance
    """
    return StackupConfig(
        log_level="DEBUG",
        verbose=True,
        log_dir=str(temp_workspace / "logs"),
        enable_file_logging=False,
        env_file=str(temp_workspace / ".env"),
    )


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "network: marks tests that bind real sockets")
