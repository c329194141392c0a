"""
Test fixtures for Stackup

Provides fake collaborators and helpers for launcher, compose and schema
push tests.
"""

from typing import Iterable, Optional
from unittest.mock import Mock

from stackup.compose import ComposeClient
from stackup.env_file import EnvFile
from stackup.models import CommandResult
from stackup.ports import PortResolver


class MemoryEnvStore:
    """In-memory reader/writer pair for EnvFile."""

    def __init__(self, content: str = ""):
        self.content = content
        self.writes = 0

    def read(self) -> str:
        return self.content

    def write(self, content: str) -> None:
        self.content = content
        self.writes += 1

    def env_file(self) -> EnvFile:
        return EnvFile(".env", reader=self.read, writer=self.write)


class FakePortResolver(PortResolver):
    """Resolver that treats a fixed set of ports as taken."""

    def __init__(self, occupied: Iterable[int] = (), max_attempts: int = 10):
        super().__init__(max_attempts=max_attempts)
        self.occupied = set(occupied)

    def is_available(self, port: int) -> bool:
        return port not in self.occupied


def make_result(
    exit_code: int = 0,
    stdout: str = "",
    stderr: str = "",
    command: Optional[list] = None,
    benign_exit_codes: Iterable[int] = (0,),
) -> CommandResult:
    """Build a CommandResult for mocked command runs."""
    return CommandResult(
        command=command or ["docker", "compose"],
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        benign_exit_codes=tuple(benign_exit_codes),
    )


def make_compose(running: bool = False, up_exit_code: int = 0) -> Mock:
    """Create a mock ComposeClient."""
    compose = Mock(spec=ComposeClient)
    compose.already_running.return_value = running
    compose.up.return_value = make_result(
        exit_code=up_exit_code,
        stderr="" if up_exit_code == 0 else "Error: port is already allocated",
    )
    compose.ps.return_value = make_result(stdout="NAME   STATUS\napp-postgres-1   Up\n")
    return compose

