"""
Data models for Stackup

Defines the port configuration, command results and launch results shared
by the container launcher and the schema push wrapper.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass
class PortConfig:
    """Host ports for the local services."""

    postgres: int
    redis: int


@dataclass
class CommandResult:
    """Result of an external command invocation."""

    command: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    elapsed_time: float = 0.0
    benign_exit_codes: Tuple[int, ...] = (0,)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        """Whether the exit code is one of the expected benign codes."""
        return self.exit_code in self.benign_exit_codes

    @property
    def failed(self) -> bool:
        return not self.success

    @property
    def output(self) -> str:
        """Captured diagnostic output, stderr first."""
        parts = [text.strip() for text in (self.stderr, self.stdout) if text.strip()]
        return "\n".join(parts)

    def get_summary(self) -> str:
        """Get a summary string for the command result."""
        status = "✅ SUCCESS" if self.success else "❌ FAILED"
        timing = f" ({self.elapsed_time:.1f}s)" if self.elapsed_time > 0 else ""
        return f"{status}: {' '.join(self.command)} exited {self.exit_code}{timing}"


@dataclass
class PortConflict:
    """A configured port found in use, with its replacement."""

    service: str
    port: int
    replacement: int
    owner: Optional[str] = None


@dataclass
class PortPlan:
    """Outcome of checking every service port before a launch."""

    current: PortConfig
    final: PortConfig
    conflicts: List[PortConflict] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.conflicts)

    @property
    def postgres_changed(self) -> bool:
        return self.final.postgres != self.current.postgres


@dataclass
class LaunchResult:
    """Result of bringing up the local container stack."""

    success: bool
    already_running: bool = False
    plan: Optional[PortPlan] = None
    updated_keys: List[str] = field(default_factory=list)
    up_result: Optional[CommandResult] = None
    status_output: str = ""

    @property
    def ports(self) -> Optional[PortConfig]:
        return self.plan.final if self.plan else None
