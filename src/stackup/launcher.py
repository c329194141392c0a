"""
Local container stack launcher

Brings up the Docker Compose stack idempotently: if the containers are
already running nothing is changed, otherwise configured ports are checked,
conflicts are moved to free ports, the .env file is updated and the
containers are started.
"""

import dataclasses
import logging
from typing import List, Optional

from .compose import ComposeClient
from .config import StackupConfig
from .env_file import (
    DATABASE_URL_KEY,
    POSTGRES_PORT_KEY,
    REDIS_PORT_KEY,
    EnvFile,
)
from .models import LaunchResult, PortConfig, PortConflict, PortPlan
from .ports import PortResolver, find_port_owner

logger = logging.getLogger(__name__)

# (PortConfig field, display name, env key), in check order
SERVICES = (
    ("postgres", "PostgreSQL", POSTGRES_PORT_KEY),
    ("redis", "Redis", REDIS_PORT_KEY),
)


class StackLauncher:
    """
    Launches the local PostgreSQL and Redis containers.

    Collaborators are injectable so the launch flow can run against fakes.
    """

    def __init__(
        self,
        config: StackupConfig,
        env_file: Optional[EnvFile] = None,
        resolver: Optional[PortResolver] = None,
        compose: Optional[ComposeClient] = None,
    ):
        """Initialize launcher with configuration."""
        self.config = config
        self.env_file = env_file or EnvFile(config.get_env_file_path())
        self.resolver = resolver or PortResolver(
            host=config.bind_host, max_attempts=config.port_scan_attempts
        )
        self.compose = compose or ComposeClient(config)

    @property
    def default_ports(self) -> PortConfig:
        return PortConfig(
            postgres=self.config.postgres_default_port,
            redis=self.config.redis_default_port,
        )

    def read_ports(self) -> PortConfig:
        """Read the configured ports from the environment file."""
        return self.env_file.read_ports(self.default_ports)

    def check_port(self, service: str, port: int) -> Optional[PortConflict]:
        """
        Check one service port and pick a replacement if it is in use.

        Replacements are searched from the service's default port.

        Args:
            service: PortConfig field name ("postgres" or "redis")
            port: Configured port for the service

        Returns:
            PortConflict when the port is taken, None when it is free

        Raises:
            PortsExhaustedError: If no replacement port is free
        """
        logger.info(f"Checking {service} port {port}")
        if self.resolver.is_available(port):
            return None

        owner = find_port_owner(port) if self.config.port_owner_lookup else None
        replacement = self.resolver.find_available(getattr(self.default_ports, service))
        logger.info(
            f"{service} port {port} in use by {owner or 'another process'}, "
            f"using {replacement}"
        )
        return PortConflict(service=service, port=port, replacement=replacement, owner=owner)

    @staticmethod
    def plan_ports(current: PortConfig, conflicts: List[PortConflict]) -> PortPlan:
        """Apply the replacements of conflicts to the configured ports."""
        final = dataclasses.replace(current)
        for conflict in conflicts:
            setattr(final, conflict.service, conflict.replacement)
        return PortPlan(current=current, final=final, conflicts=list(conflicts))

    def resolve_ports(self, current: PortConfig) -> PortPlan:
        """
        Check each service port, in order, and plan replacements.

        Raises:
            PortsExhaustedError: If no replacement port is free
        """
        conflicts = []
        for service, _, _ in SERVICES:
            conflict = self.check_port(service, getattr(current, service))
            if conflict:
                conflicts.append(conflict)
        return self.plan_ports(current, conflicts)

    def persist_ports(self, plan: PortPlan) -> List[str]:
        """
        Write changed ports to the environment file.

        Returns:
            Keys written, in order
        """
        if not plan.changed:
            return []

        values = {env_key: str(getattr(plan.final, service)) for service, _, env_key in SERVICES}
        if plan.postgres_changed:
            values[DATABASE_URL_KEY] = self.config.database_url_for(plan.final.postgres)

        self.env_file.set_vars(values)
        logger.info(f"Updated {', '.join(values)} in {self.env_file.path}")
        return list(values)

    def start(self, plan: PortPlan, updated_keys: Optional[List[str]] = None) -> LaunchResult:
        """
        Run ``docker compose up`` for a resolved plan.

        On success the container status table is captured for display.
        """
        updated_keys = list(updated_keys or [])
        up_result = self.compose.up()
        if up_result.failed:
            logger.info(f"Container start failed (exit code {up_result.exit_code})")
            return LaunchResult(
                success=False,
                plan=plan,
                updated_keys=updated_keys,
                up_result=up_result,
            )

        return LaunchResult(
            success=True,
            plan=plan,
            updated_keys=updated_keys,
            up_result=up_result,
            status_output=self.compose.ps().stdout,
        )

    def running_result(self) -> LaunchResult:
        """Result for a stack that is already up."""
        logger.info("Containers already running")
        return LaunchResult(
            success=True,
            already_running=True,
            status_output=self.compose.ps().stdout,
        )

    def launch(self) -> LaunchResult:
        """
        Bring up the container stack unless it is already running.

        Returns:
            LaunchResult describing what was done

        Raises:
            PortsExhaustedError: If a conflicting port has no free replacement
        """
        if self.compose.already_running():
            return self.running_result()

        plan = self.resolve_ports(self.read_ports())
        updated_keys = self.persist_ports(plan)
        return self.start(plan, updated_keys)
