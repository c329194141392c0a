"""
Port resolution for local services.

Checks whether a host port can be bound and scans forward from a base
port to find a free one when the configured port is taken.
"""

import logging
import shutil
import socket
import subprocess
import sys
from typing import Optional

logger = logging.getLogger(__name__)

UNKNOWN_PORT_OWNER = "unknown process"


class PortsExhaustedError(Exception):
    """No free port found in the scanned range."""

    def __init__(self, start_port: int, attempts: int):
        self.start_port = start_port
        self.attempts = attempts
        super().__init__(
            f"No available port found in range {start_port}-{start_port + attempts - 1}"
        )


class PortResolver:
    """Finds bindable host ports by attempting to listen on them."""

    def __init__(self, host: str = "0.0.0.0", max_attempts: int = 10):
        self.host = host
        self.max_attempts = max_attempts

    def is_available(self, port: int) -> bool:
        """
        Check if a port can be bound on the configured interface.

        Any bind or listen error counts as unavailable. The listening socket is
        closed before returning.
        """
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
                if sys.platform != "win32":
                    # Ignore TIME_WAIT leftovers; live listeners still conflict
                    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self.host, port))
                sock.listen(1)
        except (OSError, OverflowError) as e:
            logger.debug(f"Port {port} unavailable on {self.host}: {e}")
            return False
        return True

    def find_available(self, start_port: int, max_attempts: Optional[int] = None) -> int:
        """
        Find the lowest available port starting at start_port.

        Args:
            start_port: First port to check
            max_attempts: Number of consecutive ports to check

        Returns:
            First available port in the range

        Raises:
            PortsExhaustedError: If every checked port is in use
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts

        for offset in range(attempts):
            port = start_port + offset
            if self.is_available(port):
                if offset:
                    logger.info(f"Port {start_port} in use, found free port {port}")
                return port

        raise PortsExhaustedError(start_port, attempts)


def find_port_owner(port: int, timeout: float = 5) -> str:
    """
    Best-effort lookup of the process listening on a port.

    Uses ``lsof`` where available. Only meant for diagnostic display: any
    failure yields UNKNOWN_PORT_OWNER.
    """
    if not shutil.which("lsof"):
        return UNKNOWN_PORT_OWNER

    try:
        result = subprocess.run(
            ["lsof", f"-iTCP:{port}", "-sTCP:LISTEN", "-P", "-n"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Port owner lookup failed for {port}: {e}")
        return UNKNOWN_PORT_OWNER

    lines = result.stdout.strip().splitlines()
    if len(lines) < 2:
        return UNKNOWN_PORT_OWNER

    # First column of the first row after the header is the command name
    columns = lines[1].split()
    return columns[0] if columns else UNKNOWN_PORT_OWNER
