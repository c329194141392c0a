"""
Environment file synchronization.

Reads and updates KEY=VALUE lines in the project's .env file. The file
access itself goes through injectable reader/writer callables.
"""

import logging
import re
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .logging_config import mask_sensitive_data
from .models import PortConfig

logger = logging.getLogger(__name__)

POSTGRES_PORT_KEY = "POSTGRES_PORT"
REDIS_PORT_KEY = "REDIS_PORT"
DATABASE_URL_KEY = "DATABASE_URL"


class EnvFile:
    """A line-oriented KEY=VALUE environment file."""

    def __init__(
        self,
        path: Union[str, Path] = ".env",
        reader: Optional[Callable[[], str]] = None,
        writer: Optional[Callable[[str], None]] = None,
    ):
        self.path = Path(path)
        self._reader = reader or self._read_file
        self._writer = writer or self._write_file

    def _read_file(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding="utf-8")

    def _write_file(self, content: str) -> None:
        self.path.write_text(content, encoding="utf-8")

    def read(self) -> str:
        """Return the raw file content, empty if the file does not exist."""
        return self._reader()

    def get_var(self, key: str) -> Optional[str]:
        """Get the first value defined for key, or None."""
        match = _line_pattern(key).search(self.read())
        if not match:
            return None
        return match.group(0).split("=", 1)[1].rstrip("\r")

    def read_ports(self, defaults: PortConfig) -> PortConfig:
        """
        Read the service ports from the file.

        Missing, malformed or out-of-range values fall back to defaults.

        Args:
            defaults: Ports used when the file does not define a valid one

        Returns:
            PortConfig with the configured ports
        """
        content = self.read()
        return PortConfig(
            postgres=_parse_port(content, POSTGRES_PORT_KEY, defaults.postgres),
            redis=_parse_port(content, REDIS_PORT_KEY, defaults.redis),
        )

    def set_var(self, key: str, value: str) -> None:
        """
        Set key=value in the file.

        An existing definition is replaced in place and any later duplicate
        definitions are dropped. A new key is appended on its own line.
        """
        content = self.read()
        pattern = _line_pattern(key)
        entry = f"{key}={value}"

        if pattern.search(content):
            # Lines end at "\n" only; other separators are part of the value
            updated = []
            replaced = False
            for line in content.split("\n"):
                body = line.rstrip("\r")
                if pattern.fullmatch(body):
                    if replaced:
                        continue
                    updated.append(entry + line[len(body):])
                    replaced = True
                else:
                    updated.append(line)
            content = "\n".join(updated)
        else:
            prefix = f"{content.rstrip()}\n" if content.strip() else ""
            content = f"{prefix}{entry}\n"

        self._writer(content)
        logger.info(f"Set {key}={mask_sensitive_data(value)} in {self.path}")

    def set_vars(self, values: Dict[str, str]) -> None:
        """Set several variables, in order."""
        for key, value in values.items():
            self.set_var(key, value)


def _line_pattern(key: str) -> "re.Pattern[str]":
    return re.compile(rf"^{re.escape(key)}=.*$", re.MULTILINE)


def _parse_port(content: str, key: str, default: int) -> int:
    match = re.search(rf"^{re.escape(key)}=(\d+)\s*$", content, re.MULTILINE)
    if not match:
        return default

    port = int(match.group(1))
    if not 1 <= port <= 65535:
        logger.warning(f"Ignoring out-of-range {key}={port}, using {default}")
        return default
    return port
