"""Application settings from environment variables.

Centralized environment variable parsing and validation. Every setting
reads a NETMIGO_* variable and falls back to its default when the
variable is unset or invalid.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from netmigo.models import ConnectionConfig, ExecuteOptions

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """netmigo settings from environment."""

    # Output artifacts
    output_dir: Path = field(default_factory=lambda: Path("ssh_command_outputs"))

    # Execution timing (seconds)
    timeout: float = field(default=10.0)
    first_byte_timeout: float = field(default=300.0)

    # Connection
    max_retry: int = field(default=3)
    connect_timeout: float = field(default=10.0)
    retry_delay: float = field(default=1.0)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            output_dir=Path(os.getenv("NETMIGO_OUTPUT_DIR", "ssh_command_outputs")),
            timeout=cls._get_float("NETMIGO_TIMEOUT", 10.0),
            first_byte_timeout=cls._get_float("NETMIGO_FIRST_BYTE_TIMEOUT", 300.0),
            max_retry=cls._get_int("NETMIGO_MAX_RETRY", 3),
            connect_timeout=cls._get_float("NETMIGO_CONNECT_TIMEOUT", 10.0),
            retry_delay=cls._get_float("NETMIGO_RETRY_DELAY", 1.0, minimum=0.0),
            log_level=os.getenv("NETMIGO_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("NETMIGO_LOG_COLORS", True),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_float(key: str, default: float, minimum: float | None = None) -> float:
        """Get a float from environment.

        Values must be positive unless ``minimum`` is given, in which case
        they must be at least ``minimum``.
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = float(value)
        except ValueError:
            logger.warning("Invalid float for %s: %s, using default %s", key, value, default)
            return default

        too_small = parsed < minimum if minimum is not None else parsed <= 0
        if too_small:
            logger.warning("Out of range value for %s: %s, using default %s", key, value, default)
            return default
        return parsed

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @property
    def execute_options(self) -> ExecuteOptions:
        """Default ExecuteOptions built from these settings."""
        return ExecuteOptions(
            timeout=self.timeout,
            first_byte_timeout=self.first_byte_timeout,
        )

    def connection_config(self, host: str, **kwargs) -> ConnectionConfig:
        """Build a ConnectionConfig using these settings as defaults.

        Args:
            host: Target host name or address
            **kwargs: Any ConnectionConfig field, overriding the defaults

        Returns:
            ConnectionConfig for the host
        """
        kwargs.setdefault("max_retry", self.max_retry)
        kwargs.setdefault("connect_timeout", self.connect_timeout)
        return ConnectionConfig(host=host, **kwargs)
