"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import getpass
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


def _home(*parts: str) -> str:
    return str(Path.home().joinpath(*parts))


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Nodes
    local_address: str = field(default="127.0.0.1")
    remotes: list[str] = field(default_factory=list)
    ssh_user: str = field(default="root")
    ssh_identity: str | None = field(default=None)

    # iperf3
    iperf_port: int = field(default=42069)
    test_duration: int = field(default=10)
    settle_delay: float = field(default=2.0)
    probe_timeout: float = field(default=5.0)

    # Retry and execution
    max_retries: int = field(default=3)
    command_timeout: int = field(default=60)
    local_sudo: str = field(default="sudo -A")
    remote_sudo: str = field(default="sudo -n")

    # Files
    run_log: str = field(default_factory=lambda: _home("network_test.log"))
    error_log: str = field(default_factory=lambda: _home("network_test_errors.log"))
    catalog_path: str | None = field(default=None)
    exclusions_path: str = field(
        default_factory=lambda: _home(".config", "nettest", "excluded_servers")
    )

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
            local_address=os.getenv("NETTEST_LOCAL_ADDRESS", "127.0.0.1"),
            remotes=cls._get_list("NETTEST_REMOTES"),
            ssh_user=os.getenv("NETTEST_SSH_USER") or getpass.getuser(),
            ssh_identity=os.path.expanduser(
                os.getenv("NETTEST_SSH_KEY", "~/.ssh/id_rsa")
            ),
            iperf_port=cls._get_int("NETTEST_IPERF_PORT", 42069),
            test_duration=cls._get_int("NETTEST_TEST_DURATION", 10),
            settle_delay=cls._get_float("NETTEST_SETTLE_DELAY", 2.0),
            probe_timeout=cls._get_float("NETTEST_PROBE_TIMEOUT", 5.0),
            max_retries=cls._get_int("NETTEST_MAX_RETRIES", 3),
            command_timeout=cls._get_int("NETTEST_COMMAND_TIMEOUT", 60),
            local_sudo=os.getenv("NETTEST_LOCAL_SUDO", "sudo -A"),
            remote_sudo=os.getenv("NETTEST_REMOTE_SUDO", "sudo -n"),
            run_log=os.path.expanduser(
                os.getenv("NETTEST_RUN_LOG", "~/network_test.log")
            ),
            error_log=os.path.expanduser(
                os.getenv("NETTEST_ERROR_LOG", "~/network_test_errors.log")
            ),
            catalog_path=os.getenv("NETTEST_CATALOG") or None,
            exclusions_path=os.path.expanduser(
                os.getenv(
                    "NETTEST_EXCLUSIONS", "~/.config/nettest/excluded_servers"
                )
            ),
            log_level=os.getenv("NETTEST_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("NETTEST_LOG_COLORS", True),
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
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid number for %s: %s, using default %s", key, value, default)
            return default

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

    @staticmethod
    def _get_list(key: str) -> list[str]:
        """Get comma-separated list from environment.

        Returns:
            List of non-empty, stripped items (empty if not set)
        """
        value = os.getenv(key, "").strip()
        if not value:
            return []
        return [item.strip() for item in value.split(",") if item.strip()]
