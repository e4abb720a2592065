"""SSH host key verification.

Resolves the known_hosts file handed to asyncssh for remote nodes.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class HostKeyVerifier:
    """Known_hosts policy for SSH connections to remote nodes."""

    def __init__(
        self,
        known_hosts_path: str | None = None,
        strict_checking: bool = True,
    ):
        """Initialize host key verifier.

        Args:
            known_hosts_path: Path to known_hosts file or 'none' to disable
            strict_checking: Reject unknown host keys

        Raises:
            FileNotFoundError: If strict mode and file missing
        """
        self.strict_checking = strict_checking
        self._known_hosts = self._resolve(known_hosts_path)

    def _resolve(self, value: str | None) -> str | None:
        if value and value.lower() == "none":
            logger.warning(
                "SSH host key verification disabled (NETTEST_KNOWN_HOSTS=none)"
            )
            return None

        if value:
            path = Path(os.path.expanduser(value))
        else:
            path = Path.home() / ".ssh" / "known_hosts"

        if path.exists():
            return str(path)

        if self.strict_checking:
            raise FileNotFoundError(
                f"SSH host key verification required but known_hosts file "
                f"not found: {path}. Add remote keys with "
                f"'ssh-keyscan <host> >> {path}' or set "
                f"NETTEST_STRICT_HOST_KEY_CHECKING=false"
            )

        logger.warning(
            "known_hosts not found at %s, host key verification disabled",
            path,
        )
        return None

    def get_known_hosts_path(self) -> str | None:
        """Get path to known_hosts file.

        Returns:
            Path string or None if verification disabled
        """
        return self._known_hosts

    def is_enabled(self) -> bool:
        return self._known_hosts is not None
