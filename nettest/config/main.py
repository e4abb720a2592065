"""Run configuration.

Built once at startup and passed explicitly to every component:
- Settings: environment variables
- HostKeyVerifier: known_hosts policy
- Nodes: the local node and the fixed remote node list
- Catalog: external iperf3 servers and the reloadable exclusion list
"""

import logging
import os
from dataclasses import dataclass

from nettest.config.catalog import load_catalog
from nettest.config.exclusions import ExclusionList
from nettest.config.host_keys import HostKeyVerifier
from nettest.config.settings import Settings
from nettest.models import ExternalServerEntry, Node, NodeRole

logger = logging.getLogger(__name__)


def parse_remote(spec: str, default_user: str, identity_file: str | None) -> Node:
    """Parse a ``[user@]host[:port]`` remote specification.

    Args:
        spec: Remote specification
        default_user: SSH user when none is given
        identity_file: SSH private key for the node

    Returns:
        Remote Node

    Raises:
        ValueError: If the host is empty or the port is not a number
    """
    user = default_user
    rest = spec.strip()
    if "@" in rest:
        user, rest = rest.split("@", 1)

    port = 22
    # Bracketed IPv6 literal: [fe80::1]:2222
    if rest.startswith("["):
        host, _, tail = rest[1:].partition("]")
        if tail.startswith(":"):
            port = int(tail[1:])
    elif rest.count(":") == 1:
        host, port_str = rest.split(":")
        port = int(port_str)
    else:
        host = rest

    if not host:
        raise ValueError(f"Empty host in remote specification: {spec!r}")

    return Node(
        address=host,
        role=NodeRole.REMOTE,
        user=user,
        port=port,
        identity_file=identity_file,
    )


@dataclass(frozen=True)
class Config:
    """Immutable configuration for one run.

    Only the exclusion list can change during a run, through reload.
    """

    settings: Settings
    local: Node
    remotes: tuple[Node, ...]
    catalog: tuple[ExternalServerEntry, ...]
    exclusions: ExclusionList
    host_keys: HostKeyVerifier | None = None

    @classmethod
    def from_env(
        cls, settings: Settings | None = None, dry_run: bool = False
    ) -> "Config":
        """Create config from environment.

        Args:
            settings: Already parsed settings, or None to read them now
            dry_run: No SSH connection will be opened

        Returns:
            Configured instance with all components initialized

        Raises:
            ValueError: If a remote specification is malformed
            FileNotFoundError: If strict host key checking has no known_hosts
                and a remote node will be connected to
        """
        if settings is None:
            settings = Settings.from_env()

        strict = cls._get_bool_env("NETTEST_STRICT_HOST_KEY_CHECKING", True)
        if dry_run or not settings.remotes:
            # Nothing connects over SSH, a missing known_hosts is not fatal
            strict = False

        return cls.from_settings(
            settings,
            host_keys=HostKeyVerifier(
                known_hosts_path=os.getenv("NETTEST_KNOWN_HOSTS"),
                strict_checking=strict,
            ),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        host_keys: HostKeyVerifier | None = None,
    ) -> "Config":
        """Create config from already parsed settings.

        Args:
            settings: Parsed settings
            host_keys: Known_hosts policy, or None to skip verification

        Returns:
            Configured instance
        """
        local = Node(
            address=settings.local_address,
            role=NodeRole.LOCAL,
            user=settings.ssh_user,
        )
        remotes = tuple(
            parse_remote(spec, settings.ssh_user, settings.ssh_identity)
            for spec in settings.remotes
        )
        catalog = load_catalog(settings.catalog_path)
        exclusions = ExclusionList(
            settings.exclusions_path,
            known_hosts={entry.host for entry in catalog},
        )

        if not remotes:
            logger.warning("No remote nodes configured (set NETTEST_REMOTES)")

        return cls(
            settings=settings,
            local=local,
            remotes=remotes,
            catalog=catalog,
            exclusions=exclusions,
            host_keys=host_keys,
        )

    @staticmethod
    def _get_bool_env(key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() != "false"

    def reload_exclusions(self) -> frozenset[str]:
        """Re-read the exclusion file.

        Returns:
            The reloaded set of excluded hostnames
        """
        hosts = self.exclusions.reload()
        logger.info(
            "Configuration reloaded: %d excluded server(s) from %s",
            len(hosts),
            self.exclusions.path,
        )
        return hosts

    @property
    def iperf_port(self) -> int:
        return self.settings.iperf_port

    @property
    def test_duration(self) -> int:
        return self.settings.test_duration

    @property
    def max_retries(self) -> int:
        return self.settings.max_retries

    @property
    def known_hosts_path(self) -> str | None:
        """Path to known_hosts file or None if disabled."""
        if self.host_keys is None:
            return None
        return self.host_keys.get_known_hosts_path()

    @property
    def strict_host_key_checking(self) -> bool:
        """Whether to reject unknown host keys."""
        if self.host_keys is None:
            return False
        return self.host_keys.strict_checking
