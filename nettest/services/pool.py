"""SSH connection reuse for remote nodes.

One connection per remote node, opened lazily and reused for every command
of the run. All access happens from the single control task, so no locking
is needed.
"""

import logging
from typing import TYPE_CHECKING

import asyncssh

from nettest.models.ssh import PooledConnection

if TYPE_CHECKING:
    from nettest.models import Node

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Per-node SSH connections."""

    def __init__(
        self,
        known_hosts: str | None = None,
        strict_host_key_checking: bool = True,
        connect_timeout: float = 10.0,
    ) -> None:
        """Initialize the pool.

        Args:
            known_hosts: Path to known_hosts file, or None to disable verification
            strict_host_key_checking: Whether to reject unknown host keys
            connect_timeout: Seconds allowed for the SSH handshake
        """
        self._connections: dict[str, PooledConnection] = {}
        self._known_hosts = known_hosts
        self._strict_host_key = strict_host_key_checking
        self._connect_timeout = connect_timeout

        if self._known_hosts is None:
            logger.warning(
                "SSH host key verification DISABLED. "
                "Set NETTEST_KNOWN_HOSTS to a valid known_hosts file path."
            )

    async def _connect(
        self, node: "Node", known_hosts: str | None
    ) -> asyncssh.SSHClientConnection:
        client_keys = [node.identity_file] if node.identity_file else None
        return await asyncssh.connect(
            node.address,
            port=node.port,
            username=node.user,
            known_hosts=known_hosts,
            client_keys=client_keys,
            connect_timeout=self._connect_timeout,
        )

    async def get_connection(self, node: "Node") -> asyncssh.SSHClientConnection:
        """Get or create a connection to the node."""
        pooled = self._connections.get(node.address)

        if pooled and not pooled.is_stale:
            pooled.touch()
            logger.debug("Reusing existing connection to %s", node.address)
            return pooled.connection

        if pooled and pooled.is_stale:
            logger.info(
                "Connection to %s is stale, creating new connection",
                node.address,
            )

        logger.info(
            "Opening SSH connection to %s@%s:%d",
            node.user,
            node.address,
            node.port,
        )

        try:
            conn = await self._connect(node, self._known_hosts)
        except asyncssh.HostKeyNotVerifiable as e:
            if self._strict_host_key:
                logger.error(
                    "Host key verification failed for %s: %s. "
                    "Add the host key to %s or set "
                    "NETTEST_STRICT_HOST_KEY_CHECKING=false",
                    node.address,
                    e,
                    self._known_hosts,
                )
                raise
            logger.warning(
                "Host key not verified for %s (strict mode disabled): %s",
                node.address,
                e,
            )
            conn = await self._connect(node, None)

        self._connections[node.address] = PooledConnection(connection=conn)
        logger.info(
            "SSH connection established to %s (pool_size=%d)",
            node.address,
            len(self._connections),
        )
        return conn

    async def remove_connection(self, address: str) -> None:
        """Close and forget the connection to a node.

        Args:
            address: Address of the node to remove.
        """
        pooled = self._connections.pop(address, None)
        if pooled is None:
            logger.debug("No connection to remove for %s (not in pool)", address)
            return

        logger.info(
            "Removing connection to %s (pool_size=%d)",
            address,
            len(self._connections),
        )
        pooled.connection.close()
        await pooled.connection.wait_closed()

    async def close_all(self) -> None:
        """Close all connections."""
        addresses = self.active_hosts
        if addresses:
            logger.info("Closing all %d connection(s)", len(addresses))
        for address in addresses:
            await self.remove_connection(address)

    @property
    def pool_size(self) -> int:
        """Return the current number of connections in the pool."""
        return len(self._connections)

    @property
    def active_hosts(self) -> list[str]:
        """Return addresses with open connections."""
        return list(self._connections)
