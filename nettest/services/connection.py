"""SSH connection helper with automatic retry."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncssh

    from nettest.models import Node
    from nettest.services.pool import ConnectionPool

logger = logging.getLogger(__name__)


class RemoteConnectionError(Exception):
    """Failed to establish SSH connection after retry."""

    def __init__(self, host_name: str, original_error: Exception):
        """Initialize connection error.

        Args:
            host_name: Address of the remote node
            original_error: Original exception that caused the failure
        """
        self.host_name = host_name
        self.original_error = original_error
        super().__init__(f"Cannot connect to {host_name}: {original_error}")


async def get_connection_with_retry(
    pool: "ConnectionPool",
    node: "Node",
) -> "asyncssh.SSHClientConnection":
    """Get SSH connection with a one-time reconnect on failure.

    A failed first attempt drops the pooled connection for the node and
    connects once more.

    Args:
        pool: Connection pool to draw from
        node: Remote node

    Returns:
        Active SSH connection

    Raises:
        RemoteConnectionError: If connection fails after retry
    """
    try:
        return await pool.get_connection(node)
    except Exception as first_error:
        logger.warning(
            "Connection to %s failed: %s, retrying after cleanup",
            node.address,
            first_error,
        )
        try:
            await pool.remove_connection(node.address)
            conn = await pool.get_connection(node)
            logger.info("Retry connection to %s succeeded", node.address)
            return conn
        except Exception as retry_error:
            logger.error(
                "Retry connection to %s failed: %s",
                node.address,
                retry_error,
            )
            raise RemoteConnectionError(node.address, retry_error) from retry_error
