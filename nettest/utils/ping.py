"""TCP reachability checks for iperf3 endpoints."""

import asyncio
import logging
import socket
from collections.abc import Iterable

logger = logging.getLogger(__name__)


async def check_port_open(
    hostname: str,
    port: int,
    timeout: float = 5.0,
    family: int = socket.AF_UNSPEC,
) -> bool:
    """Check if a host accepts TCP connections on a port.

    Args:
        hostname: Host to check.
        port: Port to connect to.
        timeout: Connection timeout in seconds.
        family: Address family to force (AF_INET or AF_INET6).

    Returns:
        True if the connection was accepted, False otherwise.
    """
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(hostname, port, family=family),
            timeout=timeout,
        )
        writer.close()
        await writer.wait_closed()
        return True
    except (TimeoutError, OSError):
        return False


async def find_open_port(
    hostname: str,
    ports: Iterable[int],
    timeout: float = 5.0,
    family: int = socket.AF_UNSPEC,
) -> int | None:
    """Scan ports in order and return the first that accepts a connection.

    Args:
        hostname: Host to scan.
        ports: Ports to try, in scan order.
        timeout: Per-port connection timeout in seconds.
        family: Address family to force.

    Returns:
        The first open port, or None if none accepted.
    """
    for port in ports:
        if await check_port_open(hostname, port, timeout=timeout, family=family):
            logger.debug("%s:%d accepts connections", hostname, port)
            return port
        logger.debug("%s:%d not reachable", hostname, port)
    return None
