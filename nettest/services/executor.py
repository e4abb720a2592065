"""Privileged command execution on local and remote nodes."""

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from nettest.models import CommandResult
from nettest.services.connection import get_connection_with_retry
from nettest.utils.shell import sudo_wrap

if TYPE_CHECKING:
    from nettest.models import Node
    from nettest.services.pool import ConnectionPool

logger = logging.getLogger(__name__)

TIMEOUT_RETURNCODE = 124


def _decode(data: str | bytes | None) -> str:
    """Normalize command output to text."""
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class CommandExecutor:
    """Runs commands on nodes with elevated privilege.

    Remote nodes are reached over pooled SSH connections; the local node
    runs commands through a shell subprocess. Failures are returned as-is,
    retrying is the caller's concern. In dry-run mode nothing is executed
    and every call reports success.
    """

    def __init__(
        self,
        pool: "ConnectionPool",
        local_sudo: str = "sudo -A",
        remote_sudo: str = "sudo -n",
        timeout: float = 60,
        dry_run: bool = False,
    ) -> None:
        self.pool = pool
        self.local_sudo = local_sudo
        self.remote_sudo = remote_sudo
        self.timeout = timeout
        self.dry_run = dry_run

    async def execute(
        self,
        node: "Node",
        command: str,
        privileged: bool = True,
    ) -> CommandResult:
        """Execute a command on a node.

        Args:
            node: Node to run on
            command: Shell command text
            privileged: Prefix with the node's sudo command

        Returns:
            CommandResult with output, error text, exit status and elapsed time

        Raises:
            RemoteConnectionError: If a remote node cannot be reached
        """
        if privileged:
            sudo = self.local_sudo if node.is_local else self.remote_sudo
            full_command = sudo_wrap(command, sudo)
        else:
            full_command = command

        if self.dry_run:
            logger.info("Dry-run: would execute on %s: %s", node.label, full_command)
            return CommandResult(returncode=0)

        logger.debug("Executing on %s: %s", node.label, full_command)
        started = time.monotonic()
        if node.is_local:
            result = await self._run_local(full_command)
        else:
            result = await self._run_remote(node, full_command)
        result.elapsed = time.monotonic() - started

        if not result.success:
            logger.debug(
                "Command on %s exited %d: %s",
                node.label,
                result.returncode,
                result.error.strip() or result.output.strip(),
            )
        return result

    async def _run_local(self, command: str) -> CommandResult:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            return CommandResult(
                returncode=TIMEOUT_RETURNCODE,
                error=f"Timed out after {self.timeout}s",
            )

        return CommandResult(
            returncode=process.returncode if process.returncode is not None else 1,
            output=_decode(stdout),
            error=_decode(stderr),
        )

    async def _run_remote(self, node: "Node", command: str) -> CommandResult:
        conn = await get_connection_with_retry(self.pool, node)
        try:
            result = await asyncio.wait_for(
                conn.run(command, check=False), timeout=self.timeout
            )
        except TimeoutError:
            return CommandResult(
                returncode=TIMEOUT_RETURNCODE,
                error=f"Timed out after {self.timeout}s",
            )

        returncode = result.returncode
        if returncode is None:
            # Remote side closed without an exit status (signal or reset)
            returncode = 1

        return CommandResult(
            returncode=returncode,
            output=_decode(result.stdout),
            error=_decode(result.stderr),
        )
