"""iperf3 server lifecycle on local and remote nodes.

start -> verify -> (tests use the server) -> stop. Every node has at most
one tracked server; starting again kills the stale instance first.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from nettest.models import ServerProcessHandle, ServerState
from nettest.services.retry import OperationError

if TYPE_CHECKING:
    from nettest.models import Node
    from nettest.services.executor import CommandExecutor
    from nettest.services.retry import RetryEngine

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

PID_PATTERN = re.compile(r"^\s*(\d+)\s*$", re.MULTILINE)


def process_pattern(port: int) -> str:
    """pkill/pgrep pattern for the server on ``port``.

    The bracket keeps the pattern from matching the ``sh -c`` wrapper
    whose own command line contains it.
    """
    return f"[i]perf3 -s -p {port}"


class ServerManager:
    """Starts, verifies and stops iperf3 servers, tracking them by handle."""

    def __init__(
        self,
        executor: "CommandExecutor",
        retry: "RetryEngine",
        port: int = 42069,
        settle_delay: float = 2.0,
        sleep: SleepFunc | None = None,
    ) -> None:
        self.executor = executor
        self.retry = retry
        self.port = port
        self.settle_delay = settle_delay
        self._sleep = sleep or asyncio.sleep
        self._handles: dict[str, ServerProcessHandle] = {}

    @property
    def handles(self) -> list[ServerProcessHandle]:
        """Tracked handles, in start order."""
        return list(self._handles.values())

    def get_handle(self, node: "Node") -> ServerProcessHandle | None:
        return self._handles.get(node.address)

    async def _kill_stale(self, node: "Node") -> None:
        # Sent alone: a command line that also held the launch text would
        # match the pattern and pkill its own shell
        command = f"pkill -f '{process_pattern(self.port)}'"
        result = await self.executor.execute(node, command)
        # pkill exits 1 when nothing matched
        if result.returncode not in (0, 1):
            raise OperationError(
                f"Could not clear stale iperf server on {node.label}",
                code=result.returncode,
                command=command,
                output=result.error,
            )

    async def start(self, node: "Node") -> ServerProcessHandle:
        """Kill any stale server on the node and launch a fresh detached one.

        Returns:
            Handle in STARTING state

        Raises:
            OperationError: If the stale server cannot be killed or the launch fails
        """
        logger.info("Starting iperf server on %s...", node.label)
        command = (
            f"nohup iperf3 -s -p {self.port} > /dev/null 2>&1 < /dev/null & echo $!"
        )

        previous = self._handles.get(node.address)
        if previous is not None and not previous.is_stopped:
            logger.debug("Replacing stale server handle on %s", node.label)
            previous.state = ServerState.STOPPED

        handle = ServerProcessHandle(node=node, port=self.port)
        self._handles[node.address] = handle

        try:
            await self._kill_stale(node)
        except OperationError:
            handle.state = ServerState.FAILED
            raise

        result = await self.executor.execute(node, command)
        if not result.success:
            handle.state = ServerState.FAILED
            raise OperationError(
                f"Could not start iperf server on {node.label}",
                code=result.returncode,
                command=command,
                output=result.error,
            )

        match = PID_PATTERN.search(result.output)
        handle.pid = int(match.group(1)) if match else None
        return handle

    async def verify(self, handle: ServerProcessHandle) -> bool:
        """Check once, after the settle delay, that the server process exists."""
        await self._sleep(self.settle_delay)
        command = f"pgrep -f '{process_pattern(handle.port)}'"
        result = await self.executor.execute(handle.node, command)

        if result.success:
            handle.state = ServerState.VERIFIED
            return True

        handle.state = ServerState.FAILED
        return False

    async def start_and_verify(self, node: "Node") -> ServerProcessHandle:
        """Start and verify a server, retrying the whole sequence on failure.

        Local and remote nodes are treated alike: a verification failure is
        retried and becomes fatal once retries are exhausted.

        Raises:
            RetryExhaustedError: If the server never comes up
        """
        handles: list[ServerProcessHandle] = []

        async def attempt() -> None:
            handle = await self.start(node)
            handles.append(handle)
            if not await self.verify(handle):
                raise OperationError(
                    f"iperf server not running on {node.label}",
                    command=f"pgrep -f '{process_pattern(self.port)}'",
                )

        await self.retry.with_retry(
            f"start_iperf_server[{node}]", attempt, retry_action=attempt
        )

        handle = handles[-1]
        handle.state = ServerState.RUNNING
        if handle.pid is not None:
            logger.info(
                "Iperf server started successfully on %s with PID %d",
                node.label,
                handle.pid,
            )
        else:
            logger.info("Iperf server started successfully on %s", node.label)
        return handle

    def _stop_command(self, handle: ServerProcessHandle) -> str:
        if handle.node.is_local and handle.pid is not None:
            return f"kill {handle.pid}"
        return f"pkill -f '{process_pattern(handle.port)}'"

    async def _kill(self, handle: ServerProcessHandle) -> None:
        command = self._stop_command(handle)
        result = await self.executor.execute(handle.node, command)
        # pkill exits 1 when nothing matched: the server is already gone
        if result.success or (result.returncode == 1 and command.startswith("pkill")):
            handle.state = ServerState.STOPPED
            return
        raise OperationError(
            f"Could not stop iperf server on {handle.node.label}",
            code=result.returncode,
            command=command,
            output=result.error,
        )

    async def stop(self, handle: ServerProcessHandle) -> None:
        """Stop a tracked server; no-op if already stopped.

        Raises:
            RetryExhaustedError: If the server cannot be stopped
        """
        if handle.is_stopped:
            return

        logger.info("Stopping iperf server on %s...", handle.node.label)

        async def kill() -> None:
            await self._kill(handle)

        await self.retry.with_retry(
            f"stop_iperf_server[{handle.node}]", kill, retry_action=kill
        )

    async def stop_all(self) -> int:
        """Best-effort stop of every tracked server that is not stopped.

        Failures are logged and do not propagate.

        Returns:
            Number of servers a kill was attempted for
        """
        attempted = 0
        for handle in self.handles:
            if handle.is_stopped:
                continue
            attempted += 1
            try:
                await self._kill(handle)
            except Exception as e:
                logger.error(
                    "Failed to stop iperf server on %s during cleanup: %s",
                    handle.node.label,
                    e,
                )
        return attempted
