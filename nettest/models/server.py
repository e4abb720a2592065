"""Test server process tracking."""

from dataclasses import dataclass
from enum import Enum

from nettest.models.node import Node


class ServerState(str, Enum):
    """Lifecycle state of an iperf3 server process."""

    STARTING = "starting"
    VERIFIED = "verified"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass
class ServerProcessHandle:
    """Tracked identity of a running iperf3 server."""

    node: Node
    port: int
    pid: int | None = None
    state: ServerState = ServerState.STARTING

    @property
    def is_stopped(self) -> bool:
        """Whether the process is confirmed stopped."""
        return self.state is ServerState.STOPPED
