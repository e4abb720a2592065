"""Node data models."""

from dataclasses import dataclass
from enum import Enum


class NodeRole(str, Enum):
    """Role a node plays in a run."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class Node:
    """A host participating in throughput tests."""

    address: str
    role: NodeRole = NodeRole.REMOTE
    user: str = "root"
    port: int = 22
    identity_file: str | None = None

    @property
    def is_local(self) -> bool:
        """Whether commands for this node run on this machine."""
        return self.role is NodeRole.LOCAL

    @property
    def label(self) -> str:
        """Human readable label used in log messages."""
        kind = "Main" if self.is_local else "Remote"
        return f"{kind} ({self.address})"

    def __str__(self) -> str:
        return self.address
