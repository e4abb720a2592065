"""Command execution data models."""

from dataclasses import dataclass


@dataclass
class CommandResult:
    """Result of a command execution on a node."""

    returncode: int
    output: str = ""
    error: str = ""
    elapsed: float = 0.0

    @property
    def success(self) -> bool:
        """Whether the command exited with status 0."""
        return self.returncode == 0
