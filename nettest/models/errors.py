"""Error context recorded for failed operations."""

from dataclasses import dataclass


@dataclass
class ErrorContext:
    """Diagnostic context for a failed operation."""

    operation: str
    code: int
    hint: str
    command: str | None = None
    retry_count: int = 0
    backtrace: str = ""

    def summary(self) -> str:
        """One-line description for logs."""
        text = f"Error in '{self.operation}': code {self.code} ({self.hint})"
        if self.command:
            text += f" while running: {self.command}"
        return text
