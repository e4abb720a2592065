"""Outcome records produced by a run."""

from dataclasses import dataclass, field

from nettest.models.catalog import CascadeAttempt


@dataclass
class ThroughputResult:
    """Outcome of one iperf3 client run."""

    success: bool
    report: str = ""
    sender: str | None = None
    receiver: str | None = None
    returncode: int = 0
    command: str = ""

    @property
    def summary(self) -> str:
        """Short bitrate summary, if iperf3 reported one."""
        parts = []
        if self.sender:
            parts.append(f"sender {self.sender}")
        if self.receiver:
            parts.append(f"receiver {self.receiver}")
        return ", ".join(parts) or "no bitrate reported"


@dataclass
class PairResult:
    """Outcome of one directional test against a remote."""

    remote: str
    direction: str
    success: bool
    retries: int = 0


@dataclass
class AttemptResult:
    """Outcome of one cascade attempt."""

    attempt: CascadeAttempt
    success: bool = False
    endpoint: tuple[str, int] | None = None
    skipped: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)


@dataclass
class CascadeResult:
    """Outcome of the whole external cascade."""

    attempts: list[AttemptResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return any(a.success for a in self.attempts)

    @property
    def winner(self) -> AttemptResult | None:
        """The attempt that succeeded, if any."""
        for attempt in self.attempts:
            if attempt.success:
                return attempt
        return None


@dataclass
class RunReport:
    """Everything a completed run produced."""

    pairs: list[PairResult] = field(default_factory=list)
    cascade: CascadeResult | None = None
