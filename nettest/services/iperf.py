"""iperf3 client invocation and report parsing."""

import logging
import re
from typing import TYPE_CHECKING

from nettest.models import ThroughputResult, Transport
from nettest.utils.shell import quote_arg

if TYPE_CHECKING:
    from nettest.models import Node
    from nettest.services.executor import CommandExecutor

logger = logging.getLogger(__name__)

# "[  5]   0.00-10.00  sec  1.09 GBytes   938 Mbits/sec    0   sender"
SUMMARY_PATTERN = re.compile(
    r"(?P<bitrate>\d+(?:\.\d+)?\s+[KMG]?bits/sec).*?\b(?P<role>sender|receiver)\s*$",
    re.MULTILINE,
)


def build_client_command(
    target: str,
    port: int,
    duration: int,
    transport: Transport | None = None,
    reverse: bool = False,
) -> str:
    """Build an iperf3 client command line.

    Args:
        target: Server host or address
        port: Server port
        duration: Test length in seconds
        transport: Force IPv4 or IPv6, or None for the system default
        reverse: Server sends, client receives (-R)

    Returns:
        Command text
    """
    parts = ["iperf3", "-c", quote_arg(target), "-p", str(port), "-t", str(duration)]
    if transport is not None:
        parts.append(transport.flag)
    if reverse:
        parts.append("-R")
    return " ".join(parts)


def parse_report(report: str) -> tuple[str | None, str | None]:
    """Extract sender and receiver bitrates from iperf3 text output.

    Returns:
        (sender bitrate, receiver bitrate); None where not reported
    """
    found: dict[str, str] = {}
    for match in SUMMARY_PATTERN.finditer(report):
        found[match.group("role")] = match.group("bitrate")
    return found.get("sender"), found.get("receiver")


class ThroughputTester:
    """Runs iperf3 clients on nodes through the command executor."""

    def __init__(self, executor: "CommandExecutor", duration: int = 10) -> None:
        self.executor = executor
        self.duration = duration

    async def run(
        self,
        source: "Node",
        target: str,
        port: int,
        transport: Transport | None = None,
        reverse: bool = False,
    ) -> ThroughputResult:
        """Run one fixed-duration test from ``source`` against ``target``.

        The local client runs unprivileged; remote clients go through sudo
        like every other remote command.

        Raises:
            RemoteConnectionError: If a remote source cannot be reached
        """
        command = build_client_command(
            target, port, self.duration, transport=transport, reverse=reverse
        )
        result = await self.executor.execute(
            source, command, privileged=not source.is_local
        )
        report = result.output or result.error
        sender, receiver = parse_report(result.output)

        if result.success:
            logger.info("iperf3 %s -> %s:%d: %s", source, target, port, report.rstrip())
        else:
            logger.warning(
                "iperf3 %s -> %s:%d failed (exit %d): %s",
                source,
                target,
                port,
                result.returncode,
                report.strip(),
            )

        return ThroughputResult(
            success=result.success,
            report=report,
            sender=sender,
            receiver=receiver,
            returncode=result.returncode,
            command=command,
        )
