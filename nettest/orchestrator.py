"""Run sequence: servers up, pairwise tests, external cascade, servers down."""

import logging
from typing import TYPE_CHECKING

from nettest.models import RunReport

if TYPE_CHECKING:
    from nettest.dependencies import Dependencies
    from nettest.services.state import RunState

logger = logging.getLogger(__name__)


class Orchestrator:
    """Drives one complete measurement run."""

    def __init__(self, deps: "Dependencies", state: "RunState") -> None:
        self.deps = deps
        self.state = state

    async def run(self) -> RunReport:
        """Execute the run.

        Servers are stopped only after every test that uses them finished.
        On error, stopping is left to the controller's cleanup.

        Raises:
            RunInterrupted: If a stop was requested between operations
            RetryExhaustedError: If an internal operation could not recover
        """
        config = self.deps.config
        servers = self.deps.servers
        checkpoint = self.state.checkpoint
        report = RunReport()

        logger.info("Starting and verifying iperf servers on remote machines...")
        for remote in config.remotes:
            checkpoint()
            await servers.start_and_verify(remote)

        checkpoint()
        await servers.start_and_verify(config.local)

        report.pairs = await self.deps.pairwise.run(
            config.local, config.remotes, checkpoint
        )

        checkpoint()
        report.cascade = await self.deps.cascade.run(checkpoint)
        if not report.cascade.success:
            logger.warning("External connectivity test failed; continuing")

        logger.info("Stopping iperf servers...")
        local_handle = servers.get_handle(config.local)
        if local_handle is not None:
            await servers.stop(local_handle)
        for remote in config.remotes:
            handle = servers.get_handle(remote)
            if handle is not None:
                await servers.stop(handle)

        self._log_summary(report)
        logger.info("Network tests completed.")
        return report

    def _log_summary(self, report: RunReport) -> None:
        for pair in report.pairs:
            logger.info(
                "%-16s %-15s %s%s",
                pair.remote,
                pair.direction,
                "PASS" if pair.success else "FAIL",
                f" (after {pair.retries} retries)" if pair.retries else "",
            )
        winner = report.cascade.winner if report.cascade else None
        if winner is not None and winner.endpoint is not None:
            host, port = winner.endpoint
            logger.info("external         %-15s PASS via %s:%d", winner.attempt, host, port)
        else:
            logger.info("external         %-15s FAIL", "all attempts")
