"""Bidirectional tests between the local node and each remote node."""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from nettest.models import PairResult
from nettest.services.retry import OperationError

if TYPE_CHECKING:
    from nettest.models import Node
    from nettest.services.iperf import ThroughputTester
    from nettest.services.retry import RetryEngine

logger = logging.getLogger(__name__)

Checkpoint = Callable[[], None]

MAIN_TO_REMOTE = "main_to_remote"
REMOTE_TO_MAIN = "remote_to_main"


class PairwiseTestRunner:
    """Runs local->remote and remote->local tests for every remote node.

    Tests run strictly one after another so no two tests share the link.
    """

    def __init__(
        self,
        tester: "ThroughputTester",
        retry: "RetryEngine",
        port: int = 42069,
    ) -> None:
        self.tester = tester
        self.retry = retry
        self.port = port

    async def run(
        self,
        local: "Node",
        remotes: "tuple[Node, ...] | list[Node]",
        checkpoint: Checkpoint | None = None,
    ) -> list[PairResult]:
        """Test every remote in both directions.

        Args:
            local: The local node, running an iperf3 server
            remotes: Remote nodes, each running an iperf3 server
            checkpoint: Called before each test; raises to stop the run

        Returns:
            One PairResult per direction per remote, in execution order

        Raises:
            RetryExhaustedError: If a test keeps failing after all retries
        """
        results: list[PairResult] = []
        for remote in remotes:
            if checkpoint is not None:
                checkpoint()
            results.append(await self.test_direction(local, remote, MAIN_TO_REMOTE))

            if checkpoint is not None:
                checkpoint()
            results.append(await self.test_direction(remote, local, REMOTE_TO_MAIN))
        return results

    async def test_direction(
        self, client: "Node", server: "Node", direction: str
    ) -> PairResult:
        """Run one directional test, retried with the same test on failure."""
        remote = server if client.is_local else client
        logger.info(
            "Starting iperf test from %s to %s...", client.label, server.label
        )

        async def run_test() -> None:
            result = await self.tester.run(client, server.address, self.port)
            if not result.success:
                raise OperationError(
                    f"iperf test from {client.label} to {server.label} failed",
                    code=result.returncode,
                    command=result.command,
                    output=result.report,
                )
            logger.info(
                "Test %s -> %s passed (%s)", client, server, result.summary
            )

        outcome = await self.retry.with_retry(
            f"run_test_{direction}[{remote}]", run_test, retry_action=run_test
        )
        return PairResult(
            remote=remote.address,
            direction=direction,
            success=True,
            retries=outcome.retries,
        )
