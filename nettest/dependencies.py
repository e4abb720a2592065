"""Dependency injection container for nettest.

Wires every component of a run from one Config instead of module-level
globals.
"""

import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nettest.config import Config
from nettest.services.cascade import DiscoveryCascade
from nettest.services.executor import CommandExecutor
from nettest.services.iperf import ThroughputTester
from nettest.services.pairwise import PairwiseTestRunner
from nettest.services.pool import ConnectionPool
from nettest.services.retry import RetryEngine
from nettest.services.servers import ServerManager
from nettest.services.state import RunState


@dataclass
class Dependencies:
    """Container for the components of one run.

    Example:
        deps = Dependencies.create(Config.from_env(), dry_run=True)
        outcome = await Controller(deps).run()
    """

    config: Config
    pool: ConnectionPool
    executor: CommandExecutor
    retry: RetryEngine
    servers: ServerManager
    tester: ThroughputTester
    pairwise: PairwiseTestRunner
    cascade: DiscoveryCascade
    state: RunState
    dry_run: bool = False

    @classmethod
    def create(
        cls,
        config: Config,
        dry_run: bool = False,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ) -> "Dependencies":
        """Create dependencies from configuration.

        Args:
            config: Run configuration
            dry_run: Simulate every mutating action
            sleep: Awaitable sleep for backoff and settle delays
            rng: Source of backoff jitter

        Returns:
            Initialized Dependencies instance
        """
        settings = config.settings
        pool = ConnectionPool(
            known_hosts=config.known_hosts_path,
            strict_host_key_checking=config.strict_host_key_checking,
        )
        executor = CommandExecutor(
            pool,
            local_sudo=settings.local_sudo,
            remote_sudo=settings.remote_sudo,
            timeout=settings.command_timeout,
            dry_run=dry_run,
        )
        state = RunState()
        retry = RetryEngine(
            max_retries=config.max_retries,
            sleep=sleep,
            rng=rng,
            checkpoint=state.checkpoint,
        )
        servers = ServerManager(
            executor,
            retry,
            port=config.iperf_port,
            settle_delay=settings.settle_delay,
            sleep=sleep,
        )
        tester = ThroughputTester(executor, duration=config.test_duration)
        pairwise = PairwiseTestRunner(tester, retry, port=config.iperf_port)
        cascade = DiscoveryCascade(
            tester,
            config.local,
            config.catalog,
            exclusions=config.exclusions,
            probe_timeout=settings.probe_timeout,
            dry_run=dry_run,
        )
        return cls(
            config=config,
            pool=pool,
            executor=executor,
            retry=retry,
            servers=servers,
            tester=tester,
            pairwise=pairwise,
            cascade=cascade,
            state=state,
            dry_run=dry_run,
        )

    async def cleanup(self) -> None:
        """Close all SSH connections."""
        await self.pool.close_all()
