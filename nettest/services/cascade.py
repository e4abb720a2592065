"""External iperf3 server discovery with failover.

Attempts run in a fixed (direction, transport) order. Within one attempt:

    SELECT     first catalog entry not excluded that supports the transport
    PROBE      scan its port range; no open port skips the entry
    RUN        one test against host:port; success ends the cascade,
               failure excludes the host and goes back to SELECT
    EXHAUSTED  nothing left to run; next attempt with a fresh exclusion set

External connectivity is best-effort: an exhausted cascade is a warning.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from nettest.models import (
    CASCADE_ORDER,
    AttemptResult,
    CascadeAttempt,
    CascadeResult,
    ExternalServerEntry,
    Transport,
)
from nettest.services.connection import RemoteConnectionError
from nettest.utils.ping import find_open_port

if TYPE_CHECKING:
    from nettest.config.exclusions import ExclusionList
    from nettest.models import Node
    from nettest.services.iperf import ThroughputTester

logger = logging.getLogger(__name__)

Checkpoint = Callable[[], None]
PortScanner = Callable[..., Awaitable[int | None]]


class DiscoveryCascade:
    """Finds a reachable public server and runs one test against it."""

    def __init__(
        self,
        tester: "ThroughputTester",
        local: "Node",
        catalog: Iterable[ExternalServerEntry],
        exclusions: "ExclusionList | None" = None,
        probe_timeout: float = 5.0,
        attempts: tuple[CascadeAttempt, ...] = CASCADE_ORDER,
        dry_run: bool = False,
        scanner: PortScanner | None = None,
    ) -> None:
        self.tester = tester
        self.local = local
        self.catalog = tuple(catalog)
        self.exclusions = exclusions
        self.probe_timeout = probe_timeout
        self.attempts = attempts
        self.dry_run = dry_run
        self._scan = scanner or find_open_port

    def eligible(
        self, transport: Transport, failed: set[str]
    ) -> list[ExternalServerEntry]:
        """Catalog entries selectable for an attempt, in catalog order."""
        configured = self.exclusions.hosts if self.exclusions is not None else frozenset()
        return [
            entry
            for entry in self.catalog
            if entry.host not in failed
            and entry.host not in configured
            and entry.supports(transport)
        ]

    async def probe(
        self, entry: ExternalServerEntry, transport: Transport
    ) -> int | None:
        """Return the first port of the entry accepting connections."""
        if self.dry_run:
            logger.info(
                "Dry-run: would probe %s ports %d-%d over %s",
                entry.host,
                entry.port_start,
                entry.port_end,
                transport.value,
            )
            return entry.port_start

        return await self._scan(
            entry.host,
            entry.ports,
            timeout=self.probe_timeout,
            family=transport.family,
        )

    async def _select(
        self, attempt: CascadeAttempt, failed: set[str], result: AttemptResult
    ) -> tuple[ExternalServerEntry, int] | None:
        for entry in self.eligible(attempt.transport, failed):
            port = await self.probe(entry, attempt.transport)
            if port is not None:
                return entry, port
            logger.debug("No reachable port on %s, skipping", entry.host)
            if entry.host not in result.skipped:
                result.skipped.append(entry.host)
        return None

    async def run_attempt(
        self, attempt: CascadeAttempt, checkpoint: Checkpoint | None = None
    ) -> AttemptResult:
        """Run one (direction, transport) attempt until success or exhaustion."""
        result = AttemptResult(attempt=attempt)
        failed: set[str] = set()
        logger.info("External test attempt %s", attempt)

        while True:
            selected = await self._select(attempt, failed, result)
            if selected is None:
                logger.info("Attempt %s exhausted", attempt)
                return result

            entry, port = selected
            if checkpoint is not None:
                checkpoint()

            logger.info(
                "Testing against %s:%d (%s)", entry.host, port, attempt
            )
            try:
                test = await self.tester.run(
                    self.local,
                    entry.host,
                    port,
                    transport=attempt.transport,
                    reverse=attempt.direction.reversed,
                )
                success = test.success
            except (OSError, RemoteConnectionError) as e:
                logger.warning("Test against %s:%d errored: %s", entry.host, port, e)
                success = False

            if success:
                result.success = True
                result.endpoint = (entry.host, port)
                logger.info(
                    "External test succeeded against %s:%d (%s)",
                    entry.host,
                    port,
                    attempt,
                )
                return result

            logger.warning("Excluding %s for attempt %s", entry.host, attempt)
            failed.add(entry.host)
            result.excluded.append(entry.host)

    async def run(self, checkpoint: Checkpoint | None = None) -> CascadeResult:
        """Try each attempt in order, stopping at the first success."""
        cascade = CascadeResult()
        for attempt in self.attempts:
            if checkpoint is not None:
                checkpoint()
            attempt_result = await self.run_attempt(attempt, checkpoint)
            cascade.attempts.append(attempt_result)
            if attempt_result.success:
                return cascade

        logger.warning(
            "No external iperf3 server could be tested (%d attempts exhausted)",
            len(cascade.attempts),
        )
        return cascade
