"""Process lifecycle: startup validation, signals, cleanup and restart.

Signals are turned into ControlEvents on a queue and handled by a single
consumer task on the run's event loop, so handlers never re-enter the
running operation; they only flip RunState flags or reload configuration.
"""

import asyncio
import contextlib
import logging
import os
import shutil
import signal
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from nettest.models import RunReport
from nettest.orchestrator import Orchestrator
from nettest.services.retry import FatalError
from nettest.services.state import RunInterrupted
from nettest.utils.console import attach_log_files, detach_log_files

if TYPE_CHECKING:
    from nettest.dependencies import Dependencies

logger = logging.getLogger(__name__)

REQUIRED_TOOLS: tuple[str, ...] = ("iperf3", "sudo")
LOG_FILE_MODE = 0o600
BROKEN_PIPE_CODE = 141


class ControlEvent(str, Enum):
    """External triggers consumed by the controller."""

    INTERRUPT = "interrupt"
    BROKEN_PIPE = "broken_pipe"
    RELOAD = "reload"
    RESTART = "restart"


SIGNAL_EVENTS: dict[signal.Signals, ControlEvent] = {
    signal.SIGINT: ControlEvent.INTERRUPT,
    signal.SIGTERM: ControlEvent.INTERRUPT,
    signal.SIGPIPE: ControlEvent.BROKEN_PIPE,
    signal.SIGHUP: ControlEvent.RESTART,
    signal.SIGUSR1: ControlEvent.RELOAD,
}


class StartupError(FatalError):
    """The environment cannot support a run."""


@dataclass
class RunOutcome:
    """Final result of a controlled run."""

    exit_code: int
    restart: bool = False
    report: RunReport | None = None


def ensure_log_file(path: Path | str) -> Path:
    """Make sure a log file exists and is writable.

    Missing files (and their directories) are created with mode 0600.

    Raises:
        StartupError: If the file cannot be created or written
    """
    log_path = Path(path)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if not log_path.exists():
            log_path.touch(mode=LOG_FILE_MODE)
    except OSError as e:
        raise StartupError(f"Cannot create log file {log_path}: {e}") from e

    if not os.access(log_path, os.W_OK):
        raise StartupError(f"Log file is not writable: {log_path}")
    return log_path


class Controller:
    """Owns a run from startup validation to cleanup."""

    def __init__(
        self,
        deps: "Dependencies",
        required_tools: tuple[str, ...] = REQUIRED_TOOLS,
    ) -> None:
        self.deps = deps
        self.required_tools = required_tools
        self.state = deps.state
        self.events: asyncio.Queue[ControlEvent] = asyncio.Queue()
        self._cleaned_up = False
        self._log_handlers: list[logging.Handler] = []
        self._installed_signals: list[signal.Signals] = []

    def post(self, event: ControlEvent) -> None:
        """Queue an event; safe to call from a signal handler."""
        self.events.put_nowait(event)

    def handle_event(self, event: ControlEvent) -> None:
        """Apply the state transition for one event."""
        if event is ControlEvent.INTERRUPT:
            logger.warning("Script terminated prematurely")
            self.state.request_stop("interrupted")
        elif event is ControlEvent.BROKEN_PIPE:
            self.deps.retry.report("SIGPIPE received", BROKEN_PIPE_CODE)
        elif event is ControlEvent.RELOAD:
            self.deps.config.reload_exclusions()
        elif event is ControlEvent.RESTART:
            logger.warning("Restart requested, finishing current operation")
            self.state.request_restart()

    async def _consume_events(self) -> None:
        while True:
            event = await self.events.get()
            self.handle_event(event)

    def _drain_events(self) -> None:
        while not self.events.empty():
            self.handle_event(self.events.get_nowait())

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig, event in SIGNAL_EVENTS.items():
            try:
                loop.add_signal_handler(sig, self.post, event)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug("Cannot handle %s on this platform", sig.name)
                continue
            self._installed_signals.append(sig)

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        # remove_signal_handler() leaves SIGPIPE at SIG_DFL; Python starts with it ignored
        if signal.SIGPIPE in self._installed_signals:
            signal.signal(signal.SIGPIPE, signal.SIG_IGN)
        self._installed_signals.clear()

    def validate_environment(self) -> None:
        """Check required tools and log files, then attach the file logs.

        Raises:
            StartupError: If a tool is missing or a log path is unusable
        """
        missing = [tool for tool in self.required_tools if shutil.which(tool) is None]
        if missing:
            if self.deps.dry_run:
                logger.warning("Dry-run: missing required tools: %s", ", ".join(missing))
            else:
                raise StartupError(f"Missing required tools: {', '.join(missing)}")

        settings = self.deps.config.settings
        run_log = ensure_log_file(settings.run_log)
        error_log = ensure_log_file(settings.error_log)
        self._log_handlers = attach_log_files(run_log, error_log)
        logger.info("Run log: %s, error log: %s", run_log, error_log)

    async def verify_privileges(self) -> None:
        """Check that sudo works on the local node without a prompt.

        Raises:
            StartupError: If sudo verification fails
        """
        result = await self.deps.executor.execute(self.deps.config.local, "true")
        if not result.success:
            raise StartupError(
                f"sudo verification failed (exit {result.returncode}): "
                f"{result.error.strip()}"
            )

    async def cleanup(self) -> None:
        """Stop leftover servers and close connections; runs only once.

        Never raises.
        """
        if self._cleaned_up:
            return
        self._cleaned_up = True

        stopped = await self.deps.servers.stop_all()
        if stopped:
            logger.info("Stopped %d leftover iperf server(s)", stopped)

        try:
            await self.deps.cleanup()
        except Exception as e:
            logger.warning("Error closing connections during cleanup: %s", e)

        logger.info("Cleanup completed")
        detach_log_files(self._log_handlers)
        self._log_handlers = []

    async def run(self) -> RunOutcome:
        """Validate, run every test, and always clean up.

        Returns:
            RunOutcome with exit code 0 on success, 1 otherwise
        """
        loop = asyncio.get_running_loop()
        self.install_signal_handlers(loop)
        consumer = asyncio.create_task(self._consume_events())

        exit_code = 1
        report: RunReport | None = None
        try:
            self.validate_environment()
            if self.deps.dry_run:
                logger.info("Dry-run mode enabled. No commands will be executed.")
            await self.verify_privileges()
            report = await Orchestrator(self.deps, self.state).run()
            self.state.checkpoint()
            exit_code = 0
        except RunInterrupted as e:
            logger.warning("Run stopped: %s", e)
        except FatalError as e:
            logger.critical("Fatal error: %s", e)
        finally:
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
            self._drain_events()
            if self.state.stop_requested:
                exit_code = 1
            self.remove_signal_handlers(loop)
            await self.cleanup()

        return RunOutcome(
            exit_code=exit_code,
            restart=self.state.restart_requested,
            report=report,
        )
