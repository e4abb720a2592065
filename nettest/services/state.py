"""Run state shared between the controller and the running operations."""

import logging

logger = logging.getLogger(__name__)


class RunInterrupted(Exception):
    """The run was asked to stop before the next operation."""


class RunState:
    """Stop/restart flags flipped by the controller's event handling.

    Operations call checkpoint() before starting; an in-flight operation is
    never cancelled.
    """

    def __init__(self) -> None:
        self.stop_requested = False
        self.restart_requested = False
        self.reason: str | None = None

    def request_stop(self, reason: str) -> None:
        if not self.stop_requested:
            logger.warning("Stop requested: %s", reason)
        self.stop_requested = True
        self.reason = self.reason or reason

    def request_restart(self) -> None:
        self.restart_requested = True
        self.request_stop("restart requested")

    def checkpoint(self) -> None:
        """Raise RunInterrupted if a stop was requested.

        Raises:
            RunInterrupted: If no further operation may start
        """
        if self.stop_requested:
            raise RunInterrupted(self.reason or "stop requested")
