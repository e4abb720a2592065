"""Error classification and bounded retry with exponential backoff.

Every fallible operation of a run goes through RetryEngine.with_retry().
A failure is recorded with its context in the error log, then the retry
action (if any) is attempted up to max_retries times, sleeping
``randint(0, 4) + 2**attempt`` seconds before each attempt. When no retry
action exists or all retries fail, RetryExhaustedError is raised; the
controller turns it into cleanup and a non-zero exit.
"""

import asyncio
import logging
import random
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import NoReturn

import asyncssh

from nettest.models import ErrorContext
from nettest.services.connection import RemoteConnectionError

logger = logging.getLogger(__name__)
# Backtraces go to the error log only
error_logger = logging.getLogger("nettest.errors")

Operation = Callable[[], Awaitable[object]]
Checkpoint = Callable[[], None]
SleepFunc = Callable[[float], Awaitable[None]]

DEFAULT_MAX_RETRIES = 3
MAX_JITTER = 4

GENERAL_ERROR = 1

ERROR_HINTS: dict[int, str] = {
    1: "General error",
    2: "Misuse of shell builtins (bad invocation)",
    126: "Permission denied or command not executable",
    127: "Command not found",
    130: "Interrupted by user (Ctrl+C)",
}


def classify_error(code: int) -> str:
    """Map an exit code to a human-readable hint.

    Advisory only; the hint never changes retry behaviour.
    """
    return ERROR_HINTS.get(code, "Unknown error")


class OperationError(Exception):
    """A wrapped operation failed."""

    def __init__(
        self,
        message: str,
        code: int = GENERAL_ERROR,
        command: str | None = None,
        output: str = "",
    ):
        self.code = code
        self.command = command
        self.output = output
        super().__init__(message)


class FatalError(Exception):
    """Unrecoverable failure; the run must clean up and exit non-zero."""


class RetryExhaustedError(FatalError):
    """An operation failed and could not be recovered by retrying."""

    def __init__(self, context: ErrorContext):
        self.context = context
        super().__init__(
            f"{context.operation} failed after {context.retry_count} "
            f"retr{'y' if context.retry_count == 1 else 'ies'}: "
            f"code {context.code} ({context.hint})"
        )


@dataclass
class RetryOutcome:
    """How a wrapped operation ended up succeeding."""

    retries: int = 0
    context: ErrorContext | None = None

    @property
    def recovered(self) -> bool:
        """Whether success came from a retry."""
        return self.retries > 0


RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    OperationError,
    RemoteConnectionError,
    OSError,
    asyncssh.Error,
)


class RetryEngine:
    """Runs operations with error recording and bounded retries."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleep: SleepFunc | None = None,
        rng: random.Random | None = None,
        checkpoint: Checkpoint | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            max_retries: Default number of retry attempts per operation
            sleep: Awaitable sleep, replaceable in tests
            rng: Source of backoff jitter
            checkpoint: Called before every backoff and retry; raises to stop
        """
        self.max_retries = max_retries
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self._checkpoint = checkpoint

    def backoff(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return self._rng.randint(0, MAX_JITTER) + 2**attempt

    async def with_retry(
        self,
        operation_name: str,
        operation: Operation,
        retry_action: Operation | None = None,
        max_retries: int | None = None,
        command: str | None = None,
    ) -> RetryOutcome:
        """Run an operation, retrying on failure.

        Args:
            operation_name: Name used in logs and the error context
            operation: Zero-argument coroutine function to run
            retry_action: Coroutine function to run on each retry
            max_retries: Override of the engine's retry limit
            command: Command text reported when the failure has none

        Returns:
            RetryOutcome describing how many retries were needed

        Raises:
            RetryExhaustedError: If there is no retry action or every retry failed
            RunInterrupted: If the checkpoint stops the run before a retry
        """
        limit = self.max_retries if max_retries is None else max_retries

        try:
            await operation()
            return RetryOutcome()
        except RETRYABLE_ERRORS as e:
            context = self._record(operation_name, e, command)

        if retry_action is None:
            logger.error("No retry action for '%s'", operation_name)
            self._fail(context)

        for attempt in range(1, limit + 1):
            self._check()
            delay = self.backoff(attempt)
            logger.warning(
                "Retrying '%s' after error in %ds... Attempt %d/%d",
                operation_name,
                delay,
                attempt,
                limit,
            )
            await self._sleep(delay)
            self._check()
            context.retry_count = attempt

            try:
                await retry_action()
            except RETRYABLE_ERRORS as e:
                logger.warning(
                    "Retry %d/%d of '%s' failed: %s",
                    attempt,
                    limit,
                    operation_name,
                    e,
                )
                continue

            logger.info(
                "Retried '%s' successfully on attempt %d", operation_name, attempt
            )
            return RetryOutcome(retries=attempt, context=context)

        logger.error("All retries failed for '%s'", operation_name)
        self._fail(context)

    def _check(self) -> None:
        if self._checkpoint is not None:
            self._checkpoint()

    def report(self, operation_name: str, code: int, command: str | None = None) -> ErrorContext:
        """Record a failure that did not come from a wrapped operation.

        Returns:
            The recorded context
        """
        context = ErrorContext(
            operation=operation_name,
            code=code,
            hint=classify_error(code),
            command=command,
            backtrace="".join(traceback.format_stack()),
        )
        logger.error("%s", context.summary())
        return context

    def _record(
        self, operation_name: str, error: BaseException, command: str | None
    ) -> ErrorContext:
        if isinstance(error, OperationError):
            code = error.code
            command = error.command or command
        else:
            code = GENERAL_ERROR

        context = ErrorContext(
            operation=operation_name,
            code=code,
            hint=classify_error(code),
            command=command,
            backtrace="".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
        )
        logger.error("%s: %s", context.summary(), error)
        return context

    def _fail(self, context: ErrorContext) -> NoReturn:
        error_logger.error("Backtrace for '%s':\n%s", context.operation, context.backtrace)
        raise RetryExhaustedError(context)
