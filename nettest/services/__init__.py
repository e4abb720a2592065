"""Services for nettest."""

from nettest.services.cascade import DiscoveryCascade
from nettest.services.connection import (
    RemoteConnectionError,
    get_connection_with_retry,
)
from nettest.services.executor import CommandExecutor
from nettest.services.iperf import ThroughputTester, build_client_command, parse_report
from nettest.services.pairwise import PairwiseTestRunner
from nettest.services.pool import ConnectionPool
from nettest.services.retry import (
    FatalError,
    OperationError,
    RetryEngine,
    RetryExhaustedError,
    RetryOutcome,
    classify_error,
)
from nettest.services.servers import ServerManager
from nettest.services.state import RunInterrupted, RunState

__all__ = [
    "CommandExecutor",
    "ConnectionPool",
    "DiscoveryCascade",
    "FatalError",
    "OperationError",
    "PairwiseTestRunner",
    "RemoteConnectionError",
    "RetryEngine",
    "RetryExhaustedError",
    "RetryOutcome",
    "RunInterrupted",
    "RunState",
    "ServerManager",
    "ThroughputTester",
    "build_client_command",
    "classify_error",
    "get_connection_with_retry",
    "parse_report",
]
