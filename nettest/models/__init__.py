"""Data models for nettest."""

from nettest.models.catalog import (
    CASCADE_ORDER,
    CascadeAttempt,
    Direction,
    ExternalServerEntry,
    Transport,
)
from nettest.models.command import CommandResult
from nettest.models.errors import ErrorContext
from nettest.models.node import Node, NodeRole
from nettest.models.results import (
    AttemptResult,
    CascadeResult,
    PairResult,
    RunReport,
    ThroughputResult,
)
from nettest.models.server import ServerProcessHandle, ServerState
from nettest.models.ssh import PooledConnection

__all__ = [
    "AttemptResult",
    "CASCADE_ORDER",
    "CascadeAttempt",
    "CascadeResult",
    "CommandResult",
    "Direction",
    "ErrorContext",
    "ExternalServerEntry",
    "Node",
    "NodeRole",
    "PairResult",
    "PooledConnection",
    "RunReport",
    "ServerProcessHandle",
    "ServerState",
    "ThroughputResult",
    "Transport",
]
