"""External iperf3 server catalog and cascade models."""

import socket
from dataclasses import dataclass
from enum import Enum


class Direction(str, Enum):
    """Direction of a throughput test relative to the local node."""

    OUTBOUND = "outbound"
    INBOUND = "inbound"

    @property
    def reversed(self) -> bool:
        """Whether iperf3 should run in reverse mode (-R)."""
        return self is Direction.INBOUND


class Transport(str, Enum):
    """IP transport family."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"

    @property
    def flag(self) -> str:
        """iperf3 command line flag selecting this family."""
        return "-4" if self is Transport.IPV4 else "-6"

    @property
    def family(self) -> socket.AddressFamily:
        """Socket address family used for probing."""
        return socket.AF_INET if self is Transport.IPV4 else socket.AF_INET6


@dataclass(frozen=True)
class ExternalServerEntry:
    """A public iperf3 server with its advertised port range."""

    host: str
    port_start: int
    port_end: int
    ipv6: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.port_start <= self.port_end <= 65535:
            raise ValueError(
                f"Invalid port range {self.port_start}-{self.port_end} for {self.host}"
            )

    @property
    def ports(self) -> range:
        """Ports to scan, ascending."""
        return range(self.port_start, self.port_end + 1)

    def supports(self, transport: Transport) -> bool:
        """Check if the server can be reached over the given transport."""
        return transport is Transport.IPV4 or self.ipv6


@dataclass(frozen=True)
class CascadeAttempt:
    """One (direction, transport) combination of the cascade."""

    direction: Direction
    transport: Transport

    def __str__(self) -> str:
        return f"{self.direction.value}/{self.transport.value}"


CASCADE_ORDER: tuple[CascadeAttempt, ...] = (
    CascadeAttempt(Direction.OUTBOUND, Transport.IPV4),
    CascadeAttempt(Direction.INBOUND, Transport.IPV4),
    CascadeAttempt(Direction.OUTBOUND, Transport.IPV6),
    CascadeAttempt(Direction.INBOUND, Transport.IPV6),
)
