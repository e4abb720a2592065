"""nettest: iperf3 throughput test orchestration with retry and failover."""

__version__ = "0.1.0"
