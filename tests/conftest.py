"""Shared fixtures for nettest tests."""

import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from nettest.config import Config, Settings
from nettest.models import ExternalServerEntry, Node, NodeRole
from nettest.services.retry import RetryEngine
from tests.fakes import FakeExecutor


@pytest.fixture
def local_node() -> Node:
    return Node(address="192.168.1.169", role=NodeRole.LOCAL, user="tester")


@pytest.fixture
def remote_nodes() -> tuple[Node, Node]:
    return (
        Node(address="192.168.1.248", user="tester"),
        Node(address="192.168.1.145", user="tester"),
    )


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Awaitable sleep that returns immediately and records delays."""
    return AsyncMock()


@pytest.fixture
def retry_engine(no_sleep: AsyncMock) -> RetryEngine:
    return RetryEngine(max_retries=3, sleep=no_sleep, rng=random.Random(7))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        local_address="192.168.1.169",
        remotes=["tester@192.168.1.248", "192.168.1.145"],
        ssh_user="tester",
        run_log=str(tmp_path / "logs" / "network_test.log"),
        error_log=str(tmp_path / "logs" / "network_test_errors.log"),
        exclusions_path=str(tmp_path / "excluded_servers"),
    )


@pytest.fixture
def catalog() -> tuple[ExternalServerEntry, ...]:
    return (
        ExternalServerEntry("iperf-a.example.net", 5200, 5202, ipv6=True),
        ExternalServerEntry("iperf-b.example.net", 5201, 5201, ipv6=False),
        ExternalServerEntry("iperf-c.example.net", 9200, 9201, ipv6=True),
    )


@pytest.fixture
def config(settings: Settings) -> Config:
    return Config.from_settings(settings)
