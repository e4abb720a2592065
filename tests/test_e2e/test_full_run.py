"""End-to-end runs with one local and two remote nodes."""

import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from nettest.config import Config
from nettest.controller import Controller
from nettest.dependencies import Dependencies
from nettest.models import CommandResult, Node, ServerState
from nettest.services.pairwise import MAIN_TO_REMOTE, REMOTE_TO_MAIN
from tests.fakes import FakeExecutor, build_deps, default_responder, scanner_for


@pytest.mark.asyncio
async def test_full_run(config: Config) -> None:
    executor = FakeExecutor()
    deps = build_deps(config, executor, scanner_for({"bouygues.iperf.fr": 5203}))

    outcome = await Controller(deps, required_tools=()).run()

    assert outcome.exit_code == 0
    report = outcome.report
    assert [(p.remote, p.direction) for p in report.pairs] == [
        ("192.168.1.248", MAIN_TO_REMOTE),
        ("192.168.1.248", REMOTE_TO_MAIN),
        ("192.168.1.145", MAIN_TO_REMOTE),
        ("192.168.1.145", REMOTE_TO_MAIN),
    ]
    assert report.cascade.winner.endpoint == ("bouygues.iperf.fr", 5203)
    assert [h.state for h in deps.servers.handles] == [ServerState.STOPPED] * 3

    starts = [node.address for node, command, _ in executor.calls if "nohup" in command]
    assert starts == ["192.168.1.248", "192.168.1.145", "192.168.1.169"]
    run_log = Path(config.settings.run_log).read_text()
    assert "Network tests completed." in run_log
    assert "Cleanup completed" in run_log


@pytest.mark.asyncio
async def test_full_run_recovers_from_transient_failures(config: Config) -> None:
    failures = {"pgrep": 1, "test": 2}

    def responder(node: Node, command: str) -> CommandResult:
        if command.startswith("pgrep") and failures["pgrep"]:
            failures["pgrep"] -= 1
            return CommandResult(returncode=1)
        if command.startswith("iperf3 -c 192.168.1.169") and failures["test"]:
            failures["test"] -= 1
            return CommandResult(returncode=1, error="connection reset")
        return default_responder(node, command)

    deps = build_deps(config, FakeExecutor(responder), scanner_for({"iperf.he.net": 5201}))

    outcome = await Controller(deps, required_tools=()).run()

    assert outcome.exit_code == 0
    assert outcome.report.pairs[1].retries == 2
    assert Path(config.settings.error_log).read_text() != ""


@pytest.mark.asyncio
async def test_external_failure_does_not_fail_run(config: Config) -> None:
    executor = FakeExecutor()
    deps = build_deps(config, executor, scanner_for({}))

    outcome = await Controller(deps, required_tools=()).run()

    assert outcome.exit_code == 0
    assert not outcome.report.cascade.success


@pytest.mark.asyncio
async def test_dry_run_has_no_side_effects(config: Config, caplog) -> None:
    caplog.set_level(logging.INFO, logger="nettest")
    with (
        patch("asyncio.create_subprocess_shell") as subprocess_mock,
        patch("asyncssh.connect") as connect_mock,
        patch("nettest.services.cascade.find_open_port") as scan_mock,
    ):
        deps = Dependencies.create(config, dry_run=True, sleep=AsyncMock())
        outcome = await Controller(deps, required_tools=()).run()

    assert outcome.exit_code == 0
    subprocess_mock.assert_not_called()
    connect_mock.assert_not_called()
    scan_mock.assert_not_called()
    assert "Dry-run: would execute on Remote (192.168.1.248)" in caplog.text
    assert deps.pool.pool_size == 0
