"""Tests for environment settings."""

import pytest

from nettest.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "NETTEST_LOCAL_ADDRESS",
        "NETTEST_REMOTES",
        "NETTEST_IPERF_PORT",
        "NETTEST_MAX_RETRIES",
        "NETTEST_LOCAL_SUDO",
        "NETTEST_LOG_COLORS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("NETTEST_SSH_USER", "tester")

    settings = Settings.from_env()

    assert settings.local_address == "127.0.0.1"
    assert settings.remotes == []
    assert settings.ssh_user == "tester"
    assert settings.iperf_port == 42069
    assert settings.max_retries == 3
    assert settings.local_sudo == "sudo -A"
    assert settings.log_colors is True


def test_values_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NETTEST_LOCAL_ADDRESS", "192.168.1.169")
    monkeypatch.setenv("NETTEST_REMOTES", "192.168.1.248, root@192.168.1.145 ,")
    monkeypatch.setenv("NETTEST_IPERF_PORT", "5201")
    monkeypatch.setenv("NETTEST_SETTLE_DELAY", "0.5")
    monkeypatch.setenv("NETTEST_LOG_LEVEL", "debug")
    monkeypatch.setenv("NETTEST_LOG_COLORS", "off")

    settings = Settings.from_env()

    assert settings.local_address == "192.168.1.169"
    assert settings.remotes == ["192.168.1.248", "root@192.168.1.145"]
    assert settings.iperf_port == 5201
    assert settings.settle_delay == 0.5
    assert settings.log_level == "DEBUG"
    assert settings.log_colors is False


def test_invalid_numbers_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NETTEST_MAX_RETRIES", "many")
    monkeypatch.setenv("NETTEST_PROBE_TIMEOUT", "soon")

    settings = Settings.from_env()

    assert settings.max_retries == 3
    assert settings.probe_timeout == 5.0


def test_paths_expand_home(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NETTEST_RUN_LOG", "~/custom.log")

    settings = Settings.from_env()

    assert not settings.run_log.startswith("~")
    assert settings.run_log.endswith("custom.log")
