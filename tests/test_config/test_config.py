"""Tests for run configuration and remote parsing."""

import logging
from dataclasses import replace
from pathlib import Path

import pytest

from nettest.config import Config, HostKeyVerifier, Settings, parse_remote
from nettest.models import NodeRole


class TestParseRemote:
    def test_bare_host(self) -> None:
        node = parse_remote("192.168.1.248", "tester", "/keys/id")

        assert node.address == "192.168.1.248"
        assert node.user == "tester"
        assert node.port == 22
        assert node.identity_file == "/keys/id"
        assert node.role is NodeRole.REMOTE

    def test_user_and_port(self) -> None:
        node = parse_remote("root@192.168.1.145:2222", "tester", None)

        assert (node.user, node.address, node.port) == ("root", "192.168.1.145", 2222)

    def test_bracketed_ipv6(self) -> None:
        node = parse_remote("[fe80::1]:2222", "tester", None)

        assert (node.address, node.port) == ("fe80::1", 2222)

    def test_bare_ipv6(self) -> None:
        node = parse_remote("fe80::1", "tester", None)

        assert (node.address, node.port) == ("fe80::1", 22)

    def test_bad_port(self) -> None:
        with pytest.raises(ValueError):
            parse_remote("host:ssh", "tester", None)

    def test_empty_host(self) -> None:
        with pytest.raises(ValueError, match="Empty host"):
            parse_remote("tester@", "tester", None)


class TestConfig:
    def test_from_settings(self, config: Config) -> None:
        assert config.local.is_local
        assert config.local.address == "192.168.1.169"
        assert [n.address for n in config.remotes] == ["192.168.1.248", "192.168.1.145"]
        assert config.iperf_port == 42069
        assert config.known_hosts_path is None
        assert config.strict_host_key_checking is False

    def test_no_remotes_warns(self, settings: Settings, caplog) -> None:
        settings.remotes = []

        config = Config.from_settings(settings)

        assert config.remotes == ()
        assert "No remote nodes configured" in caplog.text

    def test_reload_exclusions(self, config: Config, caplog) -> None:
        caplog.set_level(logging.INFO, logger="nettest")
        host = config.catalog[0].host
        Path(config.settings.exclusions_path).write_text(f"{host}\n")

        hosts = config.reload_exclusions()

        assert hosts == frozenset({host})
        assert host in config.exclusions
        assert "Configuration reloaded" in caplog.text

    def test_from_env_uses_known_hosts(
        self, monkeypatch: pytest.MonkeyPatch, settings: Settings, tmp_path: Path
    ) -> None:
        known_hosts = tmp_path / "known_hosts"
        known_hosts.write_text("")
        monkeypatch.setenv("NETTEST_KNOWN_HOSTS", str(known_hosts))

        config = Config.from_env(settings)

        assert config.known_hosts_path == str(known_hosts)
        assert config.strict_host_key_checking is True

    def test_from_env_strict_missing_known_hosts(
        self, monkeypatch: pytest.MonkeyPatch, settings: Settings, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("NETTEST_KNOWN_HOSTS", str(tmp_path / "missing"))
        monkeypatch.delenv("NETTEST_STRICT_HOST_KEY_CHECKING", raising=False)

        with pytest.raises(FileNotFoundError):
            Config.from_env(settings)

    def test_from_env_dry_run_tolerates_missing_known_hosts(
        self, monkeypatch: pytest.MonkeyPatch, settings: Settings, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("NETTEST_KNOWN_HOSTS", str(tmp_path / "missing"))
        monkeypatch.delenv("NETTEST_STRICT_HOST_KEY_CHECKING", raising=False)

        config = Config.from_env(settings, dry_run=True)

        assert config.known_hosts_path is None

    def test_from_env_without_remotes_tolerates_missing_known_hosts(
        self, monkeypatch: pytest.MonkeyPatch, settings: Settings, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("NETTEST_KNOWN_HOSTS", str(tmp_path / "missing"))
        monkeypatch.delenv("NETTEST_STRICT_HOST_KEY_CHECKING", raising=False)

        config = Config.from_env(replace(settings, remotes=[]))

        assert config.remotes == ()
        assert config.known_hosts_path is None


class TestHostKeyVerifier:
    def test_none_disables(self) -> None:
        verifier = HostKeyVerifier("none")

        assert verifier.get_known_hosts_path() is None
        assert not verifier.is_enabled()

    def test_missing_file_non_strict(self, tmp_path: Path) -> None:
        verifier = HostKeyVerifier(str(tmp_path / "missing"), strict_checking=False)

        assert not verifier.is_enabled()

    def test_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "known_hosts"
        path.write_text("")

        assert HostKeyVerifier(str(path)).get_known_hosts_path() == str(path)
