"""Tests for external server catalog loading."""

import json
from pathlib import Path

import pytest

from nettest.config.catalog import (
    DEFAULT_CATALOG,
    load_catalog,
    parse_entry,
    parse_port_range,
)


@pytest.mark.parametrize(
    "value,expected",
    [(5201, (5201, 5201)), ("5201", (5201, 5201)), ("5200-5209", (5200, 5209))],
)
def test_parse_port_range(value, expected) -> None:
    assert parse_port_range(value) == expected


def test_parse_port_range_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_port_range("http")


def test_parse_entry_forms() -> None:
    ranged = parse_entry({"host": "iperf.example.net", "port": "9200-9240", "ipv6": True})
    explicit = parse_entry({"host": "iperf2.example.net", "port_start": 5002})
    default = parse_entry({"host": "iperf3.example.net"})

    assert (ranged.port_start, ranged.port_end, ranged.ipv6) == (9200, 9240, True)
    assert (explicit.port_start, explicit.port_end, explicit.ipv6) == (5002, 5002, False)
    assert default.ports == range(5201, 5202)


def test_parse_entry_requires_host() -> None:
    with pytest.raises(ValueError, match="without host"):
        parse_entry({"port": 5201})


def test_parse_entry_rejects_reversed_range() -> None:
    with pytest.raises(ValueError, match="Invalid port range"):
        parse_entry({"host": "iperf.example.net", "port": "5209-5200"})


def test_load_default_catalog() -> None:
    catalog = load_catalog()

    assert catalog is DEFAULT_CATALOG
    assert len({entry.host for entry in catalog}) == len(catalog)


def test_load_catalog_file_skips_bad_entries(tmp_path: Path) -> None:
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            [
                {"host": "iperf-a.example.net", "port": "5200-5202", "ipv6": True},
                {"port": 5201},
                "not an object",
                {"host": "iperf-b.example.net", "port": 5201},
            ]
        )
    )

    catalog = load_catalog(path)

    assert [entry.host for entry in catalog] == ["iperf-a.example.net", "iperf-b.example.net"]


@pytest.mark.parametrize("content", ["{not json", '{"host": "x"}'])
def test_load_catalog_falls_back_to_default(tmp_path: Path, content: str) -> None:
    path = tmp_path / "catalog.json"
    path.write_text(content)

    assert load_catalog(path) is DEFAULT_CATALOG


def test_load_catalog_missing_file(tmp_path: Path) -> None:
    assert load_catalog(tmp_path / "missing.json") is DEFAULT_CATALOG
