"""Tests for TCP reachability checks."""

import socket
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nettest.utils.ping import check_port_open, find_open_port


def make_writer() -> MagicMock:
    writer = MagicMock()
    writer.close = MagicMock()
    writer.wait_closed = AsyncMock()
    return writer


@pytest.mark.asyncio
async def test_check_port_open_reachable() -> None:
    """Returns True and closes the connection when the port accepts."""
    writer = make_writer()

    with patch("asyncio.open_connection", new_callable=AsyncMock) as mock_conn:
        mock_conn.return_value = (MagicMock(), writer)

        result = await check_port_open("iperf.example.net", 5201, family=socket.AF_INET6)

    assert result is True
    writer.close.assert_called_once()
    mock_conn.assert_awaited_once_with("iperf.example.net", 5201, family=socket.AF_INET6)


@pytest.mark.asyncio
async def test_check_port_open_refused() -> None:
    with patch("asyncio.open_connection", new_callable=AsyncMock) as mock_conn:
        mock_conn.side_effect = ConnectionRefusedError()

        assert await check_port_open("iperf.example.net", 5201) is False


@pytest.mark.asyncio
async def test_check_port_open_timeout() -> None:
    with patch("asyncio.open_connection", new_callable=AsyncMock) as mock_conn:
        mock_conn.side_effect = TimeoutError()

        assert await check_port_open("iperf.example.net", 5201, timeout=0.1) is False


@pytest.mark.asyncio
async def test_find_open_port_returns_first_open() -> None:
    writer = make_writer()

    async def open_connection(host: str, port: int, family: int = 0) -> tuple:
        if port == 5203:
            return (MagicMock(), writer)
        raise ConnectionRefusedError()

    with patch("asyncio.open_connection", side_effect=open_connection) as mock_conn:
        port = await find_open_port("iperf.example.net", range(5200, 5210))

    assert port == 5203
    assert mock_conn.call_count == 4


@pytest.mark.asyncio
async def test_find_open_port_none_open() -> None:
    with patch("asyncio.open_connection", new_callable=AsyncMock) as mock_conn:
        mock_conn.side_effect = OSError("Network is unreachable")

        assert await find_open_port("iperf.example.net", [5201, 5202]) is None
