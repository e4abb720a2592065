"""Tests for console formatting and log file handling."""

import logging
from pathlib import Path

import pytest

from nettest.utils.console import (
    ERROR_LOGGER,
    ColorfulFormatter,
    RunLogFormatter,
    attach_log_files,
    detach_log_files,
)


def make_record(name: str, level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_colorful_formatter_plain() -> None:
    formatter = ColorfulFormatter(use_colors=False)

    line = formatter.format(make_record("nettest.services.servers", logging.INFO, "started"))

    assert "\033[" not in line
    assert "INFO" in line
    assert "services.servers" in line
    assert line.endswith("| started")


def test_colorful_formatter_colors_levels() -> None:
    formatter = ColorfulFormatter(use_colors=True)

    line = formatter.format(make_record("nettest.controller", logging.ERROR, "boom"))

    assert "\033[91m" in line


def test_run_log_formatter() -> None:
    line = RunLogFormatter().format(make_record("nettest", logging.INFO, "Cleanup completed"))

    assert line.endswith(" - Cleanup completed")
    assert len(line.split(" - ")[0]) == len("2024-01-01 00:00:00")


@pytest.fixture
def log_files(tmp_path: Path):
    run_log = tmp_path / "network_test.log"
    error_log = tmp_path / "network_test_errors.log"
    handlers = attach_log_files(run_log, error_log)
    yield run_log, error_log, handlers
    detach_log_files(handlers)


def test_info_goes_to_run_log_only(log_files) -> None:
    run_log, error_log, handlers = log_files

    logging.getLogger("nettest.orchestrator").info("Network tests completed.")
    for handler in handlers:
        handler.flush()

    assert "Network tests completed." in run_log.read_text()
    assert error_log.read_text() == ""


def test_errors_go_to_both_logs(log_files) -> None:
    run_log, error_log, handlers = log_files

    logging.getLogger("nettest.services.retry").error("Error in 'start_iperf_server'")
    for handler in handlers:
        handler.flush()

    assert "start_iperf_server" in run_log.read_text()
    assert "start_iperf_server" in error_log.read_text()


def test_backtraces_go_to_error_log_only(log_files) -> None:
    run_log, error_log, handlers = log_files

    logging.getLogger(ERROR_LOGGER).error("Backtrace for 'stop_iperf_server'")
    for handler in handlers:
        handler.flush()

    assert "Backtrace" in error_log.read_text()
    assert "Backtrace" not in run_log.read_text()


def test_detach_closes_handlers(tmp_path: Path) -> None:
    handlers = attach_log_files(tmp_path / "run.log", tmp_path / "err.log")

    detach_log_files(handlers)

    for handler in handlers:
        assert handler not in logging.getLogger("nettest").handlers
        assert handler not in logging.getLogger(ERROR_LOGGER).handlers
