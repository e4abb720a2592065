"""Utilities for nettest."""

from nettest.utils.console import (
    ColorfulFormatter,
    RunLogFormatter,
    attach_log_files,
    configure_logging,
    detach_log_files,
)
from nettest.utils.ping import check_port_open, find_open_port
from nettest.utils.shell import quote_arg, sudo_wrap

__all__ = [
    "ColorfulFormatter",
    "RunLogFormatter",
    "attach_log_files",
    "check_port_open",
    "configure_logging",
    "detach_log_files",
    "find_open_port",
    "quote_arg",
    "sudo_wrap",
]
