"""Console and log file formatting."""

import logging
import sys
from datetime import datetime
from pathlib import Path

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

COMPONENT_COLORS = {
    "nettest.controller": COLORS["bright_cyan"],
    "nettest.orchestrator": COLORS["bright_cyan"],
    "nettest.services.servers": COLORS["bright_blue"],
    "nettest.services.pool": COLORS["bright_magenta"],
    "nettest.services.cascade": COLORS["magenta"],
    "nettest.services.retry": COLORS["yellow"],
    "nettest.config": COLORS["green"],
    "default": COLORS["white"],
}

ERROR_LOGGER = "nettest.errors"


class ColorfulFormatter(logging.Formatter):
    """Colorful console formatter with component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt:%H:%M:%S}.{int(record.msecs):03d}"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as ``time | LEVEL | component | message``."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._colorize(
            f"{record.levelname:<8}",
            LEVEL_COLORS.get(record.levelname, COLORS["white"]),
        )

        name = record.name
        if name.startswith("nettest."):
            name = name[len("nettest.") :]
        component = self._colorize(f"{name:<18}", self._get_component_color(record.name))

        sep = self._colorize("|", COLORS["dim"])
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"


class RunLogFormatter(logging.Formatter):
    """Plain ``YYYY-mm-dd HH:MM:SS - message`` lines for the log files."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def configure_logging(level: str = "INFO", use_colors: bool = True) -> None:
    """Configure console logging for the nettest package.

    Colors are disabled when stderr is not a TTY.
    """
    if not sys.stderr.isatty():
        use_colors = False

    nettest_logger = logging.getLogger("nettest")
    nettest_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not nettest_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        nettest_logger.addHandler(handler)
        nettest_logger.propagate = False

    for noisy_logger in ["asyncssh", "asyncio"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def attach_log_files(run_log: Path | str, error_log: Path | str) -> list[logging.Handler]:
    """Attach the append-only run log and error log.

    The run log receives every nettest message at INFO and above; the
    error log receives errors plus the backtraces of failed operations.

    Returns:
        The attached handlers, for detach_log_files()
    """
    formatter = RunLogFormatter()

    run_handler = logging.FileHandler(run_log, mode="a", encoding="utf-8")
    run_handler.setLevel(logging.INFO)
    run_handler.setFormatter(formatter)

    error_handler = logging.FileHandler(error_log, mode="a", encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    nettest_logger = logging.getLogger("nettest")
    if nettest_logger.level == logging.NOTSET:
        nettest_logger.setLevel(logging.INFO)
    nettest_logger.addHandler(run_handler)
    nettest_logger.addHandler(error_handler)
    # Backtraces are only written to the error log file
    error_logger = logging.getLogger(ERROR_LOGGER)
    error_logger.addHandler(error_handler)
    error_logger.propagate = False

    return [run_handler, error_handler]


def detach_log_files(handlers: list[logging.Handler]) -> None:
    """Flush, close and remove handlers added by attach_log_files()."""
    for name in ("nettest", ERROR_LOGGER):
        target = logging.getLogger(name)
        for handler in handlers:
            if handler in target.handlers:
                target.removeHandler(handler)
    for handler in handlers:
        handler.flush()
        handler.close()
