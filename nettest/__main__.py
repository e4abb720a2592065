"""Entry point for nettest."""

import argparse
import asyncio
import logging
import os
import sys

from nettest.config import Config, Settings
from nettest.controller import Controller
from nettest.dependencies import Dependencies
from nettest.utils.console import configure_logging

logger = logging.getLogger("nettest.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nettest",
        description=(
            "Run iperf3 throughput tests between this machine, the configured "
            "remote nodes and a public iperf3 server."
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="log every command that would run without executing anything",
    )
    return parser.parse_args(argv)


def restart(argv: list[str]) -> None:
    """Replace the current process with a fresh run using the same arguments."""
    logger.warning("Restarting nettest with arguments: %s", " ".join(argv) or "(none)")
    os.execv(sys.executable, [sys.executable, "-m", "nettest", *argv])


def main(argv: list[str] | None = None) -> int:
    """Run nettest and return the process exit code."""
    argv = sys.argv[1:] if argv is None else argv
    args = parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_colors)

    try:
        config = Config.from_env(settings, dry_run=args.dry_run)
    except (ValueError, FileNotFoundError) as e:
        logger.critical("Invalid configuration: %s", e)
        return 1

    deps = Dependencies.create(config, dry_run=args.dry_run)
    outcome = asyncio.run(Controller(deps).run())

    if outcome.restart:
        restart(argv)
    return outcome.exit_code


def main_entry() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
