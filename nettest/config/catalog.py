"""External iperf3 server catalog loading.

The catalog is either the built-in list below or a JSON array read from
NETTEST_CATALOG. Each JSON object carries ``host``, ``ipv6`` and either
``port`` (int or ``"5200-5209"``) or ``port_start``/``port_end``.
"""

import json
import logging
from pathlib import Path
from typing import Any

from nettest.models import ExternalServerEntry

logger = logging.getLogger(__name__)

DEFAULT_IPERF_PORT = 5201

DEFAULT_CATALOG: tuple[ExternalServerEntry, ...] = (
    ExternalServerEntry("ping.online.net", 5200, 5209, ipv6=True),
    ExternalServerEntry("bouygues.iperf.fr", 5200, 5209, ipv6=True),
    ExternalServerEntry("iperf.par2.as49434.net", 9200, 9240, ipv6=True),
    ExternalServerEntry("speedtest.serverius.net", 5002, 5002, ipv6=True),
    ExternalServerEntry("iperf.he.net", 5201, 5201, ipv6=True),
    ExternalServerEntry("iperf3.moji.fr", 5200, 5240, ipv6=False),
    ExternalServerEntry("speedtest.uztelecom.uz", 5200, 5209, ipv6=False),
)


def parse_port_range(value: Any) -> tuple[int, int]:
    """Parse a port or port range.

    Args:
        value: Integer port, ``"5201"`` or ``"5200-5209"``

    Returns:
        Inclusive (start, end) tuple

    Raises:
        ValueError: If the value is not a port or range
    """
    if isinstance(value, int):
        return value, value

    text = str(value).strip()
    if "-" in text:
        start_str, end_str = (part.strip() for part in text.split("-", 1))
        return int(start_str), int(end_str)
    return int(text), int(text)


def parse_entry(raw: dict[str, Any]) -> ExternalServerEntry:
    """Build a catalog entry from a JSON object.

    Raises:
        ValueError: If the object lacks a host or has a bad port range
    """
    host = str(raw.get("host", "")).strip()
    if not host:
        raise ValueError(f"Catalog entry without host: {raw}")

    if "port_start" in raw:
        start = int(raw["port_start"])
        end = int(raw.get("port_end", start))
    else:
        start, end = parse_port_range(raw.get("port", DEFAULT_IPERF_PORT))

    return ExternalServerEntry(
        host=host,
        port_start=start,
        port_end=end,
        ipv6=bool(raw.get("ipv6", False)),
    )


def load_catalog(path: Path | str | None = None) -> tuple[ExternalServerEntry, ...]:
    """Load the external server catalog.

    Invalid entries are logged and skipped. A missing or unreadable file
    falls back to the built-in catalog.

    Args:
        path: JSON catalog file, or None for the built-in catalog

    Returns:
        Catalog entries in file order
    """
    if path is None:
        return DEFAULT_CATALOG

    catalog_path = Path(path)
    try:
        data = json.loads(catalog_path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(
            "Cannot read catalog %s: %s, using built-in catalog", catalog_path, e
        )
        return DEFAULT_CATALOG

    if not isinstance(data, list):
        logger.warning(
            "Catalog %s is not a JSON array, using built-in catalog", catalog_path
        )
        return DEFAULT_CATALOG

    entries: list[ExternalServerEntry] = []
    for raw in data:
        try:
            entries.append(parse_entry(raw))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping catalog entry %r: %s", raw, e)

    logger.info("Loaded %d external servers from %s", len(entries), catalog_path)
    return tuple(entries)
