"""Reloadable list of catalog servers excluded by configuration."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ExclusionList:
    """Hostnames the cascade must never select.

    Read from a text file with one hostname per line; blank lines and
    ``#`` comments are ignored. The file is re-read on reload().
    """

    def __init__(self, path: Path | str | None, known_hosts: set[str] | None = None):
        """Initialize and load the exclusion list.

        Args:
            path: Exclusion file path (missing file means no exclusions)
            known_hosts: Catalog hostnames; other names are ignored
        """
        self.path = Path(path) if path else None
        self._known = known_hosts
        self._hosts: frozenset[str] = frozenset()
        self.reload()

    def reload(self) -> frozenset[str]:
        """Re-read the exclusion file.

        Returns:
            The new set of excluded hostnames
        """
        if self.path is None or not self.path.exists():
            self._hosts = frozenset()
            return self._hosts

        try:
            content = self.path.read_text()
        except OSError as e:
            logger.warning("Cannot read exclusion file %s: %s", self.path, e)
            return self._hosts

        hosts = set()
        for line in content.splitlines():
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            if self._known is not None and line not in self._known:
                logger.warning("Ignoring exclusion for unknown server %s", line)
                continue
            hosts.add(line)

        self._hosts = frozenset(hosts)
        logger.debug("Loaded %d excluded servers from %s", len(hosts), self.path)
        return self._hosts

    @property
    def hosts(self) -> frozenset[str]:
        return self._hosts

    def __contains__(self, host: object) -> bool:
        return host in self._hosts

    def __len__(self) -> int:
        return len(self._hosts)
