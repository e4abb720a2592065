"""Configuration module for nettest.

- Config: Run configuration (nodes, catalog, exclusions)
- Settings: Environment variable configuration
- HostKeyVerifier: SSH known_hosts policy
- ExclusionList: Reloadable excluded catalog servers
"""

from nettest.config.catalog import DEFAULT_CATALOG, load_catalog
from nettest.config.exclusions import ExclusionList
from nettest.config.host_keys import HostKeyVerifier
from nettest.config.main import Config, parse_remote
from nettest.config.settings import Settings

__all__ = [
    "Config",
    "DEFAULT_CATALOG",
    "ExclusionList",
    "HostKeyVerifier",
    "Settings",
    "load_catalog",
    "parse_remote",
]
