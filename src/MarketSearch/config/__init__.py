from __future__ import annotations

"""Public configuration API for MarketSearch."""

from MarketSearch.config.algolia import AlgoliaConfig, require_credentials
from MarketSearch.config.app import (
    AppConfig,
    check_cross_domain,
    load_config,
    load_config_with_defaults,
    parse_config_dict,
)
from MarketSearch.config.runtime import RuntimeConfig
from MarketSearch.config.search import SearchConfig

__all__ = [
    "RuntimeConfig",
    "AlgoliaConfig",
    "SearchConfig",
    "AppConfig",
    "load_config",
    "load_config_with_defaults",
    "parse_config_dict",
    "check_cross_domain",
    "require_credentials",
]
