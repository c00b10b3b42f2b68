"""Search behavior configuration: page sizes, debounce, fan-out targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from MarketSearch.config.common import (
    expect_int,
    expect_str_list,
    get_optional_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Store validated search behavior settings."""

    hits_per_page: int
    debounce_ms: int
    id_chunk_size: int
    fan_out_indices: tuple[str, ...]
    fan_out_hits_per_page: int
    health_indices: tuple[str, ...]

    @property
    def debounce_delay(self) -> float:
        """Quiet period in seconds."""
        return self.debounce_ms / 1000


def load_search(raw: Mapping[str, Any]) -> SearchConfig:
    """Load search domain config from raw mapping.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed search configuration.

    Raises:
        TypeError: If config types are invalid.
    """
    section = get_section(raw, "search", required=False)
    fan_out = get_optional_value(section, "fan_out_indices", ["shops", "products", "shop_products"])
    health = get_optional_value(section, "health_indices", ["shop_products", "orders"])
    return SearchConfig(
        hits_per_page=expect_int(get_optional_value(section, "hits_per_page", 100), "search.hits_per_page"),
        debounce_ms=expect_int(get_optional_value(section, "debounce_ms", 300), "search.debounce_ms"),
        id_chunk_size=expect_int(get_optional_value(section, "id_chunk_size", 100), "search.id_chunk_size"),
        fan_out_indices=tuple(expect_str_list(fan_out, "search.fan_out_indices")),
        fan_out_hits_per_page=expect_int(
            get_optional_value(section, "fan_out_hits_per_page", 20), "search.fan_out_hits_per_page"
        ),
        health_indices=tuple(expect_str_list(health, "search.health_indices")),
    )


def check_search(config: SearchConfig) -> None:
    """Validate search domain constraints.

    Raises:
        ValueError: If values violate search constraints.
    """
    if config.hits_per_page <= 0:
        raise ValueError("search.hits_per_page must be positive")
    if config.fan_out_hits_per_page <= 0:
        raise ValueError("search.fan_out_hits_per_page must be positive")
    if config.debounce_ms < 0:
        raise ValueError("search.debounce_ms must be >= 0")
    if config.id_chunk_size <= 0:
        raise ValueError("search.id_chunk_size must be positive")
    if not config.fan_out_indices:
        raise ValueError("search.fan_out_indices must not be empty")
    if len(set(config.fan_out_indices)) != len(config.fan_out_indices):
        raise ValueError("search.fan_out_indices must not contain duplicates")
    if not config.health_indices:
        raise ValueError("search.health_indices must not be empty")
