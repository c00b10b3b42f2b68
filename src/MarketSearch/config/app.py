from __future__ import annotations

"""Application config orchestration and YAML loading entrypoints."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from MarketSearch.config.algolia import AlgoliaConfig, check_algolia, load_algolia
from MarketSearch.config.indices import check_indices, load_indices
from MarketSearch.config.retry import load_retry
from MarketSearch.config.runtime import RuntimeConfig, check_runtime, load_runtime
from MarketSearch.config.search import SearchConfig, check_search, load_search
from MarketSearch.core.query import IndexSpec
from MarketSearch.sources.algolia.retry import RetryPolicy


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    algolia: AlgoliaConfig
    retry: RetryPolicy
    search: SearchConfig
    indices: Mapping[str, IndexSpec]


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse normalized mapping into AppConfig."""
    runtime = load_runtime(raw)
    algolia = load_algolia(raw)
    retry = load_retry(raw)
    search = load_search(raw)
    indices = load_indices(raw)

    check_runtime(runtime)
    check_algolia(algolia)
    check_search(search)
    check_indices(indices)

    config = AppConfig(
        runtime=runtime,
        algolia=algolia,
        retry=retry,
        search=search,
        indices=indices,
    )
    check_cross_domain(config)
    return config


def load_config(path: Path) -> AppConfig:
    """Load YAML config file without default merge."""
    return load_config_with_defaults(path, default_path=path)


def load_config_with_defaults(
    config_path: Path, default_path: Path = Path("config/default.yml")
) -> AppConfig:
    """Load config by merging defaults and optional override."""
    base = parse_yaml(default_path.read_text(encoding="utf-8"))
    if config_path == default_path:
        return parse_config_dict(base)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    merged = merge_config_dicts(base, override)
    return parse_config_dict(merged)


def check_cross_domain(config: AppConfig) -> None:
    """Validate cross-domain constraints."""
    for name in config.search.fan_out_indices:
        if name not in config.indices:
            raise ValueError(f"search.fan_out_indices entry '{name}' is not a configured index")
    for name in config.search.health_indices:
        if name not in config.indices:
            raise ValueError(f"search.health_indices entry '{name}' is not a configured index")


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings.

    Nested objects merge key by key; lists and scalars in ``override`` replace
    the base value wholesale.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
