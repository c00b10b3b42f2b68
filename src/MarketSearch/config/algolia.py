"""Search-service connection configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from MarketSearch.config.common import (
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class AlgoliaConfig:
    """Store validated connection settings.

    The API key itself never lives in YAML; only the name of the environment
    variable holding it does.
    """

    app_id: str
    api_key_env: str
    api_key: str
    host: str


def load_algolia(raw: Mapping[str, Any]) -> AlgoliaConfig:
    """Load the ``algolia`` section.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "algolia", required=True)
    api_key_env = expect_str(
        get_required_value(section, "api_key_env", "algolia.api_key_env"),
        "algolia.api_key_env",
    )
    return AlgoliaConfig(
        app_id=expect_str(get_optional_value(section, "app_id", ""), "algolia.app_id").strip(),
        api_key_env=api_key_env,
        api_key=_load_api_key_from_env(api_key_env),
        host=expect_str(get_optional_value(section, "host", ""), "algolia.host").strip(),
    )


def check_algolia(config: AlgoliaConfig) -> None:
    """Validate connection settings.

    Application id and API key may be empty at load time so that offline
    commands work; `require_credentials` enforces them before connecting.
    """
    if not config.api_key_env.strip():
        raise ValueError("algolia.api_key_env must not be empty")
    if config.host and not config.host.startswith(("http://", "https://")):
        raise ValueError("algolia.host must start with http:// or https://")


def require_credentials(config: AlgoliaConfig) -> tuple[str, str]:
    """Return ``(app_id, api_key)`` or raise with a hint about where to set them.

    Raises:
        ValueError: If either credential is missing.
    """
    if not config.app_id:
        raise ValueError("Missing required config: algolia.app_id")
    if not config.api_key:
        raise ValueError(
            f"{config.api_key_env} environment variable not set. "
            "Set it in your .env file or shell environment."
        )
    return config.app_id, config.api_key


def _load_api_key_from_env(api_key_env: str) -> str:
    return os.getenv(api_key_env, "").strip()
