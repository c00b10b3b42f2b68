"""Retry and timeout policy configuration."""

from __future__ import annotations

from typing import Any, Mapping

from MarketSearch.config.common import (
    expect_float,
    expect_float_list,
    expect_int,
    get_optional_value,
    get_section,
)
from MarketSearch.sources.algolia.retry import RetryPolicy

_DEFAULTS = RetryPolicy()


def load_retry(raw: Mapping[str, Any]) -> RetryPolicy:
    """Load the optional ``retry`` section into a `RetryPolicy`.

    Missing keys fall back to the reference policy (3 attempts, 0.5s base,
    10% jitter, 2s cap, 3s/5s/8s timeouts).

    Raises:
        TypeError: If config types are invalid.
        ValueError: If the resulting policy is inconsistent.
    """
    section = get_section(raw, "retry", required=False)
    progression = get_optional_value(section, "timeout_progression", None)
    timeouts = (
        tuple(expect_float_list(progression, "retry.timeout_progression"))
        if progression is not None
        else _DEFAULTS.timeout_progression
    )
    max_attempts = expect_int(
        get_optional_value(section, "max_attempts", _DEFAULTS.max_attempts), "retry.max_attempts"
    )
    delay_factor = expect_float(
        get_optional_value(section, "delay_factor", _DEFAULTS.delay_factor), "retry.delay_factor"
    )
    randomization_factor = expect_float(
        get_optional_value(section, "randomization_factor", _DEFAULTS.randomization_factor),
        "retry.randomization_factor",
    )
    max_delay = expect_float(get_optional_value(section, "max_delay", _DEFAULTS.max_delay), "retry.max_delay")

    check_retry_values(
        max_attempts=max_attempts,
        delay_factor=delay_factor,
        randomization_factor=randomization_factor,
        max_delay=max_delay,
        timeouts=timeouts,
    )
    return RetryPolicy(
        max_attempts=max_attempts,
        delay_factor=delay_factor,
        randomization_factor=randomization_factor,
        max_delay=max_delay,
        timeout_progression=timeouts,
    )


def check_retry_values(
    *,
    max_attempts: int,
    delay_factor: float,
    randomization_factor: float,
    max_delay: float,
    timeouts: tuple[float, ...],
) -> None:
    """Validate retry values with config key paths in error messages."""
    if max_attempts <= 0:
        raise ValueError("retry.max_attempts must be positive")
    if delay_factor < 0:
        raise ValueError("retry.delay_factor must be >= 0")
    if not 0.0 <= randomization_factor <= 1.0:
        raise ValueError("retry.randomization_factor must be between 0.0 and 1.0")
    if max_delay < delay_factor:
        raise ValueError("retry.max_delay must be >= retry.delay_factor")
    if not timeouts:
        raise ValueError("retry.timeout_progression must not be empty")
    if any(value <= 0 for value in timeouts):
        raise ValueError("retry.timeout_progression values must be positive")
