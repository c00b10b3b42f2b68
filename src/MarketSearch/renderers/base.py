"""Base classes for output writers.

Provides abstraction for writing search results to console or stdout JSON.
Separates control flow from output logic for better testability.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from MarketSearch.core.models import AggregatedResult, DashboardCounts, Hit, SearchResult


class OutputWriter(ABC):
    """Abstract base class for command output writers."""

    @abstractmethod
    def write_result(self, result: SearchResult) -> None:
        """Write the result of a single-index search.

        Args:
            result: Search result, possibly degraded.
        """

    @abstractmethod
    def write_aggregate(self, aggregated: AggregatedResult) -> None:
        """Write per-index results of a fan-out search."""

    @abstractmethod
    def write_hits(self, index: str, hits: Sequence[Hit]) -> None:
        """Write records returned by an id lookup.

        Args:
            index: Logical index the records came from.
            hits: Records in lookup order.
        """

    @abstractmethod
    def write_counts(self, counts: DashboardCounts) -> None:
        """Write dashboard totals."""

    @abstractmethod
    def write_health(self, healthy: bool) -> None:
        """Write the outcome of a reachability check."""

    @abstractmethod
    def finalize(self, action: str) -> None:
        """Finalize output (e.g., flush accumulated payloads).

        Args:
            action: The CLI command name (e.g., 'search').
        """
