"""Command implementations for MarketSearch CLI.

Encapsulates the work behind each command, separated from CLI parameter
handling and output formatting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from MarketSearch.core.query import FilterValue, SearchOptions
from MarketSearch.renderers import OutputWriter
from MarketSearch.services.search import MarketSearchService
from MarketSearch.utils.log import log

_BOUND_KEY = re.compile(r"^(min|max)[A-Z_]")
_INT_TEXT = re.compile(r"^[+-]?\d+$")


def parse_filter_value(key: str, text: str) -> FilterValue:
    """Convert one command-line filter value to a structured value.

    ``true``/``false`` become booleans, values under ``min*``/``max*`` keys
    become numbers and comma-separated values become an OR group.

    Args:
        key: Filter field name.
        text: Raw value text.

    Returns:
        Structured filter value.

    Raises:
        ValueError: If a bound value is not numeric.
    """
    value = text.strip()
    if _BOUND_KEY.match(key):
        if _INT_TEXT.match(value):
            return int(value)
        try:
            return float(value)
        except ValueError as error:
            raise ValueError(f"{key} expects a number, got {value!r}") from error
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def parse_filter_args(items: Iterable[str]) -> dict[str, FilterValue]:
    """Parse repeated ``key=value`` options into a filter mapping.

    Raises:
        ValueError: On a missing ``=``, an empty key or a repeated key.
    """
    filters: dict[str, FilterValue] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"filter must look like key=value, got {item!r}")
        if key in filters:
            raise ValueError(f"filter key given twice: {key}")
        filters[key] = parse_filter_value(key, raw)
    return filters


@dataclass(slots=True)
class SearchCommands:
    """Runs one CLI operation against the search service.

    Each coroutine writes its result through the output writer; none of
    them raise for search failures, which surface as degraded results.
    """

    search_service: MarketSearchService
    output_writer: OutputWriter

    async def search(self, index: str, term: str, options: SearchOptions) -> bool:
        """Search one index. Returns False when the result degraded."""
        log.debug("Search index=%s term=%r options=%s", index, term, options)
        result = await self.search_service.search(index, term, options)
        self.output_writer.write_result(result)
        return not result.degraded

    async def search_all(self, term: str, hits_per_page: int | None = None) -> bool:
        """Search the fan-out indices. Returns False when any index degraded."""
        per_index = None
        if hits_per_page is not None:
            options = SearchOptions(hits_per_page=hits_per_page)
            per_index = {name: options for name in self.search_service.fan_out_indices}
        aggregated = await self.search_service.search_all(term, per_index)
        self.output_writer.write_aggregate(aggregated)
        return not aggregated.failed

    async def lookup(self, index: str, ids: Sequence[str]) -> bool:
        """Fetch records by id. Returns False when any id was not found."""
        hits = await self.search_service.get_by_ids(index, ids)
        self.output_writer.write_hits(index, hits)
        requested = {str(item) for item in ids if str(item).strip()}
        missing = len(requested) - len(hits)
        if missing > 0:
            log.info("Ids not found: %d", missing)
        return missing <= 0

    async def counts(self) -> bool:
        """Fetch dashboard totals."""
        counts = await self.search_service.dashboard_counts()
        self.output_writer.write_counts(counts)
        return True

    async def health(self) -> bool:
        """Check the health indices."""
        healthy = await self.search_service.is_healthy()
        self.output_writer.write_health(healthy)
        return healthy
