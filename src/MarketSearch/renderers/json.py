"""JSON output renderers.

Renders typed hits and results into JSON-serializable objects.
Provides JsonOutputWriter, which prints one JSON document to stdout.
"""

from __future__ import annotations

import json
from dataclasses import fields
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

import click

from MarketSearch.core.models import AggregatedResult, DashboardCounts, Hit, SearchResult
from MarketSearch.renderers.base import OutputWriter


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def render_hit(hit: Hit) -> dict[str, Any]:
    """Convert one typed hit into a JSON-serializable dict."""
    return {f.name: _jsonable(getattr(hit, f.name)) for f in fields(hit)}


def render_json(hits: Iterable[Hit]) -> list[dict]:
    """Render hits into JSON-serializable Python objects.

    Args:
        hits: Iterable of typed hits.

    Returns:
        A list of dicts, one per hit, each tagged with its ``kind``.
    """
    return [render_hit(hit) for hit in hits]


def render_result(result: SearchResult) -> dict[str, Any]:
    """Convert a search result, including degradation details, to a dict."""
    error = result.error
    return {
        "index": result.index,
        "query": result.query,
        "total_hits": result.total_hits,
        "page": result.page,
        "total_pages": result.total_pages,
        "hits_per_page": result.hits_per_page,
        "processing_time_ms": result.processing_time_ms,
        "attempts": result.attempts,
        "degraded": result.degraded,
        "error": (
            {"kind": error.kind.value, "status_code": error.status_code, "message": error.message}
            if error is not None
            else None
        ),
        "hits": render_json(result.hits),
    }


class JsonOutputWriter(OutputWriter):
    """Accumulate payloads and print them as one JSON document on finalize."""

    def __init__(self, *, indent: int | None = 2) -> None:
        """Initialize JSON writer.

        Args:
            indent: Indentation passed to `json.dumps`; None for compact output.
        """
        self.indent = indent
        self.payloads: list[Any] = []

    def write_result(self, result: SearchResult) -> None:
        """Accumulate a single search result."""
        self.payloads.append(render_result(result))

    def write_aggregate(self, aggregated: AggregatedResult) -> None:
        """Accumulate fan-out results keyed by index."""
        self.payloads.append(
            {
                "total_hits": aggregated.total_hits,
                "failed": list(aggregated.failed),
                "results": {index: render_result(aggregated[index]) for index in aggregated},
            }
        )

    def write_hits(self, index: str, hits: Sequence[Hit]) -> None:
        """Accumulate id lookup results."""
        self.payloads.append({"index": index, "found": len(hits), "hits": render_json(hits)})

    def write_counts(self, counts: DashboardCounts) -> None:
        """Accumulate dashboard totals."""
        self.payloads.append({f.name: getattr(counts, f.name) for f in fields(counts)})

    def write_health(self, healthy: bool) -> None:
        """Accumulate health check outcome."""
        self.payloads.append({"healthy": healthy})

    def finalize(self, action: str) -> None:
        """Print accumulated payloads to stdout.

        A single payload is printed bare; several are printed as a list.

        Args:
            action: The CLI command name (unused; kept for the writer API).
        """
        if not self.payloads:
            return
        document = self.payloads[0] if len(self.payloads) == 1 else self.payloads
        click.echo(json.dumps(document, ensure_ascii=False, indent=self.indent))
        self.payloads.clear()
