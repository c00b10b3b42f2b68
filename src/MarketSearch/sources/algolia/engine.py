"""Algolia search execution engine.

Composes replica selection, request encoding, the HTTP client, the retry
policy and response parsing into a `SearchBackend` whose `execute` never
raises for search failures.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping

from MarketSearch.core.errors import ErrorKind, SearchError
from MarketSearch.core.models import HitKind, SearchResult
from MarketSearch.core.query import IndexSpec, QueryRequest
from MarketSearch.sources.algolia.client import AlgoliaApiClient
from MarketSearch.sources.algolia.parser import parse_response
from MarketSearch.sources.algolia.query import build_body
from MarketSearch.sources.algolia.replicas import DEFAULT_UNSORTABLE, select_replica
from MarketSearch.sources.algolia.retry import RetryPolicy, RetryState
from MarketSearch.utils.log import log

Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class AlgoliaSearchEngine:
    """`SearchBackend` implementation backed by Algolia.

    Attempts within one logical request are strictly sequential; separate
    `execute` calls share nothing but the client's connection pool, so any
    number of them may run concurrently.
    """

    client: AlgoliaApiClient
    policy: RetryPolicy = field(default_factory=RetryPolicy)
    indices: Mapping[str, IndexSpec] = field(default_factory=dict)
    sleep: Sleep = asyncio.sleep
    rng: random.Random | None = None
    name: str = "algolia"

    def resolve_index(self, index: str) -> IndexSpec:
        """Return the configured description of a logical index, or a generic one."""
        spec = self.indices.get(index)
        if spec is not None:
            return spec
        return IndexSpec(name=index, sortable=index not in DEFAULT_UNSORTABLE)

    def physical_index(self, request: QueryRequest) -> str:
        """Resolve the physical (possibly replica) index for a request."""
        spec = self.resolve_index(request.index)
        unsortable = frozenset() if spec.sortable else frozenset({spec.name})
        return select_replica(spec.name, request.sort_by, unsortable=unsortable)

    async def execute(self, request: QueryRequest) -> SearchResult:
        """Run one logical search with bounded retries.

        Args:
            request: Call-specific request with compiled filters.

        Returns:
            SearchResult with typed hits on success, or a degraded-empty result
            carrying the last error on client error, decode error or exhaustion.
        """
        spec = self.resolve_index(request.index)
        kind = _hit_kind(spec.kind)
        physical = self.physical_index(request)
        body = build_body(request)
        state = RetryState()

        log.debug(
            "Search request: index=%s physical=%s query=%r filters=%r page=%d hits_per_page=%d",
            request.index,
            physical,
            request.term,
            request.filters,
            request.page,
            request.hits_per_page,
        )

        for attempt in range(1, self.policy.max_attempts + 1):
            state.begin_attempt()
            timeout = self.policy.timeout_for(attempt)
            log.debug(
                "Search attempt %d/%d: index=%s timeout=%.1fs",
                attempt,
                self.policy.max_attempts,
                physical,
                timeout,
            )
            try:
                payload = await self.client.post_query(physical, body, timeout=timeout)
                parsed = parse_response(payload, kind=kind, hits_per_page=request.hits_per_page)
            except SearchError as error:
                state.record_failure(error)
                if error.kind is ErrorKind.CLIENT:
                    log.warning("Search client error (not retried): index=%s error=%s", physical, error)
                    return self._degraded(request, state)
                if error.kind is ErrorKind.DECODE:
                    log.warning("Search response decode failed (not retried): index=%s error=%s", physical, error)
                    return self._degraded(request, state)
                if not self.policy.should_retry(error, attempt):
                    break
                delay = self.policy.delay_before_retry(attempt, self.rng)
                log.info(
                    "Search retry %d/%d after %.2fs: index=%s error=%s",
                    attempt,
                    self.policy.max_attempts - 1,
                    delay,
                    physical,
                    error,
                )
                await self.sleep(delay)
                continue

            log.debug(
                "Search ok: index=%s hits=%d total=%d processing=%sms attempts=%d",
                physical,
                len(parsed.hits),
                parsed.total_hits,
                parsed.processing_time_ms,
                attempt,
            )
            return SearchResult(
                index=request.index,
                query=request.term,
                hits=parsed.hits,
                total_hits=parsed.total_hits,
                page=parsed.page,
                total_pages=parsed.total_pages,
                hits_per_page=parsed.hits_per_page,
                processing_time_ms=parsed.processing_time_ms,
                attempts=attempt,
            )

        log.error(
            "Search failed after %d attempts (%.2fs): index=%s error=%s",
            state.attempt,
            state.elapsed,
            physical,
            state.last_error,
        )
        return self._degraded(request, state)

    async def is_reachable(self, index: str) -> bool:
        """Check whether the base index of a logical index answers."""
        return await self.client.is_reachable(self.resolve_index(index).name)

    async def close(self) -> None:
        """Release the HTTP client."""
        await self.client.close()

    @staticmethod
    def _degraded(request: QueryRequest, state: RetryState) -> SearchResult:
        return SearchResult.empty(
            request.index,
            request.term,
            page=request.page,
            hits_per_page=request.hits_per_page,
            attempts=state.attempt,
            error=state.last_error,
        )


def _hit_kind(value: str) -> HitKind:
    try:
        return HitKind(value)
    except ValueError:
        return HitKind.GENERIC
