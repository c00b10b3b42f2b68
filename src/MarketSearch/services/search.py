"""Search service layer: caller contract and multi-index fan-out."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Protocol, Sequence

from MarketSearch.core.errors import ErrorKind, SearchError
from MarketSearch.core.models import AggregatedResult, DashboardCounts, Hit, SearchResult
from MarketSearch.core.query import IndexSpec, QueryRequest, SearchOptions
from MarketSearch.services.debounce import DEFAULT_DELAY, RequestCoalescer
from MarketSearch.sources.algolia.query import build_request, compile_id_filter
from MarketSearch.utils.log import log

DEFAULT_FAN_OUT_INDICES: tuple[str, ...] = ("shops", "products", "shop_products")
DEFAULT_HEALTH_INDICES: tuple[str, ...] = ("shop_products", "orders")
DEFAULT_ID_CHUNK_SIZE = 100


class SearchBackend(Protocol):
    """Protocol for an execution engine that runs one request at a time."""

    name: str

    async def execute(self, request: QueryRequest) -> SearchResult:
        """Execute a request; must degrade instead of raising."""
        raise NotImplementedError

    async def is_reachable(self, index: str) -> bool:
        """Check that a logical index answers."""
        raise NotImplementedError

    async def close(self) -> None:
        """Close resources held by the backend."""
        raise NotImplementedError


@dataclass(slots=True)
class MarketSearchService:
    """Application service exposing total search functions.

    None of the public coroutines raise for search failures: a failed
    sub-query becomes a degraded-empty `SearchResult` and is logged.
    """

    backend: SearchBackend
    indices: Mapping[str, IndexSpec] = field(default_factory=dict)
    default_hits_per_page: int = 100
    fan_out_indices: tuple[str, ...] = DEFAULT_FAN_OUT_INDICES
    health_indices: tuple[str, ...] = DEFAULT_HEALTH_INDICES
    fan_out_hits_per_page: int = 20
    id_chunk_size: int = DEFAULT_ID_CHUNK_SIZE
    debounce_delay: float = DEFAULT_DELAY

    async def search(
        self,
        index: str,
        term: str = "",
        options: SearchOptions | None = None,
    ) -> SearchResult:
        """Search one logical index.

        Args:
            index: Logical index name.
            term: Free-text query; may be empty.
            options: Paging, filters, projection and sort.

        Returns:
            SearchResult; degraded-empty on any failure.
        """
        request = build_request(index, term, options, default_hits_per_page=self.default_hits_per_page)
        return await self._execute(request)

    async def search_all(
        self,
        term: str = "",
        per_index_options: Mapping[str, SearchOptions] | None = None,
    ) -> AggregatedResult:
        """Search several indices concurrently and aggregate per index.

        Args:
            term: Free-text query shared by every sub-query.
            per_index_options: Logical index -> options. When omitted, the
                configured fan-out indices are searched with the fan-out page
                size.

        Returns:
            AggregatedResult keyed by logical index. A failing index only
            degrades its own entry.
        """
        if per_index_options is None:
            default = SearchOptions(hits_per_page=self.fan_out_hits_per_page)
            per_index_options = {index: default for index in self.fan_out_indices}

        names = tuple(per_index_options.keys())
        results = await asyncio.gather(
            *(self.search(name, term, per_index_options[name]) for name in names)
        )
        aggregated = AggregatedResult(results=dict(zip(names, results)))
        if aggregated.failed:
            log.warning("Fan-out search degraded: failed=%s", ", ".join(aggregated.failed))
        log.info(
            "Fan-out search completed: indices=%d total_hits=%d",
            len(aggregated),
            aggregated.total_hits,
        )
        return aggregated

    async def get_by_ids(
        self,
        index: str,
        ids: Sequence[str],
        *,
        chunk_size: int | None = None,
    ) -> list[Hit]:
        """Look up records by datastore id in concurrent fixed-size chunks.

        Args:
            index: Logical index name.
            ids: Identifiers to fetch; any length.
            chunk_size: Ids per query; defaults to the configured chunk size.

        Returns:
            Hits of all chunks concatenated, duplicates removed by object id.
            Chunk order is kept; order within a chunk is the service's.
        """
        size = self.id_chunk_size if chunk_size is None else chunk_size
        if size <= 0:
            raise ValueError("chunk_size must be positive")
        unique_ids = list(dict.fromkeys(str(item) for item in ids if str(item).strip()))
        if not unique_ids:
            return []

        id_field = self._id_field(index)
        chunks = [unique_ids[start:start + size] for start in range(0, len(unique_ids), size)]
        requests = [
            QueryRequest(
                index=index,
                filters=compile_id_filter(id_field, chunk),
                hits_per_page=len(chunk),
            )
            for chunk in chunks
        ]
        log.debug("Id lookup: index=%s ids=%d chunks=%d", index, len(unique_ids), len(chunks))
        results = await asyncio.gather(*(self._execute(request) for request in requests))

        hits: list[Hit] = []
        seen: set[str] = set()
        failed = 0
        for result in results:
            if result.degraded:
                failed += 1
            for hit in result.hits:
                if hit.object_id in seen:
                    continue
                seen.add(hit.object_id)
                hits.append(hit)
        if failed:
            log.warning("Id lookup degraded: index=%s failed_chunks=%d/%d", index, failed, len(chunks))
        return hits

    async def get_by_id(self, index: str, record_id: str) -> Hit | None:
        """Fetch a single record by datastore id, or None when absent."""
        id_field = self._id_field(index)
        result = await self.search(
            index,
            "",
            SearchOptions(hits_per_page=1, filters={id_field: record_id}),
        )
        return result.hits[0] if result.hits else None

    async def dashboard_counts(self) -> DashboardCounts:
        """Fetch overview totals with six concurrent zero-hit queries."""
        active = {"status": "active"}
        queries = (
            ("shops", None),
            ("shops", active),
            ("products", None),
            ("products", active),
            ("shop_products", None),
            ("shop_products", active),
        )
        results = await asyncio.gather(
            *(self.search(index, "", SearchOptions(hits_per_page=0, filters=filters)) for index, filters in queries)
        )
        totals = [result.total_hits for result in results]
        return DashboardCounts(
            total_shops=totals[0],
            active_shops=totals[1],
            total_products=totals[2],
            active_products=totals[3],
            total_shop_products=totals[4],
            active_shop_products=totals[5],
        )

    async def is_healthy(self, indices: Iterable[str] | None = None) -> bool:
        """Check indices concurrently; healthy only when all answer.

        By default the listing join index and the order ledger are checked.
        """
        names = tuple(indices) if indices is not None else self.health_indices
        outcomes = await asyncio.gather(
            *(self.backend.is_reachable(name) for name in names),
            return_exceptions=True,
        )
        healthy = True
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                log.warning("Health check failed: index=%s error=%s", name, outcome)
                healthy = False
            elif not outcome:
                healthy = False
        return healthy

    def debounced(self, index: str, *, delay: float | None = None) -> RequestCoalescer[SearchResult]:
        """Create a coalescer that debounces `search` calls for one field.

        The returned coalescer's ``submit(term, options)`` searches ``index``.
        """

        async def _search(term: str = "", options: SearchOptions | None = None) -> SearchResult:
            return await self.search(index, term, options)

        return RequestCoalescer(_search, delay=self.debounce_delay if delay is None else delay)

    async def close(self) -> None:
        """Close the backend and release external resources."""
        try:
            await self.backend.close()
        except Exception as error:  # noqa: BLE001 - close failure must be isolated
            log.warning("Search backend close failed: backend=%s error=%s", getattr(self.backend, "name", "unknown"), error)

    async def _execute(self, request: QueryRequest) -> SearchResult:
        try:
            return await self.backend.execute(request)
        except Exception as error:  # noqa: BLE001 - search boundary never raises
            log.error("Search backend raised: index=%s error=%s", request.index, error)
            wrapped = error if isinstance(error, SearchError) else SearchError(ErrorKind.TRANSPORT, repr(error))
            return SearchResult.empty(
                request.index,
                request.term,
                page=request.page,
                hits_per_page=request.hits_per_page,
                error=wrapped,
            )

    def _id_field(self, index: str) -> str:
        spec = self.indices.get(index)
        return spec.id_field if spec is not None else "objectID"
