"""Search service layer for MarketSearch.

Provides the caller-facing search service, request coalescing and the
factory that wires the configured search engine together.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from MarketSearch.services.debounce import RequestCoalescer
from MarketSearch.services.search import MarketSearchService, SearchBackend

if TYPE_CHECKING:
    import httpx

    from MarketSearch.config import AppConfig


def create_search_service(
    config: AppConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MarketSearchService:
    """Create a search service backed by the configured Algolia application.

    Args:
        config: Application configuration.
        transport: Optional httpx transport override (tests).

    Returns:
        Configured MarketSearchService instance.

    Raises:
        ValueError: If the application id or API key is missing.
    """
    from MarketSearch.config.algolia import require_credentials
    from MarketSearch.sources.algolia.client import AlgoliaApiClient
    from MarketSearch.sources.algolia.engine import AlgoliaSearchEngine

    app_id, api_key = require_credentials(config.algolia)
    engine = AlgoliaSearchEngine(
        client=AlgoliaApiClient(
            app_id=app_id,
            api_key=api_key,
            host=config.algolia.host or None,
            transport=transport,
        ),
        policy=config.retry,
        indices=config.indices,
    )
    return MarketSearchService(
        backend=engine,
        indices=config.indices,
        default_hits_per_page=config.search.hits_per_page,
        fan_out_indices=config.search.fan_out_indices,
        fan_out_hits_per_page=config.search.fan_out_hits_per_page,
        health_indices=config.search.health_indices,
        id_chunk_size=config.search.id_chunk_size,
        debounce_delay=config.search.debounce_delay,
    )


__all__ = [
    "MarketSearchService",
    "RequestCoalescer",
    "SearchBackend",
    "create_search_service",
]
