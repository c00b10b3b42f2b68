"""Algolia REST client.

Performs exactly one HTTP round-trip per call against an index query
endpoint and normalizes every failure into a `SearchError`. Retry, backoff and
replica selection are the execution engine's job.
"""

from __future__ import annotations

import asyncio
import socket
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from MarketSearch.core.errors import ErrorKind, SearchError
from MarketSearch.utils.log import log

HOST_TEMPLATE = "https://{app_id}-dsn.algolia.net"
QUERY_PATH = "/1/indexes/{index}/query"
REACHABILITY_TIMEOUT = 5.0

HEADERS = {
    "User-Agent": "market-search/0.1 (Python)",
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def _is_dns_failure(error: BaseException) -> bool:
    """Walk the exception chain looking for a resolver failure."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, socket.gaierror):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def classify_transport_error(error: httpx.TransportError) -> SearchError:
    """Map an httpx transport exception onto the structured error kinds.

    Args:
        error: Exception raised by httpx before a response was received.

    Returns:
        SearchError with kind TIMEOUT, DNS, CONNECTION or TRANSPORT.
    """
    if isinstance(error, httpx.TimeoutException):
        return SearchError(ErrorKind.TIMEOUT, f"{type(error).__name__}: {error}")
    if isinstance(error, httpx.ConnectError):
        kind = ErrorKind.DNS if _is_dns_failure(error) else ErrorKind.CONNECTION
        return SearchError(kind, f"{type(error).__name__}: {error}")
    if isinstance(error, httpx.NetworkError):
        return SearchError(ErrorKind.CONNECTION, f"{type(error).__name__}: {error}")
    return SearchError(ErrorKind.TRANSPORT, f"{type(error).__name__}: {error}")


class AlgoliaApiClient:
    """Low-level async HTTP client for the Algolia search REST API.

    Responsible only for issuing requests and returning decoded JSON bodies.
    Construct one per application and pass it to the engine; the underlying
    connection pool is shared by every concurrent search.
    """

    def __init__(
        self,
        *,
        app_id: str,
        api_key: str,
        host: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client with a reusable connection pool.

        Args:
            app_id: Algolia application id.
            api_key: Search-only API key.
            host: Base URL override; defaults to the application's DSN host.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.app_id = app_id
        base_url = host or HOST_TEMPLATE.format(app_id=app_id)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                **HEADERS,
                "X-Algolia-Application-Id": app_id,
                "X-Algolia-API-Key": api_key,
            },
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client and release pooled connections."""
        await self._client.aclose()

    async def __aenter__(self) -> AlgoliaApiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def post_query(
        self,
        index: str,
        body: Mapping[str, Any],
        *,
        timeout: float,
    ) -> dict[str, Any]:
        """POST one query to a physical index.

        Args:
            index: Physical index name (replica already resolved).
            body: JSON envelope carrying the encoded ``params`` blob.
            timeout: Deadline for the whole round-trip, in seconds.

        Returns:
            Decoded JSON object.

        Raises:
            SearchError: On transport failure, deadline expiry, non-2xx status,
                or a body that is not a JSON object.
        """
        path = QUERY_PATH.format(index=quote(index, safe=""))
        try:
            response = await asyncio.wait_for(
                self._client.post(path, json=dict(body), timeout=httpx.Timeout(timeout)),
                timeout=timeout,
            )
        except asyncio.TimeoutError as error:
            raise SearchError(ErrorKind.TIMEOUT, f"request timeout after {timeout:.1f}s") from error
        except httpx.DecodingError as error:
            raise SearchError(ErrorKind.DECODE, f"undecodable response body: {error}") from error
        except httpx.TransportError as error:
            raise classify_transport_error(error) from error
        except httpx.HTTPError as error:
            raise SearchError(ErrorKind.TRANSPORT, f"{type(error).__name__}: {error}") from error

        if response.status_code >= 400:
            raise SearchError.from_status(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as error:
            raise SearchError(ErrorKind.DECODE, f"invalid JSON body: {error}") from error
        if not isinstance(payload, dict):
            raise SearchError(ErrorKind.DECODE, f"expected JSON object, got {type(payload).__name__}")
        return payload

    async def is_reachable(self, index: str, *, timeout: float = REACHABILITY_TIMEOUT) -> bool:
        """Check an index with a one-hit empty query.

        Args:
            index: Physical index name.
            timeout: Deadline in seconds.

        Returns:
            True when the service answered with a status below 500.
        """
        try:
            await self.post_query(index, {"params": "query=&hitsPerPage=1"}, timeout=timeout)
        except SearchError as error:
            if error.kind is ErrorKind.CLIENT or error.kind is ErrorKind.DECODE:
                return True
            log.warning("Search service unreachable: index=%s error=%s", index, error)
            return False
        return True
