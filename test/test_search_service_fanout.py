"""Tests for the multi-index search service."""

from __future__ import annotations

import asyncio
import re
import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from MarketSearch.core.errors import ErrorKind, SearchError
from MarketSearch.core.models import GenericHit, SearchResult, ShopHit
from MarketSearch.core.query import IndexSpec, QueryRequest, SearchOptions
from MarketSearch.services import presets
from MarketSearch.services.search import MarketSearchService

_INDICES = {
    "shops": IndexSpec(name="shops", kind="shop", id_field="shopId"),
    "products": IndexSpec(name="products", kind="product", id_field="productId"),
    "shop_products": IndexSpec(name="shop_products", kind="shop_product", id_field="shopProductId", sortable=False),
    "orders": IndexSpec(name="orders", kind="order"),
}

_ID_VALUE = re.compile(r':"([^"]+)"')


class _StubBackend:
    """Backend that records requests and answers from per-index rules."""

    name = "stub"

    def __init__(self, *, failing: set[str] | None = None, raising: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.raising = raising or set()
        self.requests: list[QueryRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self.checked: list[str] = []

    async def execute(self, request: QueryRequest) -> SearchResult:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if request.index in self.raising:
                raise RuntimeError("backend exploded")
            if request.index in self.failing:
                return SearchResult.empty(
                    request.index,
                    request.term,
                    attempts=3,
                    error=SearchError(ErrorKind.SERVER, "down", status_code=503),
                )
            ids = _ID_VALUE.findall(request.filters) if " OR " in request.filters or "Id:" in request.filters else []
            hits = tuple(GenericHit(object_id=value) for value in ids) or (GenericHit(object_id=f"{request.index}-1"),)
            total = 5 if 'status:"active"' in request.filters else 9
            return SearchResult(index=request.index, query=request.term, hits=hits, total_hits=total, attempts=1)
        finally:
            self.in_flight -= 1

    async def is_reachable(self, index: str) -> bool:
        self.checked.append(index)
        if index in self.raising:
            raise RuntimeError("reachability check exploded")
        return index not in self.failing

    async def close(self) -> None:
        self.closed = True


def _service(backend: _StubBackend) -> MarketSearchService:
    return MarketSearchService(backend=backend, indices=_INDICES)


class TestMarketSearchService(unittest.IsolatedAsyncioTestCase):
    async def test_search_uses_default_page_size(self) -> None:
        backend = _StubBackend()
        result = await _service(backend).search("shops", "  acme ")

        self.assertFalse(result.degraded)
        self.assertEqual(backend.requests[0].term, "acme")
        self.assertEqual(backend.requests[0].hits_per_page, 100)

    async def test_search_all_isolates_failures(self) -> None:
        backend = _StubBackend(failing={"products"}, raising={"shop_products"})
        aggregated = await _service(backend).search_all("lamp")

        self.assertEqual(list(aggregated), ["shops", "products", "shop_products"])
        self.assertFalse(aggregated["shops"].degraded)
        self.assertTrue(aggregated["products"].degraded)
        self.assertTrue(aggregated["shop_products"].degraded)
        self.assertIs(aggregated["shop_products"].error.kind, ErrorKind.TRANSPORT)
        self.assertEqual(set(aggregated.failed), {"products", "shop_products"})
        self.assertEqual(aggregated["shops"].hits[0].object_id, "shops-1")
        self.assertTrue(all(request.hits_per_page == 20 for request in backend.requests))

    async def test_raising_backend_keeps_requested_page(self) -> None:
        result = await _service(_StubBackend(raising={"shops"})).search("shops", "x", SearchOptions(page=2))

        self.assertTrue(result.degraded)
        self.assertEqual(result.page, 2)
        self.assertIs(result.error.kind, ErrorKind.TRANSPORT)

    async def test_search_all_runs_concurrently(self) -> None:
        backend = _StubBackend()
        await _service(backend).search_all()
        self.assertEqual(backend.max_in_flight, 3)

    async def test_search_all_custom_options(self) -> None:
        backend = _StubBackend()
        aggregated = await _service(backend).search_all(
            "x", {"orders": SearchOptions(hits_per_page=3), "shops": SearchOptions(page=1)}
        )
        self.assertEqual(list(aggregated), ["orders", "shops"])
        by_index = {request.index: request for request in backend.requests}
        self.assertEqual(by_index["orders"].hits_per_page, 3)
        self.assertEqual(by_index["shops"].page, 1)

    async def test_get_by_ids_chunks(self) -> None:
        backend = _StubBackend()
        ids = [f"s{i}" for i in range(250)]

        hits = await _service(backend).get_by_ids("shops", ids)

        self.assertEqual(len(backend.requests), 3)
        self.assertEqual([request.hits_per_page for request in backend.requests], [100, 100, 50])
        self.assertTrue(backend.requests[0].filters.startswith('shopId:"s0" OR shopId:"s1"'))
        self.assertEqual([hit.object_id for hit in hits], ids)
        self.assertEqual(len({hit.object_id for hit in hits}), 250)

    async def test_get_by_ids_removes_duplicates(self) -> None:
        backend = _StubBackend()
        hits = await _service(backend).get_by_ids("shops", ["a", "b", "a"], chunk_size=1)

        self.assertEqual(len(backend.requests), 2)
        self.assertEqual([hit.object_id for hit in hits], ["a", "b"])

    async def test_get_by_ids_empty_input(self) -> None:
        backend = _StubBackend()
        self.assertEqual(await _service(backend).get_by_ids("shops", []), [])
        self.assertEqual(backend.requests, [])

    async def test_get_by_ids_rejects_bad_chunk_size(self) -> None:
        with self.assertRaises(ValueError):
            await _service(_StubBackend()).get_by_ids("shops", ["a"], chunk_size=0)

    async def test_get_by_ids_failed_chunk_degrades(self) -> None:
        backend = _StubBackend(failing={"shops"})
        self.assertEqual(await _service(backend).get_by_ids("shops", ["a", "b"]), [])

    async def test_get_by_id(self) -> None:
        backend = _StubBackend()
        hit = await _service(backend).get_by_id("products", "p9")

        self.assertIsNotNone(hit)
        self.assertEqual(hit.object_id, "p9")
        self.assertEqual(backend.requests[0].filters, 'productId:"p9"')
        self.assertEqual(backend.requests[0].hits_per_page, 1)

    async def test_dashboard_counts(self) -> None:
        backend = _StubBackend(failing={"shop_products"})
        counts = await _service(backend).dashboard_counts()

        self.assertEqual(len(backend.requests), 6)
        self.assertTrue(all(request.hits_per_page == 0 for request in backend.requests))
        self.assertEqual((counts.total_shops, counts.active_shops), (9, 5))
        self.assertEqual((counts.total_products, counts.active_products), (9, 5))
        self.assertEqual((counts.total_shop_products, counts.active_shop_products), (0, 0))

    async def test_is_healthy(self) -> None:
        backend = _StubBackend(failing={"products"})
        self.assertTrue(await _service(backend).is_healthy())
        self.assertEqual(sorted(backend.checked), ["orders", "shop_products"])

        self.assertFalse(await _service(_StubBackend(failing={"orders"})).is_healthy())
        self.assertFalse(await _service(_StubBackend(raising={"shop_products"})).is_healthy())
        self.assertFalse(await _service(_StubBackend(failing={"shops"})).is_healthy(["shops"]))

    async def test_debounced_binds_index(self) -> None:
        backend = _StubBackend()
        coalescer = _service(backend).debounced("products", delay=0.01)
        coalescer.submit("a")
        future = coalescer.submit("ab")

        result = await asyncio.wait_for(future, timeout=1.0)

        self.assertEqual(result.index, "products")
        self.assertEqual([request.term for request in backend.requests], ["ab"])

    async def test_close_releases_backend(self) -> None:
        backend = _StubBackend()
        await _service(backend).close()
        self.assertTrue(backend.closed)


class TestPresets(unittest.IsolatedAsyncioTestCase):
    async def test_active_shops_filter(self) -> None:
        backend = _StubBackend()
        hits = await presets.search_active_shops(_service(backend), "acme")

        self.assertEqual(backend.requests[0].index, "shops")
        self.assertEqual(backend.requests[0].filters, 'status:"active"')
        self.assertEqual(len(hits), 1)

    async def test_gathering_items_on_ledger(self) -> None:
        backend = _StubBackend()
        await presets.search_gathering_items(_service(backend))

        request = backend.requests[0]
        self.assertEqual(request.index, "orders")
        self.assertEqual(request.hits_per_page, 1000)
        self.assertEqual(request.filters, '(gatheringStatus:"pending" OR gatheringStatus:"assigned")')

    async def test_distribution_items(self) -> None:
        backend = _StubBackend()
        await presets.search_distribution_items(_service(backend))

        self.assertEqual(
            backend.requests[0].filters,
            'allItemsGathered:true AND (distributionStatus:"ready" OR distributionStatus:"assigned")',
        )

    async def test_shop_orders(self) -> None:
        backend = _StubBackend()
        await presets.search_shop_orders(_service(backend), "s1")

        request = backend.requests[0]
        self.assertEqual(request.index, "orders")
        self.assertEqual(request.filters, 'shopId:"s1"')
        self.assertEqual(request.hits_per_page, 20)

    async def test_user_orders_side(self) -> None:
        backend = _StubBackend()
        service = _service(backend)
        await presets.search_user_orders(service, "u1", True)
        await presets.search_user_orders(service, "u1", False, options=SearchOptions(hits_per_page=5))

        self.assertEqual([r.index for r in backend.requests], ["orders", "orders"])
        self.assertEqual(backend.requests[0].filters, 'sellerId:"u1"')
        self.assertEqual(backend.requests[0].hits_per_page, 20)
        self.assertEqual(backend.requests[1].filters, 'buyerId:"u1"')
        self.assertEqual(backend.requests[1].hits_per_page, 5)

    async def test_orders_by_field_merges_caller_filters(self) -> None:
        backend = _StubBackend()
        service = _service(backend)
        options = SearchOptions(filters={"status": "paid", "buyerName": "old"})
        await presets.search_orders_by_field(service, "buyerName", "Ann", options)
        await presets.search_orders_by_field(service, "trackingNumber", "T-9")

        self.assertEqual(backend.requests[0].filters, 'status:"paid" AND buyerName:"Ann"')
        self.assertEqual(backend.requests[0].hits_per_page, 1000)
        self.assertEqual(backend.requests[0].term, "")
        self.assertEqual(backend.requests[1].filters, 'trackingNumber:"T-9"')
        self.assertEqual(options.filters, {"status": "paid", "buyerName": "old"})

    async def test_preset_failure_is_empty_list(self) -> None:
        backend = _StubBackend(failing={"products"})
        self.assertEqual(await presets.search_products_by_category(_service(backend), "Books"), [])


class TestHitModels(unittest.TestCase):
    def test_extra_is_read_only(self) -> None:
        hit = ShopHit(object_id="s1", shop_id="s1", shop_name="Acme", extra={"x": 1})
        with self.assertRaises(TypeError):
            hit.extra["y"] = 2  # type: ignore[index]


if __name__ == "__main__":
    unittest.main()
