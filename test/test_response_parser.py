"""Tests for response decoding into typed hits."""

import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from MarketSearch.core.errors import ErrorKind, SearchError
from MarketSearch.core.models import GenericHit, HitKind, OrderHit, ShopHit, ShopProductHit
from MarketSearch.sources.algolia.parser import parse_response, parse_timestamp


class TestParseTimestamp(unittest.TestCase):
    def test_datastore_object(self) -> None:
        parsed = parse_timestamp({"_seconds": 1700000000, "_nanoseconds": 500000000})
        self.assertEqual(parsed, datetime.fromtimestamp(1700000000.5, tz=timezone.utc))

    def test_epoch_seconds_and_millis(self) -> None:
        expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        self.assertEqual(parse_timestamp(1700000000), expected)
        self.assertEqual(parse_timestamp(1700000000000), expected)

    def test_iso_string(self) -> None:
        self.assertEqual(
            parse_timestamp("2024-03-01T10:00:00Z"),
            datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
        )
        self.assertEqual(parse_timestamp("2024-03-01").tzinfo, timezone.utc)

    def test_unparseable(self) -> None:
        for value in (None, True, "not a date", {"seconds": "x"}, [], ""):
            self.assertIsNone(parse_timestamp(value))


class TestParseResponse(unittest.TestCase):
    def test_shop_hits(self) -> None:
        payload = {
            "hits": [
                {
                    "objectID": "s1",
                    "shopName": "Acme",
                    "status": "active",
                    "verified": True,
                    "rating": 4.5,
                    "location": {"city": "Lyon"},
                    "createdAt": {"_seconds": 1700000000, "_nanoseconds": 0},
                    "_highlightResult": {"shopName": {"value": "<em>Acme</em>"}},
                }
            ],
            "nbHits": 41,
            "page": 2,
            "nbPages": 3,
            "hitsPerPage": 20,
            "processingTimeMS": 4,
        }

        parsed = parse_response(payload, kind=HitKind.SHOP)

        self.assertEqual(parsed.total_hits, 41)
        self.assertEqual(parsed.page, 2)
        self.assertEqual(parsed.total_pages, 3)
        self.assertEqual(parsed.processing_time_ms, 4)
        shop = parsed.hits[0]
        self.assertIsInstance(shop, ShopHit)
        self.assertEqual(shop.shop_id, "s1")
        self.assertEqual(shop.city, "Lyon")
        self.assertTrue(shop.verified)
        self.assertIn("_highlightResult", shop.extra)
        self.assertIn("location", shop.extra)

    def test_order_and_shop_product_hits(self) -> None:
        order = parse_response(
            {"hits": [{"objectID": "o1", "gatheringStatus": "pending", "quantity": 2, "timestamp": 1700000000}]},
            kind=HitKind.ORDER,
        ).hits[0]
        self.assertIsInstance(order, OrderHit)
        self.assertEqual(order.gathering_status, "pending")
        self.assertEqual(order.quantity, 2)
        self.assertIsNotNone(order.timestamp)

        listing = parse_response(
            {"hits": [{"objectID": "sp1", "shopId": "s1", "productId": "p1", "featured": True, "price": "12"}]},
            kind=HitKind.SHOP_PRODUCT,
        ).hits[0]
        self.assertIsInstance(listing, ShopProductHit)
        self.assertTrue(listing.featured)
        self.assertEqual(listing.price, 0.0)

    def test_malformed_hits_are_skipped(self) -> None:
        parsed = parse_response({"hits": ["junk", {"name": "no id"}, {"objectID": "g1", "a": 1}]})
        self.assertEqual(len(parsed.hits), 1)
        self.assertIsInstance(parsed.hits[0], GenericHit)
        self.assertEqual(dict(parsed.hits[0].extra), {"a": 1})
        self.assertEqual(parsed.total_hits, 1)

    def test_defaults_when_metadata_missing(self) -> None:
        parsed = parse_response({"hits": []}, hits_per_page=15)
        self.assertEqual(parsed.hits_per_page, 15)
        self.assertIsNone(parsed.processing_time_ms)

    def test_missing_hits_raises_decode(self) -> None:
        with self.assertRaises(SearchError) as ctx:
            parse_response({"hits": {"a": 1}})
        self.assertIs(ctx.exception.kind, ErrorKind.DECODE)


if __name__ == "__main__":
    unittest.main()
