"""Algolia response parser.

Validates the loosely typed JSON returned by the query endpoint and maps each
hit onto the typed record for its index kind.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

from dateutil import parser as dt_parser

from MarketSearch.core.errors import ErrorKind, SearchError
from MarketSearch.core.models import (
    GenericHit,
    Hit,
    HitKind,
    OrderHit,
    ProductHit,
    ShopHit,
    ShopProductHit,
)
from MarketSearch.utils.log import log

# Epoch values above this are milliseconds rather than seconds.
_EPOCH_MS_THRESHOLD = 10**11


@dataclass(frozen=True, slots=True)
class ParsedResponse:
    """Decoded hits plus paging metadata from one query response."""

    hits: tuple[Hit, ...]
    total_hits: int
    page: int
    total_pages: int
    hits_per_page: int
    processing_time_ms: int | None


def parse_response(
    payload: Mapping[str, Any],
    *,
    kind: HitKind = HitKind.GENERIC,
    hits_per_page: int = 0,
) -> ParsedResponse:
    """Decode a query response body.

    Args:
        payload: JSON object returned by the service.
        kind: Record kind of the queried index.
        hits_per_page: Requested page size, used when the body omits it.

    Returns:
        ParsedResponse with typed hits.

    Raises:
        SearchError: With kind DECODE when ``hits`` is missing or not a list.
    """
    raw_hits = payload.get("hits")
    if not isinstance(raw_hits, list):
        raise SearchError(ErrorKind.DECODE, "response has no 'hits' array")

    hits = parse_hits(raw_hits, kind=kind)
    return ParsedResponse(
        hits=hits,
        total_hits=_int_or(payload.get("nbHits"), len(hits)),
        page=_int_or(payload.get("page"), 0),
        total_pages=_int_or(payload.get("nbPages"), 0),
        hits_per_page=_int_or(payload.get("hitsPerPage"), hits_per_page),
        processing_time_ms=_opt_int(payload.get("processingTimeMS")),
    )


def parse_hits(raw_hits: Sequence[Any], *, kind: HitKind) -> tuple[Hit, ...]:
    """Map raw hit objects to typed records, dropping malformed entries."""
    builder = _BUILDERS[kind]
    hits: list[Hit] = []
    for raw in raw_hits:
        if not isinstance(raw, Mapping):
            log.debug("Skip non-object hit: %r", raw)
            continue
        object_id = _safe_str(raw.get("objectID"))
        if not object_id:
            log.debug("Skip hit without objectID: keys=%s", sorted(raw.keys()))
            continue
        hits.append(builder(object_id, raw))
    return tuple(hits)


def _build_shop(object_id: str, raw: Mapping[str, Any]) -> ShopHit:
    location = raw.get("location")
    city = _safe_str(location.get("city")) if isinstance(location, Mapping) else ""
    return ShopHit(
        object_id=object_id,
        shop_id=_safe_str(raw.get("shopId")) or object_id,
        shop_name=_safe_str(raw.get("shopName")),
        owner_name=_safe_str(raw.get("ownerName")),
        owner_id=_safe_str(raw.get("ownerId")),
        status=_safe_str(raw.get("status")),
        category=_safe_str(raw.get("category")) or None,
        city=city or None,
        rating=_opt_float(raw.get("rating")),
        total_products=_opt_int(raw.get("totalProducts")),
        verified=raw.get("verified") is True,
        created_at=parse_timestamp(raw.get("createdAt")),
        extra=_extra(raw, _SHOP_KEYS),
    )


def _build_product(object_id: str, raw: Mapping[str, Any]) -> ProductHit:
    return ProductHit(
        object_id=object_id,
        product_id=_safe_str(raw.get("productId")) or object_id,
        product_name=_safe_str(raw.get("productName")),
        category=_safe_str(raw.get("category")),
        price=_opt_float(raw.get("price")) or 0.0,
        status=_safe_str(raw.get("status")),
        brand_model=_safe_str(raw.get("brandModel")) or None,
        sub_category=_safe_str(raw.get("subCategory")) or None,
        stock_quantity=_opt_int(raw.get("stockQuantity")),
        rating=_opt_float(raw.get("rating")),
        review_count=_opt_int(raw.get("reviewCount")),
        tags=_str_tuple(raw.get("tags")),
        created_at=parse_timestamp(raw.get("createdAt")),
        extra=_extra(raw, _PRODUCT_KEYS),
    )


def _build_shop_product(object_id: str, raw: Mapping[str, Any]) -> ShopProductHit:
    return ShopProductHit(
        object_id=object_id,
        shop_product_id=_safe_str(raw.get("shopProductId")) or object_id,
        shop_id=_safe_str(raw.get("shopId")),
        product_id=_safe_str(raw.get("productId")),
        product_name=_safe_str(raw.get("productName")),
        shop_name=_safe_str(raw.get("shopName")),
        category=_safe_str(raw.get("category")),
        price=_opt_float(raw.get("price")) or 0.0,
        shop_price=_opt_float(raw.get("shopPrice")),
        stock_quantity=_opt_int(raw.get("stockQuantity")),
        status=_safe_str(raw.get("status")),
        discount=_opt_float(raw.get("discount")),
        featured=raw.get("featured") is True,
        created_at=parse_timestamp(raw.get("createdAt")),
        extra=_extra(raw, _SHOP_PRODUCT_KEYS),
    )


def _build_order(object_id: str, raw: Mapping[str, Any]) -> OrderHit:
    return OrderHit(
        object_id=object_id,
        order_id=_safe_str(raw.get("orderId")) or object_id,
        product_name=_safe_str(raw.get("productName")),
        brand_model=_safe_str(raw.get("brandModel")),
        buyer_name=_safe_str(raw.get("buyerName")),
        seller_name=_safe_str(raw.get("sellerName")),
        category=_safe_str(raw.get("category")),
        gathering_status=_safe_str(raw.get("gatheringStatus")) or None,
        shipment_status=_safe_str(raw.get("shipmentStatus")) or None,
        distribution_status=_safe_str(raw.get("distributionStatus")) or None,
        price=_opt_float(raw.get("price")) or 0.0,
        quantity=_opt_int(raw.get("quantity")) or 0,
        timestamp=parse_timestamp(raw.get("timestamp")),
        extra=_extra(raw, _ORDER_KEYS),
    )


def _build_generic(object_id: str, raw: Mapping[str, Any]) -> GenericHit:
    return GenericHit(object_id=object_id, extra=_extra(raw, frozenset({"objectID"})))


_SHOP_KEYS = frozenset(
    {
        "objectID", "shopId", "shopName", "ownerName", "ownerId", "status", "category",
        "rating", "totalProducts", "verified", "createdAt",
    }
)
_PRODUCT_KEYS = frozenset(
    {
        "objectID", "productId", "productName", "category", "price", "status", "brandModel",
        "subCategory", "stockQuantity", "rating", "reviewCount", "tags", "createdAt",
    }
)
_SHOP_PRODUCT_KEYS = frozenset(
    {
        "objectID", "shopProductId", "shopId", "productId", "productName", "shopName",
        "category", "price", "shopPrice", "stockQuantity", "status", "discount", "featured",
        "createdAt",
    }
)
_ORDER_KEYS = frozenset(
    {
        "objectID", "orderId", "productName", "brandModel", "buyerName", "sellerName",
        "category", "gatheringStatus", "shipmentStatus", "distributionStatus", "price",
        "quantity", "timestamp",
    }
)

_BUILDERS: dict[HitKind, Callable[[str, Mapping[str, Any]], Hit]] = {
    HitKind.SHOP: _build_shop,
    HitKind.PRODUCT: _build_product,
    HitKind.SHOP_PRODUCT: _build_shop_product,
    HitKind.ORDER: _build_order,
    HitKind.GENERIC: _build_generic,
}


def parse_timestamp(value: Any) -> datetime | None:
    """Parse the timestamp encodings found in indexed records.

    Accepts datastore ``{"_seconds": .., "_nanoseconds": ..}`` objects, epoch
    numbers (seconds or milliseconds) and ISO-8601 strings.

    Args:
        value: Raw attribute value.

    Returns:
        Timezone-aware UTC datetime, or None when unparseable.
    """
    if isinstance(value, Mapping):
        seconds = value.get("_seconds", value.get("seconds"))
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            return None
        nanos = value.get("_nanoseconds", value.get("nanoseconds", 0))
        if isinstance(nanos, bool) or not isinstance(nanos, (int, float)):
            nanos = 0
        return _from_epoch(seconds + nanos / 1e9)

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
        return _from_epoch(seconds)

    if isinstance(value, str) and value.strip():
        try:
            parsed = dt_parser.isoparse(value.strip())
        except (TypeError, ValueError):
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def _from_epoch(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _extra(raw: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {str(k): v for k, v in raw.items() if k not in known}


def _safe_str(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _opt_float(value: Any) -> float | None:
    return float(value) if _is_number(value) else None


def _opt_int(value: Any) -> int | None:
    return int(value) if _is_number(value) else None


def _int_or(value: Any, default: int) -> int:
    parsed = _opt_int(value)
    return default if parsed is None else parsed


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(text for text in (_safe_str(item) for item in value) if text)
