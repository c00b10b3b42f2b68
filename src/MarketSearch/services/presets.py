"""Canned back-office searches built on `MarketSearchService`.

Each preset fixes the filter criteria for one dashboard or order-ledger view
and returns the hit list only; failures surface as an empty list.
"""

from __future__ import annotations

from dataclasses import replace

from MarketSearch.core.models import Hit
from MarketSearch.core.query import FilterSpec, SearchOptions
from MarketSearch.services.search import MarketSearchService

ORDERS_INDEX = "orders"
LEDGER_HITS_PER_PAGE = 1000
USER_ORDERS_HITS_PER_PAGE = 20


async def _preset(
    service: MarketSearchService,
    index: str,
    term: str,
    filters: FilterSpec,
    options: SearchOptions | None,
) -> list[Hit]:
    merged = replace(options or SearchOptions(), filters=filters)
    result = await service.search(index, term, merged)
    return list(result.hits)


async def search_active_shops(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Shops with status ``active``."""
    return await _preset(service, "shops", term, {"status": "active"}, options)


async def search_verified_shops(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Active shops that passed verification."""
    return await _preset(service, "shops", term, {"status": "active", "verified": True}, options)


async def search_active_products(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Catalogue products with status ``active``."""
    return await _preset(service, "products", term, {"status": "active"}, options)


async def search_in_stock_products(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Active catalogue products currently in stock."""
    return await _preset(service, "products", term, {"status": "active", "inStock": True}, options)


async def search_products_by_category(
    service: MarketSearchService,
    category: str,
    term: str = "",
    options: SearchOptions | None = None,
) -> list[Hit]:
    """Active catalogue products of one category."""
    return await _preset(service, "products", term, {"category": category, "status": "active"}, options)


async def search_products_by_shop(
    service: MarketSearchService,
    shop_id: str,
    term: str = "",
    options: SearchOptions | None = None,
) -> list[Hit]:
    """Active listings of one shop."""
    return await _preset(service, "shop_products", term, {"shopId": shop_id, "status": "active"}, options)


async def search_featured_products(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Active shop listings flagged as featured."""
    return await _preset(service, "shop_products", term, {"featured": True, "status": "active"}, options)


async def search_in_stock_shop_products(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Active shop listings currently in stock."""
    return await _preset(service, "shop_products", term, {"status": "active", "inStock": True}, options)


def _ledger_options(options: SearchOptions | None, hits_per_page: int = LEDGER_HITS_PER_PAGE) -> SearchOptions:
    if options is None:
        return SearchOptions(hits_per_page=hits_per_page)
    if options.hits_per_page is None:
        return replace(options, hits_per_page=hits_per_page)
    return options


async def search_gathering_items(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Order items waiting to be gathered (pending or assigned)."""
    filters = {"gatheringStatus": ["pending", "assigned"]}
    return await _preset(service, ORDERS_INDEX, term, filters, _ledger_options(options))


async def search_distribution_items(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Fully gathered order items ready for or assigned to distribution."""
    filters = {"allItemsGathered": True, "distributionStatus": ["ready", "assigned"]}
    return await _preset(service, ORDERS_INDEX, term, filters, _ledger_options(options))


async def search_delivered_items(
    service: MarketSearchService, term: str = "", options: SearchOptions | None = None
) -> list[Hit]:
    """Order items already delivered."""
    filters = {"distributionStatus": "delivered"}
    return await _preset(service, ORDERS_INDEX, term, filters, _ledger_options(options))


async def search_shop_orders(
    service: MarketSearchService,
    shop_id: str,
    term: str = "",
    options: SearchOptions | None = None,
) -> list[Hit]:
    """Order items sold by one shop."""
    options = _ledger_options(options, USER_ORDERS_HITS_PER_PAGE)
    return await _preset(service, ORDERS_INDEX, term, {"shopId": shop_id}, options)


async def search_user_orders(
    service: MarketSearchService,
    user_id: str,
    is_sold: bool,
    term: str = "",
    options: SearchOptions | None = None,
) -> list[Hit]:
    """Order items a user sold (``is_sold``) or bought."""
    field = "sellerId" if is_sold else "buyerId"
    options = _ledger_options(options, USER_ORDERS_HITS_PER_PAGE)
    return await _preset(service, ORDERS_INDEX, term, {field: user_id}, options)


async def search_orders_by_field(
    service: MarketSearchService,
    field: str,
    value: str,
    options: SearchOptions | None = None,
) -> list[Hit]:
    """Order items with an exact value in one field.

    The field criterion is merged over any filters already in ``options``
    and wins on conflict.
    """
    options = _ledger_options(options)
    filters = {**(options.filters or {}), field: value}
    return await _preset(service, ORDERS_INDEX, "", filters, options)
