from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Sequence, Union

from MarketSearch.core.errors import SearchError


class HitKind(str, Enum):
    """Discriminator for the record kinds stored in the search indices."""

    SHOP = "shop"
    PRODUCT = "product"
    SHOP_PRODUCT = "shop_product"
    ORDER = "order"
    GENERIC = "generic"


def _freeze_extra(obj: Any) -> None:
    # Read-only view so hits can be shared between concurrent consumers.
    object.__setattr__(obj, "extra", MappingProxyType(dict(obj.extra)))


@dataclass(frozen=True, slots=True)
class ShopHit:
    """Denormalized shop record.

    Attributes:
        object_id: Search-service record id.
        shop_id: Datastore shop id.
        shop_name: Display name.
        owner_name: Owner display name.
        owner_id: Owner user id.
        status: One of active/inactive/pending/suspended.
        category: Optional shop category.
        city: City from the shop location, if indexed.
        rating: Average rating.
        total_products: Number of listed products.
        verified: Whether the shop passed verification.
        created_at: Creation time.
        extra: Remaining indexed attributes.
    """

    object_id: str
    shop_id: str
    shop_name: str
    owner_name: str = ""
    owner_id: str = ""
    status: str = ""
    category: Optional[str] = None
    city: Optional[str] = None
    rating: Optional[float] = None
    total_products: Optional[int] = None
    verified: bool = False
    created_at: Optional[datetime] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    kind: HitKind = field(default=HitKind.SHOP, init=False)

    def __post_init__(self) -> None:
        _freeze_extra(self)


@dataclass(frozen=True, slots=True)
class ProductHit:
    """Denormalized catalogue product record."""

    object_id: str
    product_id: str
    product_name: str
    category: str = ""
    price: float = 0.0
    status: str = ""
    brand_model: Optional[str] = None
    sub_category: Optional[str] = None
    stock_quantity: Optional[int] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    tags: Sequence[str] = ()
    created_at: Optional[datetime] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    kind: HitKind = field(default=HitKind.PRODUCT, init=False)

    def __post_init__(self) -> None:
        _freeze_extra(self)


@dataclass(frozen=True, slots=True)
class ShopProductHit:
    """A product as listed by one shop, with shop-level overrides."""

    object_id: str
    shop_product_id: str
    shop_id: str
    product_id: str
    product_name: str
    shop_name: str = ""
    category: str = ""
    price: float = 0.0
    shop_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    status: str = ""
    discount: Optional[float] = None
    featured: bool = False
    created_at: Optional[datetime] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    kind: HitKind = field(default=HitKind.SHOP_PRODUCT, init=False)

    def __post_init__(self) -> None:
        _freeze_extra(self)


@dataclass(frozen=True, slots=True)
class OrderHit:
    """Order-ledger line item."""

    object_id: str
    order_id: str
    product_name: str = ""
    brand_model: str = ""
    buyer_name: str = ""
    seller_name: str = ""
    category: str = ""
    gathering_status: Optional[str] = None
    shipment_status: Optional[str] = None
    distribution_status: Optional[str] = None
    price: float = 0.0
    quantity: int = 0
    timestamp: Optional[datetime] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    kind: HitKind = field(default=HitKind.ORDER, init=False)

    def __post_init__(self) -> None:
        _freeze_extra(self)


@dataclass(frozen=True, slots=True)
class GenericHit:
    """Record from an index without a dedicated model."""

    object_id: str
    extra: Mapping[str, Any] = field(default_factory=dict)
    kind: HitKind = field(default=HitKind.GENERIC, init=False)

    def __post_init__(self) -> None:
        _freeze_extra(self)


Hit = Union[ShopHit, ProductHit, ShopProductHit, OrderHit, GenericHit]


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Well-typed outcome of one logical search.

    A failed search is still a `SearchResult`: it has no hits and carries the
    last underlying error for observability.

    Attributes:
        index: Logical index that was searched.
        query: Normalized free-text term.
        hits: Decoded records in service order.
        total_hits: Total matching records reported by the service.
        page: Zero-based page number.
        total_pages: Number of pages reported by the service.
        hits_per_page: Page size used.
        processing_time_ms: Service-side processing time, when reported.
        attempts: Network attempts consumed.
        error: Last error when the result is degraded.
    """

    index: str
    query: str
    hits: tuple[Hit, ...] = ()
    total_hits: int = 0
    page: int = 0
    total_pages: int = 0
    hits_per_page: int = 0
    processing_time_ms: Optional[int] = None
    attempts: int = 0
    error: Optional[SearchError] = None

    @property
    def degraded(self) -> bool:
        """Whether this result stands in for a failed search."""
        return self.error is not None

    @classmethod
    def empty(
        cls,
        index: str,
        query: str,
        *,
        page: int = 0,
        hits_per_page: int = 0,
        attempts: int = 0,
        error: SearchError | None = None,
    ) -> SearchResult:
        """Build the degraded-empty (or genuinely empty) result."""
        return cls(
            index=index,
            query=query,
            page=page,
            hits_per_page=hits_per_page,
            attempts=attempts,
            error=error,
        )


@dataclass(frozen=True, slots=True)
class AggregatedResult:
    """Per-index results of a fan-out search, keyed by logical index."""

    results: Mapping[str, SearchResult]

    def __post_init__(self) -> None:
        object.__setattr__(self, "results", MappingProxyType(dict(self.results)))

    def __getitem__(self, index: str) -> SearchResult:
        return self.results[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> tuple[str, ...]:
        """Indices whose sub-query degraded."""
        return tuple(name for name, result in self.results.items() if result.degraded)

    @property
    def total_hits(self) -> int:
        """Sum of reported totals across all indices."""
        return sum(result.total_hits for result in self.results.values())


@dataclass(frozen=True, slots=True)
class DashboardCounts:
    """Record totals shown on the back-office overview."""

    total_shops: int = 0
    active_shops: int = 0
    total_products: int = 0
    active_products: int = 0
    total_shop_products: int = 0
    active_shop_products: int = 0
