"""Console text output renderers.

Renders hits and results into human-friendly text.
Provides ConsoleOutputWriter implementation for command output.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from MarketSearch.core.models import (
    AggregatedResult,
    DashboardCounts,
    Hit,
    OrderHit,
    ProductHit,
    SearchResult,
    ShopHit,
    ShopProductHit,
)
from MarketSearch.renderers.base import OutputWriter
from MarketSearch.utils.log import log


def _fmt_dt(dt: datetime | None) -> str:
    """Format datetime for console output.

    Args:
        dt: A datetime object or None.

    Returns:
        A short date string (YYYY-mm-dd) or "-" when dt is None.
    """
    if not dt:
        return "-"
    return dt.strftime("%Y-%m-%d")


def _fmt_price(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:,.2f}"


def _describe(hit: Hit) -> list[str]:
    if isinstance(hit, ShopHit):
        badge = " [verified]" if hit.verified else ""
        lines = [f"{hit.shop_name or hit.shop_id}{badge}", f"   Shop: {hit.shop_id}  Status: {hit.status or '-'}"]
        if hit.owner_name:
            lines.append(f"   Owner: {hit.owner_name}")
        if hit.category or hit.city:
            lines.append(f"   Category: {hit.category or '-'}  City: {hit.city or '-'}")
        lines.append(f"   Created: {_fmt_dt(hit.created_at)}")
        return lines
    if isinstance(hit, ProductHit):
        lines = [
            hit.product_name or hit.product_id,
            f"   Product: {hit.product_id}  Status: {hit.status or '-'}",
            f"   Category: {hit.category or '-'}  Price: {_fmt_price(hit.price)}",
        ]
        if hit.stock_quantity is not None:
            lines.append(f"   Stock: {hit.stock_quantity}")
        if hit.tags:
            lines.append(f"   Tags: {', '.join(hit.tags)}")
        return lines
    if isinstance(hit, ShopProductHit):
        featured = " [featured]" if hit.featured else ""
        return [
            f"{hit.product_name or hit.shop_product_id}{featured}",
            f"   Listing: {hit.shop_product_id}  Shop: {hit.shop_name or hit.shop_id}",
            f"   Price: {_fmt_price(hit.price)}  Shop price: {_fmt_price(hit.shop_price)}"
            f"  Stock: {hit.stock_quantity if hit.stock_quantity is not None else '-'}",
        ]
    if isinstance(hit, OrderHit):
        return [
            f"{hit.product_name or hit.order_id} x{hit.quantity}",
            f"   Order: {hit.order_id}  Buyer: {hit.buyer_name or '-'}  Seller: {hit.seller_name or '-'}",
            f"   Gathering: {hit.gathering_status or '-'}  Distribution: {hit.distribution_status or '-'}"
            f"  Shipment: {hit.shipment_status or '-'}",
            f"   Placed: {_fmt_dt(hit.timestamp)}",
        ]
    keys = ", ".join(sorted(hit.extra)) or "-"
    return [hit.object_id, f"   Attributes: {keys}"]


def render_text(hits: Iterable[Hit]) -> str:
    """Render hits into a human-readable text block.

    Args:
        hits: Iterable of typed hits.

    Returns:
        A formatted string ready to be printed.
    """
    lines: list[str] = []
    for idx, hit in enumerate(hits, start=1):
        first, *rest = _describe(hit)
        lines.append(f"{idx}. {first}")
        lines.extend(rest)
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def _summary(result: SearchResult) -> str:
    if result.degraded:
        return f"index={result.index} degraded after {result.attempts} attempt(s): {result.error}"
    return (
        f"index={result.index} hits={len(result.hits)}/{result.total_hits} "
        f"page={result.page + 1}/{max(result.total_pages, 1)}"
    )


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_result(self, result: SearchResult) -> None:
        """Write a single search result."""
        if result.degraded:
            log.warning(_summary(result))
            return
        log.info(_summary(result))
        self._write_lines(render_text(result.hits))

    def write_aggregate(self, aggregated: AggregatedResult) -> None:
        """Write each index section in fan-out order."""
        for index in aggregated:
            log.info("=== %s ===", index)
            self.write_result(aggregated[index])

    def write_hits(self, index: str, hits: Sequence[Hit]) -> None:
        """Write id lookup results."""
        log.info("index=%s found=%d", index, len(hits))
        self._write_lines(render_text(hits))

    def write_counts(self, counts: DashboardCounts) -> None:
        """Write dashboard totals as an aligned table."""
        rows = (
            ("Shops", counts.active_shops, counts.total_shops),
            ("Products", counts.active_products, counts.total_products),
            ("Shop products", counts.active_shop_products, counts.total_shop_products),
        )
        log.info("%-14s %8s %8s", "", "active", "total")
        for label, active, total in rows:
            log.info("%-14s %8d %8d", label, active, total)

    def write_health(self, healthy: bool) -> None:
        """Write health check outcome."""
        if healthy:
            log.info("Search service reachable")
        else:
            log.warning("Search service unreachable")

    def finalize(self, action: str) -> None:
        """No-op for console output."""

    @staticmethod
    def _write_lines(text: str) -> None:
        for line in text.splitlines():
            log.info(line)
