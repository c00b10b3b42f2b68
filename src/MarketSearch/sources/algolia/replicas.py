"""Replica index selection.

Each sortable logical index has physical replicas pre-sorted by one key,
named ``<logical>_<suffix>``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import AbstractSet, Final, Mapping

from MarketSearch.core.query import SortKey

REPLICA_SUFFIXES: Final[Mapping[SortKey, str]] = MappingProxyType(
    {
        SortKey.DATE: "createdAt_desc",
        SortKey.ALPHABETICAL: "alphabetical",
        SortKey.PRICE_ASC: "price_asc",
        SortKey.PRICE_DESC: "price_desc",
    }
)

# Denormalized join indices have a single natural ordering and no replicas.
DEFAULT_UNSORTABLE: Final[frozenset[str]] = frozenset({"shop_products"})


def _coerce_sort_key(sort_by: SortKey | str | None) -> SortKey | None:
    if sort_by is None or isinstance(sort_by, SortKey):
        return sort_by
    try:
        return SortKey(str(sort_by).strip().lower())
    except ValueError:
        return None


def select_replica(
    index: str,
    sort_by: SortKey | str | None = None,
    *,
    unsortable: AbstractSet[str] = DEFAULT_UNSORTABLE,
) -> str:
    """Resolve the physical index name for a logical index and sort order.

    Args:
        index: Logical (base) index name.
        sort_by: Requested sort key; None, "" or unknown keys mean base order.
        unsortable: Indices for which the sort key is ignored.

    Returns:
        ``<index>_<suffix>`` for a known key on a sortable index, otherwise
        the base index name unchanged.
    """
    if index in unsortable:
        return index
    key = _coerce_sort_key(sort_by)
    if key is None:
        return index
    suffix = REPLICA_SUFFIXES.get(key)
    if not suffix:
        return index
    return f"{index}_{suffix}"
