from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Sequence, Union

FilterScalar = Union[str, int, float, bool]
FilterValue = Optional[Union[FilterScalar, Sequence[str]]]
FilterSpec = Mapping[str, FilterValue]
"""Field name -> exact value, `min*`/`max*` bound, flag, or OR-set of values.

`None` means "no constraint" and is always skipped by the compiler.
"""


class SortKey(str, Enum):
    """Sort orders that have a pre-sorted replica index."""

    DATE = "date"
    ALPHABETICAL = "alphabetical"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """Caller-facing options for one logical search.

    Attributes:
        hits_per_page: Page size; None means the configured default.
        page: Zero-based page number.
        filters: Structured filter criteria, compiled per call.
        attributes_to_retrieve: Optional attribute projection.
        sort_by: Optional sort key resolved to a replica index.
    """

    hits_per_page: int | None = None
    page: int = 0
    filters: FilterSpec | None = None
    attributes_to_retrieve: Sequence[str] = ()
    sort_by: SortKey | str | None = None


@dataclass(frozen=True, slots=True)
class QueryRequest:
    """A concrete, call-specific search request.

    Built fresh for every call from `SearchOptions`; the filter expression is
    already compiled and an empty string means "no filter".

    Attributes:
        index: Logical index name.
        term: Free-text query (may be empty).
        filters: Compiled boolean filter expression.
        page: Zero-based page number.
        hits_per_page: Page size.
        attributes_to_retrieve: Attribute projection; empty means all.
        sort_by: Optional sort key.
    """

    index: str
    term: str = ""
    filters: str = ""
    page: int = 0
    hits_per_page: int = 100
    attributes_to_retrieve: Sequence[str] = ()
    sort_by: SortKey | str | None = None


@dataclass(frozen=True, slots=True)
class IndexSpec:
    """Static description of one logical index.

    Attributes:
        name: Physical base index name on the search service.
        kind: Record kind stored in the index (`HitKind` value).
        id_field: Attribute holding the datastore identifier.
        sortable: Whether pre-sorted replicas exist for this index.
    """

    name: str
    kind: str = "generic"
    id_field: str = "objectID"
    sortable: bool = True
