"""Algolia filter compiler and request builder.

Compiles the internal, structured `FilterSpec` into a single Algolia
`filters` expression and assembles the URL-encoded `params` blob sent to the
index query endpoint.

Rules (first match wins)
- `min<Field>` with a numeric value   -> `field >= value`
- `max<Field>` with a numeric value   -> `field <= value`
- boolean value                        -> `key:true` / `key:false`
- sequence value (non-empty)           -> `(key:"a" OR key:"b")`
- string value                         -> `key:"value"`
- None / empty sequence / other types  -> no clause

Clauses are joined with ` AND `. No clause at all yields the empty string,
which means "send no `filters` parameter".
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping
from urllib.parse import quote, urlencode

from MarketSearch.core.query import FilterSpec, QueryRequest, SearchOptions

_MIN_PREFIX = "min"
_MAX_PREFIX = "max"


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _strip_bound_prefix(key: str, prefix: str) -> str:
    rest = key[len(prefix):]
    return rest[:1].lower() + rest[1:]


def _quote(value: Any) -> str:
    text = str(value).replace('"', '\\"')
    return f'"{text}"'


def _compile_clause(key: str, value: Any) -> str:
    if value is None:
        return ""

    if key.startswith(_MIN_PREFIX) and isinstance(value, (int, float)) and not isinstance(value, bool):
        if not _is_number(value):
            return ""
        return f"{_strip_bound_prefix(key, _MIN_PREFIX)} >= {_format_number(value)}"

    if key.startswith(_MAX_PREFIX) and isinstance(value, (int, float)) and not isinstance(value, bool):
        if not _is_number(value):
            return ""
        return f"{_strip_bound_prefix(key, _MAX_PREFIX)} <= {_format_number(value)}"

    if isinstance(value, bool):
        return f"{key}:{'true' if value else 'false'}"

    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=str)
    if isinstance(value, (list, tuple)):
        if not value:
            return ""
        return "(" + " OR ".join(f"{key}:{_quote(item)}" for item in value) + ")"

    if isinstance(value, str):
        return f"{key}:{_quote(value)}"

    return ""


def compile_filters(filters: FilterSpec | None) -> str:
    """Compile structured filter criteria into an Algolia `filters` string.

    Malformed entries (NaN bounds, unsupported value types) are skipped rather
    than rejected so partially filled search forms still produce a query.

    Args:
        filters: Field -> value mapping; None means no filter.

    Returns:
        AND-joined filter expression, or "" when no clause was emitted.
    """
    if not filters:
        return ""

    clauses: list[str] = []
    for key, value in filters.items():
        clause = _compile_clause(str(key), value)
        if clause:
            clauses.append(clause)
    return " AND ".join(clauses)


def compile_id_filter(field: str, ids: Iterable[str]) -> str:
    """Compile an OR-filter matching any of the given identifiers.

    Args:
        field: Identifier attribute name (e.g. ``shopId``).
        ids: Identifier values.

    Returns:
        ``field:"a" OR field:"b" ...`` or "" for no ids.
    """
    return " OR ".join(f"{field}:{_quote(item)}" for item in ids)


def build_request(
    index: str,
    term: str = "",
    options: SearchOptions | None = None,
    *,
    default_hits_per_page: int = 100,
) -> QueryRequest:
    """Build a call-specific `QueryRequest` from caller options.

    Args:
        index: Logical index name.
        term: Free-text query; surrounding whitespace is removed.
        options: Caller options; None uses defaults.
        default_hits_per_page: Page size when options do not set one.

    Returns:
        A new QueryRequest with the filter expression compiled.
    """
    options = options or SearchOptions()
    hits_per_page = options.hits_per_page if options.hits_per_page is not None else default_hits_per_page
    return QueryRequest(
        index=index,
        term=(term or "").strip(),
        filters=compile_filters(options.filters),
        page=options.page,
        hits_per_page=hits_per_page,
        attributes_to_retrieve=tuple(options.attributes_to_retrieve),
        sort_by=options.sort_by,
    )


def encode_params(request: QueryRequest) -> str:
    """Encode a request into the URL-encoded Algolia `params` blob.

    The `filters` key is omitted entirely when the compiled expression is
    empty, and `attributesToRetrieve` only appears for a non-empty projection.

    Args:
        request: Request to encode.

    Returns:
        URL-encoded parameter string.
    """
    params: dict[str, str] = {
        "query": request.term,
        "page": str(request.page),
        "hitsPerPage": str(request.hits_per_page),
    }
    if request.filters:
        params["filters"] = request.filters
    if request.attributes_to_retrieve:
        params["attributesToRetrieve"] = ",".join(request.attributes_to_retrieve)
    return urlencode(params, quote_via=quote)


def build_body(request: QueryRequest) -> Mapping[str, str]:
    """Wrap the encoded params in the JSON envelope expected by the service."""
    return {"params": encode_params(request)}
