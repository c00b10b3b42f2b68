"""Index catalog configuration."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from MarketSearch.config.common import (
    expect_bool,
    expect_mapping,
    expect_str,
    get_optional_value,
    get_section,
)
from MarketSearch.core.models import HitKind
from MarketSearch.core.query import IndexSpec

_ALLOWED_KINDS = frozenset(kind.value for kind in HitKind)


def load_indices(raw: Mapping[str, Any]) -> Mapping[str, IndexSpec]:
    """Load the ``indices`` catalog keyed by logical name.

    Each entry may set ``name`` (physical index, defaults to the logical
    name), ``kind``, ``id_field`` and ``sortable``.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If the catalog is missing.
    """
    section = get_section(raw, "indices", required=True)
    specs: dict[str, IndexSpec] = {}
    for logical, entry in section.items():
        key = f"indices.{logical}"
        body = expect_mapping(entry if entry is not None else {}, key)
        specs[str(logical)] = IndexSpec(
            name=expect_str(get_optional_value(body, "name", str(logical)), f"{key}.name").strip(),
            kind=expect_str(get_optional_value(body, "kind", "generic"), f"{key}.kind").strip().lower(),
            id_field=expect_str(get_optional_value(body, "id_field", "objectID"), f"{key}.id_field").strip(),
            sortable=expect_bool(get_optional_value(body, "sortable", True), f"{key}.sortable"),
        )
    return MappingProxyType(specs)


def check_indices(indices: Mapping[str, IndexSpec]) -> None:
    """Validate the index catalog.

    Raises:
        ValueError: If any entry is inconsistent.
    """
    if not indices:
        raise ValueError("indices must not be empty")
    for logical, spec in indices.items():
        key = f"indices.{logical}"
        if not spec.name:
            raise ValueError(f"{key}.name must not be empty")
        if spec.kind not in _ALLOWED_KINDS:
            raise ValueError(f"{key}.kind must be one of {sorted(_ALLOWED_KINDS)}")
        if not spec.id_field:
            raise ValueError(f"{key}.id_field must not be empty")
