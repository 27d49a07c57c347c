"""Query DTOs.

Request structs for the two tools and the outbound QuerySpec.

Rules:
- Import only stdlib and typing (plus sibling DTO modules)
- Pure data structures with optional simple properties
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .filter_dto import FilterGroup, LiteralPolicy

DEFAULT_TAX_TYPE = "1040"
TAX_DATA_PAGE_SIZE = 50


@dataclass(frozen=True)
class TaxDataRequest:
    """Arguments for get_tax_data.

    Required: eorg, year. Everything else optional with defaults.
    form_name/field_name only refine the query when BOTH are set.
    """

    eorg: str
    """Comma-separated EORG identifiers"""

    year: int

    tax_type: str = DEFAULT_TAX_TYPE
    form_name: str | None = None
    field_name: str | None = None

    locator: str | None = None
    """Explicit locator; when empty the default for (tax_type, year) is used"""

    skip: int = 0

    @property
    def has_form_field(self) -> bool:
        """True if both form_name and field_name were supplied."""
        return bool(self.form_name) and bool(self.field_name)


@dataclass(frozen=True)
class TopByValueRequest:
    """Arguments for get_top_by_value.

    Required: year, eorgs. sort_order is passed to $orderby verbatim.
    """

    year: int
    eorgs: str
    top: int = 10
    tax_type: str = DEFAULT_TAX_TYPE
    sort_order: str = "desc"
    skip: int = 0


@dataclass(frozen=True)
class QuerySpec:
    """Single outbound OData query."""

    entity_path: str
    """Path appended to the base URL (e.g., "/odata/v1/tax-return-data")"""

    filter_tree: FilterGroup
    filter_expression: str
    """Rendered $filter text"""

    identifiers: tuple[str, ...]
    """IdentifierSet the filter was built from, in caller order"""

    top: int
    skip: int = 0
    orderby: str | None = None
    literal_policy: LiteralPolicy = "passthrough"

    extra_params: dict[str, Any] = field(default_factory=dict)
    """Plain query parameters sent before the $-options (e.g., year)"""

    def to_params(self) -> dict[str, Any]:
        """Outbound query parameters, in send order."""
        params: dict[str, Any] = dict(self.extra_params)
        params["$filter"] = self.filter_expression
        params["$top"] = self.top
        params["$skip"] = self.skip
        if self.orderby is not None:
            params["$orderby"] = self.orderby
        return params
