"""Build outbound OData queries for the two tax data tools.

Turns a validated request struct into a single QuerySpec: entity path,
$filter, pagination and ordering. No HTTP here.

get_tax_data filter:
    taxType eq 'T' and locator eq 'L' and (eorgName eq 'A' or ...)
    [and formName eq 'F' and fieldName eq 'G']

get_top_by_value filter:
    value ne 'NONE' and taxType eq 'T' and year eq Y and (eorgName eq 'A' or ...)
"""

from __future__ import annotations

import logging

from odata_tax_mcp.components.filter_builder_comp import all_of, any_equal, eq, ne, render
from odata_tax_mcp.components.locator_comp import resolve_locator
from odata_tax_mcp.helpers.dto.filter_dto import FilterNode, LiteralPolicy
from odata_tax_mcp.helpers.dto.query_dto import (
    TAX_DATA_PAGE_SIZE,
    QuerySpec,
    TaxDataRequest,
    TopByValueRequest,
)
from odata_tax_mcp.helpers.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

TAX_RETURN_DATA_PATH = "/odata/v1/tax-return-data"

# Field names on the tax-return-data entity
EORG_FIELD = "eorgName"
VALUE_FIELD = "value"

# Rows whose value is this sentinel carry no data
NONE_SENTINEL = "NONE"


def split_identifiers(raw: str) -> tuple[str, ...]:
    """Split a comma-separated EORG string into trimmed, non-empty identifiers.

    Order is preserved and duplicates are kept.

    Raises:
        InvalidArgumentError: If no identifiers remain after trimming
    """
    identifiers = tuple(part.strip() for part in (raw or "").split(","))
    identifiers = tuple(part for part in identifiers if part)
    if not identifiers:
        msg = f"No EORG identifiers in {raw!r}"
        raise InvalidArgumentError(msg)
    return identifiers


def _require_non_negative(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"{name} must be a non-negative integer, got {value!r}"
        raise InvalidArgumentError(msg)


def build_tax_data_query(
    request: TaxDataRequest,
    *,
    entity_path: str = TAX_RETURN_DATA_PATH,
    literal_policy: LiteralPolicy = "passthrough",
) -> QuerySpec:
    """Build the QuerySpec for get_tax_data.

    Page size is fixed; only the offset comes from the caller.

    Raises:
        InvalidArgumentError: If the EORG list is empty or a literal is rejected
    """
    _require_non_negative("skip", request.skip)
    identifiers = split_identifiers(request.eorg)
    locator = resolve_locator(request.tax_type, request.year, request.locator)

    items: list[FilterNode] = [
        eq("taxType", request.tax_type),
        eq("locator", locator),
        any_equal(EORG_FIELD, identifiers),
    ]
    if request.has_form_field:
        items.append(eq("formName", request.form_name))  # type: ignore[arg-type]
        items.append(eq("fieldName", request.field_name))  # type: ignore[arg-type]

    tree = all_of(*items)
    spec = QuerySpec(
        entity_path=entity_path,
        filter_tree=tree,
        filter_expression=render(tree, literal_policy),
        identifiers=identifiers,
        top=TAX_DATA_PAGE_SIZE,
        skip=request.skip,
        literal_policy=literal_policy,
        extra_params={"year": request.year},
    )
    logger.debug(f"[query] tax data filter: {spec.filter_expression}")
    return spec


def build_top_by_value_query(
    request: TopByValueRequest,
    *,
    entity_path: str = TAX_RETURN_DATA_PATH,
    literal_policy: LiteralPolicy = "passthrough",
) -> QuerySpec:
    """Build the QuerySpec for get_top_by_value.

    sort_order is appended to $orderby as given; the service decides whether
    it is valid.

    Raises:
        InvalidArgumentError: If the EORG list is empty or a literal is rejected
    """
    _require_non_negative("top", request.top)
    _require_non_negative("skip", request.skip)
    identifiers = split_identifiers(request.eorgs)

    tree = all_of(
        ne(VALUE_FIELD, NONE_SENTINEL),
        eq("taxType", request.tax_type),
        eq("year", request.year),
        any_equal(EORG_FIELD, identifiers),
    )
    spec = QuerySpec(
        entity_path=entity_path,
        filter_tree=tree,
        filter_expression=render(tree, literal_policy),
        identifiers=identifiers,
        top=request.top,
        skip=request.skip,
        orderby=f"{VALUE_FIELD} {request.sort_order}",
        literal_policy=literal_policy,
    )
    logger.debug(f"[query] top by value filter: {spec.filter_expression}")
    return spec
