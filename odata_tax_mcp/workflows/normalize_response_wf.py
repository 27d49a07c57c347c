"""Reshape OData row lists into tool results.

get_tax_data:      rows -> {eorg: {raw_value, description}} keyed in caller order
get_top_by_value:  rows -> ordered list of simplified records

Rows are untyped dicts; only presence is checked.
"""

from __future__ import annotations

import logging
from typing import Any

from odata_tax_mcp.helpers.exceptions import NormalizationError
from odata_tax_mcp.response_models import (
    QueryInfo,
    TaxDataEntry,
    TaxDataResult,
    TopByValueResult,
    TopRecord,
)

logger = logging.getLogger(__name__)

NO_DATA = "No data found"
NO_MATCHING_RECORDS = "No matching records found"
NO_TOP_RECORDS = "No records found for the given criteria"
DEFAULT_DESCRIPTION = "Tax data"


def _matching_rows(
    rows: list[dict[str, Any]],
    eorg: str,
    form_name: str | None,
    field_name: str | None,
) -> list[dict[str, Any]]:
    matches = [row for row in rows if row.get("eorgName") == eorg]
    if form_name and field_name:
        matches = [
            row
            for row in matches
            if row.get("formName") == form_name and row.get("fieldName") == field_name
        ]
    return matches


def _group_by_eorg(
    payload: dict[str, Any],
    identifiers: tuple[str, ...] | list[str],
    form_name: str | None,
    field_name: str | None,
) -> dict[str, TaxDataEntry]:
    rows = payload["value"]
    if not isinstance(rows, list):
        msg = f"Expected a list of rows, got {type(rows).__name__}"
        raise NormalizationError(msg)

    results: dict[str, TaxDataEntry] = {}
    for eorg in identifiers:
        matches = _matching_rows(rows, eorg, form_name, field_name)
        if matches:
            results[eorg] = TaxDataEntry(
                raw_value=matches[0].get("value") or "",
                description=field_name or DEFAULT_DESCRIPTION,
            )
    return results


def normalize_tax_data(
    payload: dict[str, Any],
    identifiers: tuple[str, ...] | list[str],
    year: int,
    form_name: str | None = None,
    field_name: str | None = None,
) -> TaxDataResult:
    """Group rows by EORG, keeping the first matching row per EORG.

    EORGs without rows are omitted. ``error`` is set iff nothing matched.
    Shaping failures never propagate: they become ``data=None`` plus an error.

    Args:
        payload: Decoded OData body ({"value": [...]})
        identifiers: EORGs in caller order (duplicates allowed)
        year: Requested tax year
        form_name: Form refinement (only applied together with field_name)
        field_name: Field refinement; also used as the entry description

    Returns:
        TaxDataResult
    """
    eorgs = list(identifiers)

    if "value" not in payload or payload["value"] is None:
        return TaxDataResult(eorgs=eorgs, year=year, data=None, error=NO_DATA)

    try:
        results = _group_by_eorg(payload, identifiers, form_name, field_name)
    except Exception as e:
        logger.warning(f"[normalize] Failed to transform tax data response: {e}")
        return TaxDataResult(
            eorgs=eorgs,
            year=year,
            data=None,
            error=f"Error transforming response: {e}",
        )

    return TaxDataResult(
        eorgs=eorgs,
        year=year,
        data=results,
        error=None if results else NO_MATCHING_RECORDS,
    )


_TOP_RECORD_KEYS = (
    "value",
    "eorgName",
    "firm",
    "account",
    "formName",
    "fieldName",
    "locator",
    "year",
    "taxType",
)


def simplify_record(row: dict[str, Any]) -> TopRecord:
    """Keep only the fixed ranked-record fields of a row."""
    return TopRecord.model_validate({name: row.get(name) for name in _TOP_RECORD_KEYS})


def normalize_top_records(
    rows: list[dict[str, Any]],
    year: int,
    params: dict[str, Any],
    url: str,
) -> TopByValueResult:
    """Map rows to simplified records in service order and echo the query.

    ``error`` is set iff there are no rows.
    """
    records = [simplify_record(row) for row in rows]
    return TopByValueResult(
        year=year,
        query_info=QueryInfo(params=params, url=url),
        top_records=records,
        error=None if records else NO_TOP_RECORDS,
    )
