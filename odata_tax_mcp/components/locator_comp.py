"""Default locator resolution.

A locator selects which snapshot / form revision of the tax data to query.
When the caller does not supply one, it is derived from (tax_type, year).

Resolution order:
    1. Tax-type constant for non-1040 types (year is ignored)
    2. Year constant for 1040
    3. Fallback to the 2023/1040 locator for anything unrecognized

The fallback keeps compatibility with existing callers. Unknown years and tax
types silently query the 2023 snapshot; revisit here, not in the builders.
"""

from __future__ import annotations

# Tax-type specific locators, independent of year
TAX_TYPE_LOCATORS: dict[str, str] = {
    "1120": "1355JV",
    "1065": "4117JG",
}

# Year specific locators for individual returns
FORM_1040_LOCATORS: dict[int, str] = {
    2024: "2517KC",
    2023: "9506JP",
}

FALLBACK_LOCATOR = FORM_1040_LOCATORS[2023]


def resolve_default_locator(tax_type: str, year: int) -> str:
    """Return the default locator for a tax type and year."""
    if tax_type in TAX_TYPE_LOCATORS:
        return TAX_TYPE_LOCATORS[tax_type]
    if tax_type == "1040" and year in FORM_1040_LOCATORS:
        return FORM_1040_LOCATORS[year]
    return FALLBACK_LOCATOR


def resolve_locator(tax_type: str, year: int, locator: str | None = None) -> str:
    """Explicit locator wins; otherwise the default for (tax_type, year)."""
    return locator or resolve_default_locator(tax_type, year)
