"""
Workflows package.
"""

from .build_query_wf import (
    TAX_RETURN_DATA_PATH,
    build_tax_data_query,
    build_top_by_value_query,
    split_identifiers,
)
from .normalize_response_wf import normalize_tax_data, normalize_top_records
from .parse_filter_wf import describe_filter, parse_filter

__all__ = [
    "TAX_RETURN_DATA_PATH",
    "build_tax_data_query",
    "build_top_by_value_query",
    "describe_filter",
    "normalize_tax_data",
    "normalize_top_records",
    "parse_filter",
    "split_identifiers",
]
