"""
Data Transfer Objects shared across layers.

Rules for DTO modules:
- Import only stdlib and typing (no odata_tax_mcp.* imports)
- Contain ONLY dataclass/type definitions and simple type aliases
- No I/O, no network access, no business logic
"""

from .filter_dto import (
    MAX_FILTER_DEPTH,
    FilterClause,
    FilterGroup,
    FilterNode,
    LiteralPolicy,
)
from .query_dto import QuerySpec, TaxDataRequest, TopByValueRequest

__all__ = [
    "MAX_FILTER_DEPTH",
    "FilterClause",
    "FilterGroup",
    "FilterNode",
    "LiteralPolicy",
    "QuerySpec",
    "TaxDataRequest",
    "TopByValueRequest",
]
