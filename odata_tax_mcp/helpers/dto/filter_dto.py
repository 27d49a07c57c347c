"""OData filter expression DTOs.

Structured representation of a ``$filter`` expression. Built by
components/filter_builder_comp.py and read back by workflows/parse_filter_wf.py.

Rules:
- Import only stdlib and typing
- Pure data structures only (no rendering, no parsing)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

# Maximum nesting depth for filter groups accepted by the parser
MAX_FILTER_DEPTH = 8

LiteralPolicy = Literal["passthrough", "escape", "reject"]
"""How string literals containing a single quote are handled when rendering.

passthrough: embed as-is (a quote breaks the expression)
escape: double the quote per OData rules (O'Brien -> 'O''Brien')
reject: raise InvalidArgumentError
"""


@dataclass(frozen=True)
class FilterClause:
    """A single comparison: FIELD OPERATOR LITERAL.

    Represents: eorgName eq 'A'
    """

    field: str
    """Entity property name (e.g., "taxType")"""

    operator: Literal["eq", "ne"]
    """Comparison operator"""

    value: str | int
    """Literal value. Strings render single-quoted, ints render bare."""


@dataclass(frozen=True)
class FilterGroup:
    """Conjunction or disjunction of clauses and nested groups.

    Nested groups render inside parentheses so (A or B) combines
    correctly with a surrounding ``and``.
    """

    logic: Literal["and", "or"]
    """Logic operator joining the items of this group"""

    items: tuple[FilterNode, ...] = field(default_factory=tuple)
    """Clauses and nested groups, in render order"""

    @property
    def depth(self) -> int:
        """Max nesting depth of this group tree."""
        nested = [item.depth for item in self.items if isinstance(item, FilterGroup)]
        return 1 + max(nested, default=0)

    @property
    def clauses(self) -> tuple[FilterClause, ...]:
        """Clauses directly in this group."""
        return tuple(item for item in self.items if isinstance(item, FilterClause))

    @property
    def groups(self) -> tuple[FilterGroup, ...]:
        """Nested groups directly in this group."""
        return tuple(item for item in self.items if isinstance(item, FilterGroup))


FilterNode = Union[FilterClause, FilterGroup]
