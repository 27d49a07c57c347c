"""OData filter expression builder.

Builds FilterClause / FilterGroup trees and renders them to ``$filter`` text.
This module is PURE - no HTTP, no config loading.

Rendering rules:
    clause      -> field op literal          (taxType eq '1040', year eq 2024)
    root group  -> items joined by " and " / " or "
    nested group-> "(" items joined ")"

Examples:
    >>> render(all_of(eq("taxType", "1040"), any_of(eq("eorgName", "A"), eq("eorgName", "B"))))
    "taxType eq '1040' and (eorgName eq 'A' or eorgName eq 'B')"
"""

from __future__ import annotations

from odata_tax_mcp.helpers.dto.filter_dto import (
    FilterClause,
    FilterGroup,
    FilterNode,
    LiteralPolicy,
)
from odata_tax_mcp.helpers.exceptions import InvalidArgumentError

LITERAL_POLICIES: tuple[str, ...] = ("passthrough", "escape", "reject")


def eq(field: str, value: str | int) -> FilterClause:
    """field eq value."""
    return FilterClause(field=field, operator="eq", value=value)


def ne(field: str, value: str | int) -> FilterClause:
    """field ne value."""
    return FilterClause(field=field, operator="ne", value=value)


def all_of(*items: FilterNode) -> FilterGroup:
    """Conjunction of clauses and groups."""
    return FilterGroup(logic="and", items=tuple(items))


def any_of(*items: FilterNode) -> FilterGroup:
    """Disjunction of clauses and groups."""
    return FilterGroup(logic="or", items=tuple(items))


def any_equal(field: str, values: list[str] | tuple[str, ...]) -> FilterGroup:
    """OR-group of ``field eq value`` for each value, in order."""
    return any_of(*(eq(field, v) for v in values))


def render_literal(value: str | int, literal_policy: LiteralPolicy = "passthrough") -> str:
    """Render a literal for embedding in a filter clause.

    Raises:
        InvalidArgumentError: If policy is "reject" and the string contains a quote
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)

    text = str(value)
    if "'" in text:
        if literal_policy == "reject":
            msg = f"Filter literal contains a single quote: {text!r}"
            raise InvalidArgumentError(msg)
        if literal_policy == "escape":
            text = text.replace("'", "''")
    return f"'{text}'"


def render_clause(clause: FilterClause, literal_policy: LiteralPolicy = "passthrough") -> str:
    return f"{clause.field} {clause.operator} {render_literal(clause.value, literal_policy)}"


def render(node: FilterNode, literal_policy: LiteralPolicy = "passthrough") -> str:
    """Render a clause or group tree to OData ``$filter`` text.

    The root group is not parenthesized; every nested group is.

    Raises:
        InvalidArgumentError: If a group is empty or a literal is rejected
    """
    if isinstance(node, FilterClause):
        return render_clause(node, literal_policy)
    return _render_group(node, literal_policy, nested=False)


def _render_group(group: FilterGroup, literal_policy: LiteralPolicy, *, nested: bool) -> str:
    if not group.items:
        msg = "Cannot render an empty filter group"
        raise InvalidArgumentError(msg)

    parts: list[str] = []
    for item in group.items:
        if isinstance(item, FilterGroup):
            parts.append(_render_group(item, literal_policy, nested=True))
        else:
            parts.append(render_clause(item, literal_policy))

    text = f" {group.logic} ".join(parts)
    return f"({text})" if nested else text
