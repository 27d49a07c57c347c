"""OData filter expression parser.

Parses the subset of OData ``$filter`` syntax produced by the request builder
back into FilterGroup trees. Independent of the builder: it reads text, not
builder objects, so it can verify what was actually sent.

Supported syntax:
    FIELD eq LITERAL | FIELD ne LITERAL
    EXPR and EXPR ... | EXPR or EXPR ...
    ( EXPR )

Literals:
    'text'   - single-quoted string, '' is an escaped quote
    123      - integer (optional leading -)

Note: Mixing ``and`` and ``or`` at the same level is NOT supported.
Use parentheses to group. Mixed expressions raise FilterSyntaxError.

Examples:
    taxType eq '1040' and locator eq '9506JP' and (eorgName eq 'A' or eorgName eq 'B')
    value ne 'NONE' and year eq 2024
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from odata_tax_mcp.helpers.dto.filter_dto import (
    MAX_FILTER_DEPTH,
    FilterClause,
    FilterGroup,
    FilterNode,
)
from odata_tax_mcp.helpers.exceptions import FilterSyntaxError

# Maximum filter length to keep parsing bounded
MAX_FILTER_LENGTH = 8192

_OPERATORS = ("eq", "ne")
_LOGIC = ("and", "or")

TokenKind = Literal["lparen", "rparen", "string", "number", "word"]


@dataclass(frozen=True)
class Token:
    """A lexical token from a filter expression."""

    kind: TokenKind
    text: str
    """Raw text (for words) or decoded value (for strings)"""

    pos: int
    """Offset in the original expression"""


def tokenize_filter(text: str) -> list[Token]:
    """Split a filter expression into tokens in a single linear pass.

    Raises:
        FilterSyntaxError: On unterminated string literals or unexpected characters
    """
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        char = text[i]

        if char.isspace():
            i += 1
        elif char == "(":
            tokens.append(Token("lparen", char, i))
            i += 1
        elif char == ")":
            tokens.append(Token("rparen", char, i))
            i += 1
        elif char == "'":
            start = i
            i += 1
            chunks: list[str] = []
            while True:
                if i >= n:
                    msg = f"Unterminated string literal at position {start}"
                    raise FilterSyntaxError(msg)
                if text[i] == "'":
                    # '' inside a literal is an escaped quote
                    if i + 1 < n and text[i + 1] == "'":
                        chunks.append("'")
                        i += 2
                        continue
                    i += 1
                    break
                chunks.append(text[i])
                i += 1
            tokens.append(Token("string", "".join(chunks), start))
        elif char.isdigit() or (char == "-" and i + 1 < n and text[i + 1].isdigit()):
            start = i
            i += 1
            while i < n and text[i].isdigit():
                i += 1
            tokens.append(Token("number", text[start:i], start))
        elif char.isalpha() or char == "_":
            start = i
            while i < n and (text[i].isalnum() or text[i] in "_/."):
                i += 1
            tokens.append(Token("word", text[start:i], start))
        else:
            msg = f"Unexpected character {char!r} at position {i}"
            raise FilterSyntaxError(msg)

    return tokens


class _Parser:
    """Recursive descent over a token list."""

    def __init__(self, tokens: list[Token], max_depth: int) -> None:
        self.tokens = tokens
        self.pos = 0
        self.max_depth = max_depth

    def peek(self) -> Token | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            msg = "Unexpected end of filter expression"
            raise FilterSyntaxError(msg)
        self.pos += 1
        return token

    def parse_group(self, depth: int) -> FilterGroup:
        if depth > self.max_depth:
            msg = f"Filter nesting depth {depth} exceeds maximum of {self.max_depth}"
            raise FilterSyntaxError(msg)

        items: list[FilterNode] = [self.parse_term(depth)]
        logic: str | None = None

        while True:
            token = self.peek()
            if token is None or token.kind == "rparen":
                break
            if token.kind != "word" or token.text.lower() not in _LOGIC:
                msg = f"Expected 'and' or 'or' at position {token.pos}, got {token.text!r}"
                raise FilterSyntaxError(msg)

            op = token.text.lower()
            if logic is None:
                logic = op
            elif op != logic:
                msg = (
                    "Mixed and/or operators at same level not supported. "
                    "Use parentheses to group."
                )
                raise FilterSyntaxError(msg)
            self.advance()
            items.append(self.parse_term(depth))

        # A lone parenthesized clause is a one-identifier OR group; a lone root clause is AND
        if logic is None:
            logic = "or" if depth > 0 else "and"
        return FilterGroup(logic=logic, items=tuple(items))  # type: ignore[arg-type]

    def parse_term(self, depth: int) -> FilterNode:
        token = self.advance()

        if token.kind == "lparen":
            if (nxt := self.peek()) is not None and nxt.kind == "rparen":
                msg = f"Empty group at position {token.pos}"
                raise FilterSyntaxError(msg)
            group = self.parse_group(depth + 1)
            closing = self.peek()
            if closing is None or closing.kind != "rparen":
                msg = "Unbalanced parentheses: unclosed '('"
                raise FilterSyntaxError(msg)
            self.advance()
            return group

        if token.kind == "rparen":
            msg = "Unbalanced parentheses: closing ')' without opening '('"
            raise FilterSyntaxError(msg)

        if token.kind != "word" or token.text.lower() in _LOGIC + _OPERATORS:
            msg = f"Expected field name at position {token.pos}, got {token.text!r}"
            raise FilterSyntaxError(msg)

        op_token = self.advance()
        operator = op_token.text.lower()
        if op_token.kind != "word" or operator not in _OPERATORS:
            msg = f"Expected 'eq' or 'ne' at position {op_token.pos}, got {op_token.text!r}"
            raise FilterSyntaxError(msg)

        literal = self.advance()
        value: str | int
        if literal.kind == "string":
            value = literal.text
        elif literal.kind == "number":
            value = int(literal.text)
        else:
            msg = f"Expected literal at position {literal.pos}, got {literal.text!r}"
            raise FilterSyntaxError(msg)

        return FilterClause(field=token.text, operator=operator, value=value)  # type: ignore[arg-type]


def parse_filter(text: str, max_depth: int = MAX_FILTER_DEPTH) -> FilterGroup:
    """Parse an OData filter expression into a FilterGroup tree.

    The root is always a group; a lone clause becomes a one-item ``and`` group.
    A parenthesized group holding a single clause parses as a one-item ``or``
    group, matching how identifier sets of size one are built.
    Parenthesized sub-expressions become nested groups.

    Raises:
        FilterSyntaxError: If the expression is empty, too long, or malformed

    USAGE:
        >>> tree = parse_filter("taxType eq '1040' and (eorgName eq 'A' or eorgName eq 'B')")
        >>> tree.logic
        'and'
        >>> tree.groups[0].logic
        'or'
    """
    if not text or not text.strip():
        msg = "Filter cannot be empty"
        raise FilterSyntaxError(msg)

    if len(text) > MAX_FILTER_LENGTH:
        msg = f"Filter too long (max {MAX_FILTER_LENGTH} characters)"
        raise FilterSyntaxError(msg)

    parser = _Parser(tokenize_filter(text), max_depth)
    root = parser.parse_group(depth=0)

    leftover = parser.peek()
    if leftover is not None:
        msg = "Unbalanced parentheses: closing ')' without opening '('"
        raise FilterSyntaxError(msg)

    return root


def describe_filter(node: FilterNode, indent: int = 0) -> list[str]:
    """Render a filter tree as indented lines for diagnostics."""
    pad = "  " * indent
    if isinstance(node, FilterClause):
        return [f"{pad}{node.field} {node.operator} {node.value!r}"]

    lines = [f"{pad}{node.logic.upper()}"]
    for item in node.items:
        lines.extend(describe_filter(item, indent + 1))
    return lines
