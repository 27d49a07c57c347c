"""MCP output formatting helpers.

Provides functions to wrap tool results as MCP CallToolResult objects.
Separates presentation logic from tool implementations.
"""

import json
from typing import Any

from mcp.types import CallToolResult, TextContent


def _to_structured(result: Any) -> dict[str, Any]:
    if hasattr(result, "model_dump"):
        return result.model_dump(by_alias=True)
    if isinstance(result, dict):
        return result
    return {"result": str(result)}


def wrap_mcp_result(result: Any) -> CallToolResult:
    """Wrap a domain result as a successful tool result.

    The text content is the pretty-printed JSON of the result, and the same
    dict is attached as structuredContent.

    Args:
        result: Domain object (Pydantic model or dict)

    Returns:
        CallToolResult with isError=False
    """
    structured_content = _to_structured(result)
    return CallToolResult(
        content=[
            TextContent(
                type="text",
                text=json.dumps(structured_content, indent=2, default=str),
            ),
        ],
        structuredContent=structured_content,
        isError=False,
    )


def wrap_mcp_error(message: str) -> CallToolResult:
    """Wrap an expected failure (bad arguments, transport error) as an error result.

    The hosting transport always receives a well-formed response.
    """
    return CallToolResult(
        content=[TextContent(type="text", text=message)],
        isError=True,
    )
