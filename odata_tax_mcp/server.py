#!/usr/bin/env python3
"""OData Tax MCP Server.

Exposes tax return data from the OData tax-return-data service to AI agents
via MCP. All tools return structured JSON.

Tools:
- get_tax_data: Get tax data for specific EORGs and year
- get_top_by_value: Get top N records ranked by value for EORGs and year

Configuration (see helpers/config_loader.py):
- ODATA_API_URL: service base URL
- ODATA_API_TOKEN: bearer token (missing token is logged, not fatal)

Usage:
    python -m odata_tax_mcp
"""

import logging
import sys
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

from mcp.server.fastmcp import Context, FastMCP
from mcp.shared.exceptions import McpError
from mcp.types import METHOD_NOT_FOUND, CallToolResult, ErrorData

from . import __version__
from .components.odata_client_comp import ODataClient
from .helpers.config_loader import ODataSettings, load_config
from .helpers.dto.query_dto import DEFAULT_TAX_TYPE, TaxDataRequest, TopByValueRequest
from .helpers.mcp_output_helper import wrap_mcp_error
from .tools.get_tax_data import get_tax_data as get_tax_data_impl
from .tools.get_top_by_value import get_top_by_value as get_top_by_value_impl

# ──────────────────────────────────────────────────────────────────────
# Early Setup: Configure logging to stderr (NEVER stdout for MCP stdio)
# ──────────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.WARNING,
    format="%(name)s: %(message)s",
    stream=sys.stderr,  # Critical: MCP uses stdout for JSON-RPC
)

# Suppress noisy loggers that might write to handlers
for noisy_logger in ["asyncio", "urllib3", "httpcore", "httpx"]:
    logging.getLogger(noisy_logger).setLevel(logging.ERROR)

ROOT = Path.cwd()

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────
# Configuration
# ──────────────────────────────────────────────────────────────────────

_settings: ODataSettings = load_config(ROOT)
logging.getLogger("odata_tax_mcp").setLevel(_settings.log_level)


# ──────────────────────────────────────────────────────────────────────
# Lifespan: one HTTP session per server process
# ──────────────────────────────────────────────────────────────────────


@dataclass
class ServerContext:
    """Objects shared by all tool calls for the life of the server."""

    client: ODataClient
    settings: ODataSettings


def make_client(settings: ODataSettings) -> ODataClient:
    return ODataClient(settings.base_url, settings.token, timeout=settings.timeout_seconds)


@asynccontextmanager
async def lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open the OData session on startup and always close it on shutdown."""
    client = make_client(_settings)
    logger.info(f"OData MCP server running on stdio (base_url={_settings.base_url})")
    try:
        yield ServerContext(client=client, settings=_settings)
    finally:
        client.close()
        logger.info("OData session closed")


mcp = FastMCP(
    name="odata-server",
    instructions=(
        "Read-only access to tax return data. "
        "Use get_tax_data for specific EORG values in a year; "
        "use get_top_by_value to rank records by value. "
        "EORG arguments accept comma-separated lists."
    ),
    lifespan=lifespan,
)


def _server_context(ctx: Context) -> ServerContext:
    return ctx.request_context.lifespan_context


# ──────────────────────────────────────────────────────────────────────
# Argument parsing (tool name -> request struct)
# ──────────────────────────────────────────────────────────────────────


def _tax_data_request(arguments: dict[str, Any]) -> TaxDataRequest:
    return TaxDataRequest(
        eorg=arguments["eorg"],
        year=int(arguments["year"]),
        tax_type=arguments.get("taxType") or DEFAULT_TAX_TYPE,
        form_name=arguments.get("form_name"),
        field_name=arguments.get("field_name"),
        locator=arguments.get("locator"),
        skip=int(arguments.get("skip", 0)),
    )


def _top_by_value_request(arguments: dict[str, Any]) -> TopByValueRequest:
    return TopByValueRequest(
        year=int(arguments["year"]),
        eorgs=arguments["eorgs"],
        top=int(arguments.get("top", 10)),
        tax_type=arguments.get("taxType") or DEFAULT_TAX_TYPE,
        sort_order=arguments.get("sort_order") or "desc",
        skip=int(arguments.get("skip", 0)),
    )


# Tool registry for programmatic access: name -> (argument parser, implementation)
TOOL_IMPLS: dict[str, tuple[Callable[[dict[str, Any]], Any], Callable[..., CallToolResult]]] = {
    "get_tax_data": (_tax_data_request, get_tax_data_impl),
    "get_top_by_value": (_top_by_value_request, get_top_by_value_impl),
}


def call_tool_by_name(
    name: str,
    arguments: dict[str, Any],
    client: ODataClient,
    settings: ODataSettings | None = None,
) -> CallToolResult:
    """Invoke a tool by name with raw MCP-style arguments.

    Raises:
        McpError: METHOD_NOT_FOUND if the tool name is unknown
    """
    entry = TOOL_IMPLS.get(name)
    if entry is None:
        raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

    settings = settings or _settings
    parse_arguments, impl = entry
    try:
        request = parse_arguments(arguments)
    except KeyError as e:
        return wrap_mcp_error(f"Invalid argument: missing required argument {e}")
    except (TypeError, ValueError) as e:
        return wrap_mcp_error(f"Invalid argument: {e}")

    return impl(
        request,
        client,
        literal_policy=settings.literal_policy,
        entity_path=settings.entity_path,
    )


# ──────────────────────────────────────────────────────────────────────
# Tools
# ──────────────────────────────────────────────────────────────────────


@mcp.tool(structured_output=False)
def get_tax_data(
    eorg: Annotated[str, "The EORG identifiers (comma-separated for multiple)"],
    year: Annotated[int, "The tax year"],
    ctx: Context,
    taxType: Annotated[str, "Tax type (e.g. 1040, 1065, 1120)"] = DEFAULT_TAX_TYPE,  # noqa: N803
    form_name: Annotated[str | None, "Name of the tax form"] = None,
    field_name: Annotated[str | None, "Name of the field"] = None,
    locator: Annotated[
        str | None,
        "Optional locator value. If not provided, defaults to year-specific value",
    ] = None,
    skip: Annotated[int, "Number of records to skip (for pagination)"] = 0,
) -> CallToolResult:
    """Get tax data for specific EORGs and year.

    Returns one entry per EORG that has data (first matching record).
    form_name and field_name narrow the query only when both are given.
    """
    server_ctx = _server_context(ctx)
    arguments = {
        "eorg": eorg,
        "year": year,
        "taxType": taxType,
        "form_name": form_name,
        "field_name": field_name,
        "locator": locator,
        "skip": skip,
    }
    return call_tool_by_name("get_tax_data", arguments, server_ctx.client, server_ctx.settings)


@mcp.tool(structured_output=False)
def get_top_by_value(
    year: Annotated[int, "The tax year"],
    eorgs: Annotated[str, "The EORG identifiers to filter by (comma-separated for multiple)"],
    ctx: Context,
    top: Annotated[int, "Number of top records to return (default: 10)"] = 10,
    taxType: Annotated[str, "Tax type (e.g. 1040, 1065, 1120)"] = DEFAULT_TAX_TYPE,  # noqa: N803
    sort_order: Annotated[str, "Sort order (asc or desc)"] = "desc",
    skip: Annotated[int, "Number of records to skip (for pagination)"] = 0,
) -> CallToolResult:
    """Get top N records ranked by value for a given EORG and year combination.

    Records with value 'NONE' are excluded. The exact query sent is echoed
    in query_info.
    """
    server_ctx = _server_context(ctx)
    arguments = {
        "year": year,
        "eorgs": eorgs,
        "top": top,
        "taxType": taxType,
        "sort_order": sort_order,
        "skip": skip,
    }
    return call_tool_by_name(
        "get_top_by_value", arguments, server_ctx.client, server_ctx.settings
    )


def main() -> None:
    """Run the MCP server on stdio until the client disconnects or Ctrl+C."""
    logger.info(f"Starting odata-server {__version__}")
    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


# ──────────────────────────────────────────────────────────────────────
# Main Entry Point
# ──────────────────────────────────────────────────────────────────────


if __name__ == "__main__":
    main()
