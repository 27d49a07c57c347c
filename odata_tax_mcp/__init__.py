"""OData Tax MCP - tax return data tools for AI agents.

Exposes two tools over MCP (Model Context Protocol) that query the
``/odata/v1/tax-return-data`` service:

- get_tax_data: values for one or more EORGs in a given year
- get_top_by_value: top N records ranked by value

The main entry point is the server module:
    from odata_tax_mcp.server import main, mcp, TOOL_IMPLS
"""

__version__ = "0.1.0"
