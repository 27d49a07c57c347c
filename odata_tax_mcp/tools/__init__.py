"""Tool implementations.

Each module exposes one function that takes a request struct and an
ODataClient and returns an MCP CallToolResult. Server wrappers in
server.py handle argument parsing and client lookup.
"""
