#!/usr/bin/env python3
"""
Check the OData tax-return-data service outside of MCP.

Modes:
- default: GET the first page (no filter) and append request headers (token
  masked), status and body, or the error details, to a log file
- --tool: call an MCP tool by name with JSON arguments and print the result
- --parse-filter: parse a $filter expression and print its structure

Usage:
    python scripts/check_odata_connection.py [--log-file odata-test.log]
    python scripts/check_odata_connection.py --tool get_top_by_value --args '{"year": 2024, "eorgs": "A"}'
    python scripts/check_odata_connection.py --parse-filter "taxType eq '1040' and (eorgName eq 'A')"
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import requests

from odata_tax_mcp.components.odata_client_comp import (
    ODataClient,
    build_headers,
    encode_params,
    mask_token,
)
from odata_tax_mcp.helpers.config_loader import ODataSettings, load_config
from odata_tax_mcp.helpers.exceptions import FilterSyntaxError
from odata_tax_mcp.workflows.parse_filter_wf import describe_filter, parse_filter

logger = logging.getLogger("odata-test")

DEFAULT_LOG_FILE = "odata-test.log"


def _configure_file_log(log_file: Path) -> None:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False


def check_service(settings: ODataSettings) -> int:
    """Fetch one unfiltered page and log what came back. Returns exit code."""
    request_headers = build_headers(settings.token)
    headers = dict(request_headers)
    headers["Authorization"] = f"Bearer {mask_token(settings.token)}"

    logger.info("[Test] Starting OData API test")
    logger.info("[Test] Headers: " + json.dumps(headers, indent=2))

    url = f"{settings.base_url}{settings.entity_path}?{encode_params({'$top': 50, '$skip': 0})}"
    logger.info(f"[Test] Making request to: {url}")

    with requests.Session() as session:
        try:
            response = session.get(url, headers=request_headers, timeout=settings.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as e:
            error_response = getattr(e, "response", None)
            details = {
                "message": str(e),
                "response": {
                    "status": getattr(error_response, "status_code", None),
                    "statusText": getattr(error_response, "reason", None),
                    "data": getattr(error_response, "text", None),
                },
            }
            logger.info("[Test] Error details: " + json.dumps(details, indent=2))
            return 1

    logger.info(f"[Test] Response status: {response.status_code}")
    try:
        body = json.dumps(response.json(), indent=2)
    except ValueError:
        body = response.text
    logger.info(f"[Test] Response data: {body}")
    return 0


def run_tool(settings: ODataSettings, name: str, raw_args: str) -> int:
    """Call a tool through the server registry and print its JSON output."""
    # Imported lazily: the server module configures logging on import
    from mcp.shared.exceptions import McpError

    from odata_tax_mcp.server import call_tool_by_name

    try:
        arguments = json.loads(raw_args)
    except json.JSONDecodeError as e:
        print(f"--args is not valid JSON: {e}", file=sys.stderr)
        return 2

    with ODataClient(settings.base_url, settings.token, timeout=settings.timeout_seconds) as client:
        try:
            result = call_tool_by_name(name, arguments, client, settings)
        except McpError as e:
            print(f"MCP error {e.error.code}: {e.error.message}", file=sys.stderr)
            return 2

    for content in result.content:
        print(getattr(content, "text", content))
    return 1 if result.isError else 0


def show_filter(text: str) -> int:
    try:
        tree = parse_filter(text)
    except FilterSyntaxError as e:
        print(f"Invalid filter: {e}", file=sys.stderr)
        return 1
    print("\n".join(describe_filter(tree)))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Check the OData tax-return-data service")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=Path(DEFAULT_LOG_FILE),
        help=f"File to append check output to (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument("--tool", help="Call an MCP tool by name instead of checking the service")
    parser.add_argument("--args", default="{}", help="JSON arguments for --tool")
    parser.add_argument("--parse-filter", metavar="FILTER", help="Parse and print a $filter")
    args = parser.parse_args()

    if args.parse_filter:
        return show_filter(args.parse_filter)

    settings = load_config()

    if args.tool:
        return run_tool(settings, args.tool, args.args)

    _configure_file_log(args.log_file)
    exit_code = check_service(settings)
    print(f"Check {'succeeded' if exit_code == 0 else 'failed'}; see {args.log_file}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
