"""get_top_by_value tool: top N records ranked by value."""

from __future__ import annotations

import logging

from mcp.types import CallToolResult

from odata_tax_mcp.components.odata_client_comp import ODataClient
from odata_tax_mcp.helpers.dto.filter_dto import LiteralPolicy
from odata_tax_mcp.helpers.dto.query_dto import TopByValueRequest
from odata_tax_mcp.helpers.exceptions import InvalidArgumentError, TransportError
from odata_tax_mcp.helpers.mcp_output_helper import wrap_mcp_error, wrap_mcp_result
from odata_tax_mcp.workflows.build_query_wf import (
    TAX_RETURN_DATA_PATH,
    build_top_by_value_query,
)
from odata_tax_mcp.workflows.normalize_response_wf import normalize_top_records

logger = logging.getLogger(__name__)


def get_top_by_value(
    request: TopByValueRequest,
    client: ODataClient,
    *,
    literal_policy: LiteralPolicy = "passthrough",
    entity_path: str = TAX_RETURN_DATA_PATH,
) -> CallToolResult:
    """Fetch the top records by value and echo the query that produced them.

    Argument and transport failures come back as error results; anything
    else propagates.
    """
    try:
        spec = build_top_by_value_query(
            request, entity_path=entity_path, literal_policy=literal_policy
        )
        rows = client.execute(spec)
    except InvalidArgumentError as e:
        return wrap_mcp_error(f"Invalid argument: {e}")
    except TransportError as e:
        return wrap_mcp_error(f"OData API error: {e.message}")

    result = normalize_top_records(rows, request.year, spec.to_params(), client.url_for(spec))
    logger.info(f"[get_top_by_value] year={request.year} records={len(result.top_records)}")
    return wrap_mcp_result(result)
