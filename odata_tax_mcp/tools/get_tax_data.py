"""get_tax_data tool: values for one or more EORGs in a given year."""

from __future__ import annotations

import logging

from mcp.types import CallToolResult

from odata_tax_mcp.components.odata_client_comp import ODataClient
from odata_tax_mcp.helpers.dto.filter_dto import LiteralPolicy
from odata_tax_mcp.helpers.dto.query_dto import TaxDataRequest
from odata_tax_mcp.helpers.exceptions import InvalidArgumentError, TransportError
from odata_tax_mcp.helpers.mcp_output_helper import wrap_mcp_error, wrap_mcp_result
from odata_tax_mcp.workflows.build_query_wf import TAX_RETURN_DATA_PATH, build_tax_data_query
from odata_tax_mcp.workflows.normalize_response_wf import normalize_tax_data

logger = logging.getLogger(__name__)


def get_tax_data(
    request: TaxDataRequest,
    client: ODataClient,
    *,
    literal_policy: LiteralPolicy = "passthrough",
    entity_path: str = TAX_RETURN_DATA_PATH,
) -> CallToolResult:
    """Fetch tax data for the requested EORGs and group it per EORG.

    Argument and transport failures come back as error results; anything
    else propagates.
    """
    try:
        spec = build_tax_data_query(request, entity_path=entity_path, literal_policy=literal_policy)
        payload = client.fetch(spec)
    except InvalidArgumentError as e:
        return wrap_mcp_error(f"Invalid argument: {e}")
    except TransportError as e:
        return wrap_mcp_error(f"OData API error: {e.message}")

    result = normalize_tax_data(
        payload,
        spec.identifiers,
        request.year,
        form_name=request.form_name,
        field_name=request.field_name,
    )
    logger.info(
        f"[get_tax_data] year={request.year} eorgs={len(spec.identifiers)} "
        f"matched={len(result.data or {})}"
    )
    return wrap_mcp_result(result)
