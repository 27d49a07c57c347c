"""OData HTTP client for the tax-return-data service.

Issues exactly one GET per query:
GET {base_url}{entity_path}?year=...&$filter=...&$top=...&$skip=...[&$orderby=...]

Authentication is a static bearer token. A missing token is not fatal: the
request goes out unauthenticated and the service rejects it.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any
from urllib.parse import quote

import requests

from odata_tax_mcp.helpers.dto.query_dto import QuerySpec
from odata_tax_mcp.helpers.exceptions import TransportError

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 30  # seconds
_ACCEPT = "application/json;odata.metadata=minimal;odata.streaming=true"


def mask_token(token: str, visible: int = 20) -> str:
    """Shorten a bearer token for logs: first ``visible`` chars then '...'."""
    if not token:
        return ""
    return f"{token[:visible]}..."


def build_headers(token: str) -> dict[str, str]:
    """Request headers for the tax-return-data service."""
    return {
        "accept": _ACCEPT,
        "Authorization": f"Bearer {token}",
    }


def encode_params(params: dict[str, Any]) -> str:
    """Percent-encode query parameters ('$top' -> '%24top').

    Spaces become %20 (not '+'), which OData services expect inside $filter.
    """
    return "&".join(f"{quote(str(k), safe='')}={quote(str(v), safe='')}" for k, v in params.items())


def _extract_error_message(response: requests.Response | None) -> tuple[str | None, Any]:
    """Pull the service-provided message out of an error body.

    Understands both ``{"message": ...}`` and OData ``{"error": {"message": ...}}``.

    Returns:
        Tuple of (message or None, decoded body or raw text)
    """
    if response is None:
        return None, None

    try:
        body = response.json()
    except ValueError:
        return None, response.text or None

    if isinstance(body, dict):
        if isinstance(body.get("message"), str):
            return body["message"], body
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"], body
    return None, body


class ODataClient:
    """Client for the tax-return-data OData endpoint.

    Owns a requests.Session for its lifetime. Use as a context manager, or
    call close() when done.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        *,
        timeout: float = _REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._session = session or requests.Session()

        if not token:
            logger.warning("No API token provided. Set ODATA_API_TOKEN in .env file")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> ODataClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    @property
    def headers(self) -> dict[str, str]:
        return build_headers(self.token)

    def url_for(self, spec: QuerySpec) -> str:
        """Target URL (without query string) for a QuerySpec."""
        return f"{self.base_url}{spec.entity_path}"

    def fetch(self, spec: QuerySpec) -> dict[str, Any]:
        """Send the query and return the decoded JSON body.

        Single attempt, fixed timeout, no retry.

        Raises:
            TransportError: On non-2xx status, timeout, connection error, or a
                body that is not a JSON object
        """
        url = self.url_for(spec)
        query = encode_params(spec.to_params())
        logger.debug(f"[odata] GET {url}?{query}")

        try:
            response = self._session.get(
                f"{url}?{query}",
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            message, detail = _extract_error_message(e.response)
            status = e.response.status_code if e.response is not None else None
            logger.warning(f"[odata] HTTP {status} from {url}: {message or e}")
            raise TransportError(message or str(e), status_code=status, detail=detail) from e
        except requests.RequestException as e:
            logger.warning(f"[odata] Request to {url} failed: {e}")
            raise TransportError(str(e)) from e

        try:
            body = response.json()
        except ValueError as e:
            msg = f"Response from {url} is not valid JSON"
            raise TransportError(msg, status_code=response.status_code, detail=response.text) from e

        if not isinstance(body, dict):
            msg = f"Unexpected response shape from {url}: {type(body).__name__}"
            raise TransportError(msg, status_code=response.status_code, detail=body)

        return body

    def execute(self, spec: QuerySpec) -> list[dict[str, Any]]:
        """Send the query and return the row list (empty if the body has none).

        Raises:
            TransportError: As fetch()
        """
        rows = self.fetch(spec).get("value")
        return list(rows) if rows else []
