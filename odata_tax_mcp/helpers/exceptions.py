"""Custom exceptions used across multiple layers.

Rules:
- Only put exceptions here if they need to be raised in one layer and caught in another.
- Keep exceptions simple and focused.
- No I/O, no config loading, no complex logic.
"""

from __future__ import annotations

from typing import Any


class OdataTaxError(Exception):
    """Base class for all odata_tax_mcp errors."""


class InvalidArgumentError(OdataTaxError):
    """Raised when caller input cannot produce a query (e.g. empty EORG list).

    Never reaches the network.
    """


class FilterSyntaxError(OdataTaxError):
    """Raised when a filter expression is invalid or cannot be parsed."""


class TransportError(OdataTaxError):
    """Raised when the OData request fails: non-2xx status, timeout, or connection error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class NormalizationError(OdataTaxError):
    """Raised while reshaping a successful response.

    Caught inside the normalizer and converted into an error result.
    """
