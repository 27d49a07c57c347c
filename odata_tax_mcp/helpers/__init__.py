"""
Helpers package.
"""

from .exceptions import (
    FilterSyntaxError,
    InvalidArgumentError,
    NormalizationError,
    OdataTaxError,
    TransportError,
)

__all__ = [
    "FilterSyntaxError",
    "InvalidArgumentError",
    "NormalizationError",
    "OdataTaxError",
    "TransportError",
]
