"""
Components package.
"""

from .filter_builder_comp import all_of, any_equal, any_of, eq, ne, render
from .locator_comp import resolve_default_locator, resolve_locator
from .odata_client_comp import ODataClient, build_headers, mask_token

__all__ = [
    "ODataClient",
    "all_of",
    "any_equal",
    "any_of",
    "build_headers",
    "eq",
    "mask_token",
    "ne",
    "render",
    "resolve_default_locator",
    "resolve_locator",
]
