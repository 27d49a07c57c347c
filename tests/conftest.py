"""
Pytest fixtures and configuration for the test suite.

Network strategy:
- No test touches the network
- ODataClient gets a MagicMock session whose get() returns real requests.Response objects
- ODATA_* environment variables are cleared for every test
"""

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

# Add project root to path so tests can import odata_tax_mcp package
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from odata_tax_mcp.components.odata_client_comp import ODataClient  # noqa: E402

BASE_URL = "https://odata.example.test"
TEST_TOKEN = "test-token-0123456789abcdef"

_ENV_KEYS = (
    "ODATA_API_URL",
    "ODATA_API_TOKEN",
    "ODATA_TIMEOUT",
    "ODATA_LITERAL_POLICY",
    "ODATA_LOG_LEVEL",
    "ODATA_CONFIG_PATH",
)


def make_response(
    status_code: int = 200,
    json_body: Any = None,
    *,
    text: str | None = None,
    url: str = f"{BASE_URL}/odata/v1/tax-return-data",
    reason: str = "OK",
) -> requests.Response:
    """Build a real requests.Response without a network round trip."""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.reason = reason
    response.encoding = "utf-8"
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
    else:
        response._content = (text or "").encode("utf-8")
    return response


def tax_row(eorg: str, value: Any = "100", **overrides: Any) -> dict[str, Any]:
    """A tax-return-data row with sensible defaults."""
    row = {
        "eorgName": eorg,
        "value": value,
        "firm": "F1",
        "account": "ACC1",
        "formName": "F1040",
        "fieldName": "Line1",
        "locator": "2517KC",
        "year": 2024,
        "taxType": "1040",
    }
    row.update(overrides)
    return row


@pytest.fixture(autouse=True)
def clean_odata_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear ODATA_* variables so host settings never leak into tests."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_session() -> MagicMock:
    """requests.Session stand-in; set .get.return_value or .get.side_effect per test."""
    session = MagicMock(spec=requests.Session)
    session.get.return_value = make_response(json_body={"value": []})
    return session


@pytest.fixture
def client(mock_session: MagicMock) -> ODataClient:
    return ODataClient(BASE_URL, TEST_TOKEN, session=mock_session)


@pytest.fixture
def respond_with(mock_session: MagicMock) -> Callable[..., MagicMock]:
    """Make the mock session answer every GET with the given response."""

    def _respond(*args: Any, **kwargs: Any) -> MagicMock:
        mock_session.get.return_value = make_response(*args, **kwargs)
        mock_session.get.side_effect = None
        return mock_session

    return _respond
