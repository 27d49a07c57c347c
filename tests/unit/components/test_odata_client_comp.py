"""Unit tests for the OData HTTP client.

Tests verify:
- Exactly one GET per call with headers, timeout and encoded query
- Transport failures (HTTP status, timeout, connection) become TransportError
- Service-provided error messages are preferred over generic ones
- Session lifecycle (close / context manager)
"""

import logging
from unittest.mock import MagicMock

import pytest
import requests
from conftest import BASE_URL, TEST_TOKEN, make_response

from odata_tax_mcp.components.filter_builder_comp import all_of, eq, render
from odata_tax_mcp.components.odata_client_comp import (
    ODataClient,
    build_headers,
    encode_params,
    mask_token,
)
from odata_tax_mcp.helpers.dto.query_dto import QuerySpec
from odata_tax_mcp.helpers.exceptions import TransportError


def _spec(**overrides) -> QuerySpec:
    tree = all_of(eq("taxType", "1040"), eq("year", 2024))
    fields = {
        "entity_path": "/odata/v1/tax-return-data",
        "filter_tree": tree,
        "filter_expression": render(tree),
        "identifiers": ("A",),
        "top": 10,
        "skip": 0,
        "orderby": "value desc",
    }
    fields.update(overrides)
    return QuerySpec(**fields)


class TestHelpers:
    @pytest.mark.unit
    def test_mask_token(self) -> None:
        assert mask_token("abcdefghijklmnopqrstuvwxyz") == "abcdefghijklmnopqrst..."
        assert mask_token("") == ""

    @pytest.mark.unit
    def test_build_headers_matches_client_headers(self, client: ODataClient) -> None:
        assert build_headers(TEST_TOKEN) == client.headers
        assert build_headers("")["Authorization"] == "Bearer "

    @pytest.mark.unit
    def test_encode_params_uses_percent_20_and_encodes_dollar(self) -> None:
        query = encode_params({"$filter": "year eq 2024", "$top": 5})
        assert query == "%24filter=year%20eq%202024&%24top=5"

    @pytest.mark.unit
    def test_encode_params_encodes_quotes_and_parentheses(self) -> None:
        query = encode_params({"$filter": "(a eq 'x')"})
        assert query == "%24filter=%28a%20eq%20%27x%27%29"


class TestFetch:
    @pytest.mark.unit
    def test_single_get_with_headers_and_timeout(
        self, client: ODataClient, mock_session: MagicMock
    ) -> None:
        client.fetch(_spec())

        assert mock_session.get.call_count == 1
        args, kwargs = mock_session.get.call_args
        assert args[0].startswith(f"{BASE_URL}/odata/v1/tax-return-data?")
        assert kwargs["timeout"] == 30
        assert kwargs["headers"] == {
            "accept": "application/json;odata.metadata=minimal;odata.streaming=true",
            "Authorization": f"Bearer {TEST_TOKEN}",
        }

    @pytest.mark.unit
    def test_query_string_carries_all_params(
        self, client: ODataClient, mock_session: MagicMock
    ) -> None:
        client.fetch(_spec(skip=20, extra_params={"year": 2024}))

        url = mock_session.get.call_args.args[0]
        query = url.split("?", 1)[1]
        assert query == (
            "year=2024"
            "&%24filter=taxType%20eq%20%271040%27%20and%20year%20eq%202024"
            "&%24top=10&%24skip=20&%24orderby=value%20desc"
        )

    @pytest.mark.unit
    def test_returns_decoded_body(self, client: ODataClient, respond_with) -> None:
        respond_with(json_body={"value": [{"eorgName": "A"}], "@odata.context": "x"})
        assert client.fetch(_spec()) == {"value": [{"eorgName": "A"}], "@odata.context": "x"}

    @pytest.mark.unit
    def test_trailing_slash_in_base_url_is_ignored(self, mock_session: MagicMock) -> None:
        client = ODataClient(f"{BASE_URL}/", TEST_TOKEN, session=mock_session)
        assert client.url_for(_spec()) == f"{BASE_URL}/odata/v1/tax-return-data"

    @pytest.mark.unit
    def test_custom_timeout(self, mock_session: MagicMock) -> None:
        client = ODataClient(BASE_URL, TEST_TOKEN, timeout=5.0, session=mock_session)
        client.fetch(_spec())
        assert mock_session.get.call_args.kwargs["timeout"] == 5.0


class TestTransportFailures:
    @pytest.mark.unit
    def test_500_with_service_message(self, client: ODataClient, respond_with) -> None:
        respond_with(500, {"message": "Database unavailable"}, reason="Internal Server Error")

        with pytest.raises(TransportError) as exc_info:
            client.fetch(_spec())

        assert exc_info.value.message == "Database unavailable"
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == {"message": "Database unavailable"}

    @pytest.mark.unit
    def test_odata_style_error_body(self, client: ODataClient, respond_with) -> None:
        respond_with(400, {"error": {"code": "BadRequest", "message": "Invalid $filter"}})

        with pytest.raises(TransportError, match=r"Invalid \$filter") as exc_info:
            client.fetch(_spec())
        assert exc_info.value.status_code == 400

    @pytest.mark.unit
    def test_error_without_json_body_uses_generic_message(
        self, client: ODataClient, respond_with
    ) -> None:
        respond_with(502, text="<html>Bad Gateway</html>", reason="Bad Gateway")

        with pytest.raises(TransportError, match="502") as exc_info:
            client.fetch(_spec())
        assert exc_info.value.detail == "<html>Bad Gateway</html>"

    @pytest.mark.unit
    def test_timeout(self, client: ODataClient, mock_session: MagicMock) -> None:
        mock_session.get.side_effect = requests.Timeout("Read timed out. (read timeout=30)")

        with pytest.raises(TransportError, match="timed out") as exc_info:
            client.fetch(_spec())
        assert exc_info.value.status_code is None
        assert mock_session.get.call_count == 1

    @pytest.mark.unit
    def test_connection_error(self, client: ODataClient, mock_session: MagicMock) -> None:
        mock_session.get.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(TransportError, match="Connection refused"):
            client.fetch(_spec())

    @pytest.mark.unit
    def test_non_json_success_body(self, client: ODataClient, respond_with) -> None:
        respond_with(200, text="not json")

        with pytest.raises(TransportError, match="not valid JSON"):
            client.fetch(_spec())

    @pytest.mark.unit
    def test_non_object_success_body(self, client: ODataClient, respond_with) -> None:
        respond_with(200, [1, 2, 3])

        with pytest.raises(TransportError, match="Unexpected response shape"):
            client.fetch(_spec())

    @pytest.mark.unit
    def test_unexpected_errors_propagate(
        self, client: ODataClient, mock_session: MagicMock
    ) -> None:
        mock_session.get.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError, match="bug"):
            client.fetch(_spec())


class TestExecute:
    @pytest.mark.unit
    def test_returns_rows(self, client: ODataClient, respond_with) -> None:
        respond_with(json_body={"value": [{"eorgName": "A"}, {"eorgName": "B"}]})
        assert client.execute(_spec()) == [{"eorgName": "A"}, {"eorgName": "B"}]

    @pytest.mark.unit
    def test_empty_rows_are_not_an_error(self, client: ODataClient, respond_with) -> None:
        respond_with(json_body={"value": []})
        assert client.execute(_spec()) == []

    @pytest.mark.unit
    def test_missing_value_field_is_empty(self, client: ODataClient, respond_with) -> None:
        respond_with(json_body={"@odata.context": "x"})
        assert client.execute(_spec()) == []


class TestLifecycle:
    @pytest.mark.unit
    def test_context_manager_closes_session(self, mock_session: MagicMock) -> None:
        with ODataClient(BASE_URL, TEST_TOKEN, session=mock_session):
            pass
        mock_session.close.assert_called_once()

    @pytest.mark.unit
    def test_missing_token_warns_but_still_sends(
        self, mock_session: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            client = ODataClient(BASE_URL, "", session=mock_session)

        assert "No API token provided" in caplog.text
        client.fetch(_spec())
        assert mock_session.get.call_args.kwargs["headers"]["Authorization"] == "Bearer "
