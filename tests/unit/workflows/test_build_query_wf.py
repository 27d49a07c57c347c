"""Unit tests for build_query_wf.

Tests verify:
- Identifier splitting (trim, drop empties, keep order and duplicates)
- get_tax_data filter, locator defaulting and form/field refinement
- get_top_by_value filter, ordering and pagination
- Argument validation before any network access
"""

import pytest

from odata_tax_mcp.helpers.dto.query_dto import TaxDataRequest, TopByValueRequest
from odata_tax_mcp.helpers.exceptions import InvalidArgumentError
from odata_tax_mcp.workflows.build_query_wf import (
    TAX_RETURN_DATA_PATH,
    build_tax_data_query,
    build_top_by_value_query,
    split_identifiers,
)


class TestSplitIdentifiers:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("A", ("A",)),
            ("A,B", ("A", "B")),
            ("  A ,\tB  ,C ", ("A", "B", "C")),
            ("A,,B,", ("A", "B")),
            (",  ,A", ("A",)),
            ("B,A,B", ("B", "A", "B")),
        ],
    )
    def test_trimmed_order_preserving_split(self, raw: str, expected: tuple[str, ...]) -> None:
        assert split_identifiers(raw) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["", "   ", ",", " , ,"])
    def test_empty_set_rejected(self, raw: str) -> None:
        with pytest.raises(InvalidArgumentError, match="No EORG identifiers"):
            split_identifiers(raw)


class TestBuildTaxDataQuery:
    @pytest.mark.unit
    def test_default_filter_and_params(self) -> None:
        spec = build_tax_data_query(TaxDataRequest(eorg="A, B", year=2024))

        assert spec.entity_path == TAX_RETURN_DATA_PATH
        assert spec.identifiers == ("A", "B")
        assert spec.filter_expression == (
            "taxType eq '1040' and locator eq '2517KC' "
            "and (eorgName eq 'A' or eorgName eq 'B')"
        )
        assert spec.to_params() == {
            "year": 2024,
            "$filter": spec.filter_expression,
            "$top": 50,
            "$skip": 0,
        }
        assert spec.orderby is None

    @pytest.mark.unit
    def test_explicit_locator_wins(self) -> None:
        spec = build_tax_data_query(TaxDataRequest(eorg="A", year=2024, locator="ZZ99"))
        assert "locator eq 'ZZ99'" in spec.filter_expression

    @pytest.mark.unit
    def test_tax_type_locator(self) -> None:
        spec = build_tax_data_query(TaxDataRequest(eorg="A", year=2019, tax_type="1065"))
        assert spec.filter_expression.startswith("taxType eq '1065' and locator eq '4117JG'")

    @pytest.mark.unit
    def test_form_and_field_appended_when_both_given(self) -> None:
        spec = build_tax_data_query(
            TaxDataRequest(eorg="A", year=2023, form_name="F1040", field_name="Line1")
        )
        assert spec.filter_expression == (
            "taxType eq '1040' and locator eq '9506JP' and (eorgName eq 'A') "
            "and formName eq 'F1040' and fieldName eq 'Line1'"
        )

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("form_name", "field_name"),
        [("F1040", None), (None, "Line1"), ("F1040", ""), ("", "Line1")],
    )
    def test_partial_form_field_same_as_neither(
        self, form_name: str | None, field_name: str | None
    ) -> None:
        neither = build_tax_data_query(TaxDataRequest(eorg="A", year=2024))
        partial = build_tax_data_query(
            TaxDataRequest(eorg="A", year=2024, form_name=form_name, field_name=field_name)
        )
        assert partial.filter_expression == neither.filter_expression

    @pytest.mark.unit
    def test_skip_is_passed_without_upper_bound(self) -> None:
        spec = build_tax_data_query(TaxDataRequest(eorg="A", year=2024, skip=1_000_000))
        assert spec.to_params()["$skip"] == 1_000_000
        assert spec.to_params()["$top"] == 50

    @pytest.mark.unit
    def test_negative_skip_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError, match="skip"):
            build_tax_data_query(TaxDataRequest(eorg="A", year=2024, skip=-1))

    @pytest.mark.unit
    def test_empty_identifiers_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            build_tax_data_query(TaxDataRequest(eorg=" , ", year=2024))

    @pytest.mark.unit
    def test_quote_passthrough_is_unescaped(self) -> None:
        spec = build_tax_data_query(TaxDataRequest(eorg="O'Brien", year=2024))
        assert "(eorgName eq 'O'Brien')" in spec.filter_expression

    @pytest.mark.unit
    def test_quote_escaped_on_request(self) -> None:
        spec = build_tax_data_query(
            TaxDataRequest(eorg="O'Brien", year=2024), literal_policy="escape"
        )
        assert "(eorgName eq 'O''Brien')" in spec.filter_expression

    @pytest.mark.unit
    def test_quote_rejected_on_request(self) -> None:
        with pytest.raises(InvalidArgumentError, match="single quote"):
            build_tax_data_query(TaxDataRequest(eorg="O'Brien", year=2024), literal_policy="reject")


class TestBuildTopByValueQuery:
    @pytest.mark.unit
    def test_default_filter_and_params(self) -> None:
        spec = build_top_by_value_query(TopByValueRequest(year=2024, eorgs="X"))

        assert spec.filter_expression == (
            "value ne 'NONE' and taxType eq '1040' and year eq 2024 and (eorgName eq 'X')"
        )
        assert spec.to_params() == {
            "$filter": spec.filter_expression,
            "$top": 10,
            "$skip": 0,
            "$orderby": "value desc",
        }

    @pytest.mark.unit
    def test_multiple_eorgs_or_group(self) -> None:
        spec = build_top_by_value_query(TopByValueRequest(year=2023, eorgs="X, Y"))
        assert spec.filter_expression.endswith("(eorgName eq 'X' or eorgName eq 'Y')")

    @pytest.mark.unit
    def test_top_skip_and_sort_order(self) -> None:
        spec = build_top_by_value_query(
            TopByValueRequest(year=2024, eorgs="X", top=5, skip=10, sort_order="asc")
        )
        params = spec.to_params()
        assert params["$top"] == 5
        assert params["$skip"] == 10
        assert params["$orderby"] == "value asc"

    @pytest.mark.unit
    def test_sort_order_passed_verbatim(self) -> None:
        spec = build_top_by_value_query(
            TopByValueRequest(year=2024, eorgs="X", sort_order="sideways")
        )
        assert spec.to_params()["$orderby"] == "value sideways"

    @pytest.mark.unit
    def test_no_year_query_param(self) -> None:
        spec = build_top_by_value_query(TopByValueRequest(year=2024, eorgs="X"))
        assert "year" not in spec.to_params()

    @pytest.mark.unit
    def test_empty_identifiers_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            build_top_by_value_query(TopByValueRequest(year=2024, eorgs=""))

    @pytest.mark.unit
    def test_negative_top_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError, match="top"):
            build_top_by_value_query(TopByValueRequest(year=2024, eorgs="X", top=-5))
