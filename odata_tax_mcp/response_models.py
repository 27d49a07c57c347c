"""Response models for the tax data MCP tools.

Provides consistent result structure for:
- get_tax_data (TaxDataResult)
- get_top_by_value (TopByValueResult)

"No match" is not a failure: results carry an empty mapping/list plus a
non-null ``error`` string so callers can tell it apart from a failed request.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaxDataEntry(BaseModel):
    """Value found for one EORG."""

    raw_value: Any = Field(
        description="Value of the first matching row; falsy values (null, 0, false) become ''",
    )
    description: str = Field(description="Requested field name, or 'Tax data'")


class TaxDataResult(BaseModel):
    """Result of get_tax_data."""

    eorgs: list[str] = Field(description="Requested EORGs in caller order")
    year: int = Field(description="Requested tax year")
    data: dict[str, TaxDataEntry] | None = Field(
        description="EORG -> entry for EORGs with matching rows; null if the response was unusable",
    )
    error: str | None = Field(default=None, description="Set exactly when data is empty or null")

    def model_post_init(self, __context, /) -> None:
        """Validate response invariants."""
        if self.data and self.error is not None:
            msg = "error is set but data is not empty"
            raise ValueError(msg)
        if not self.data and self.error is None:
            msg = "data is empty but error is not set"
            raise ValueError(msg)


class QueryInfo(BaseModel):
    """Echo of the outbound query."""

    params: dict[str, Any] = Field(description="Query parameters exactly as sent")
    url: str = Field(description="Target URL without query string")


class TopRecord(BaseModel):
    """Simplified tax-return-data row.

    Field order is fixed; extra row fields are dropped, missing ones are null.
    """

    model_config = ConfigDict(populate_by_name=True)

    value: Any = None
    eorg_name: Any = Field(default=None, alias="eorgName")
    firm: Any = None
    account: Any = None
    form_name: Any = Field(default=None, alias="formName")
    field_name: Any = Field(default=None, alias="fieldName")
    locator: Any = None
    year: Any = None
    tax_type: Any = Field(default=None, alias="taxType")


class TopByValueResult(BaseModel):
    """Result of get_top_by_value."""

    year: int = Field(description="Requested tax year")
    query_info: QueryInfo
    top_records: list[TopRecord] = Field(default_factory=list)
    error: str | None = Field(default=None, description="Set exactly when top_records is empty")

    def model_post_init(self, __context, /) -> None:
        """Validate response invariants."""
        if self.top_records and self.error is not None:
            msg = "error is set but top_records is not empty"
            raise ValueError(msg)
        if not self.top_records and self.error is None:
            msg = "top_records is empty but error is not set"
            raise ValueError(msg)
