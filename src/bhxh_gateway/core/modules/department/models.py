from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DepartmentQuery(BaseModel):
    """Filters and paging for the department list (portal code 079)."""

    code: str = Field("", alias="ma")
    name: str = Field("", alias="ten")
    page_index: int = Field(1, alias="PageIndex", ge=1)
    page_size: int = Field(50, alias="PageSize", ge=1)

    model_config = ConfigDict(populate_by_name=True)

    def to_portal(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class DepartmentInput(BaseModel):
    """Department fields accepted on create and update."""

    code: str = Field(..., alias="ma", min_length=1)
    name: str = Field(..., alias="ten", min_length=1)
    note: str | None = Field(None, alias="ghiChu")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_portal(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
