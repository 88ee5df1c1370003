from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MAX_PAGE_SIZE = 500


class EmployeeQuery(BaseModel):
    """Filters and paging for the employee list (portal code 067)."""

    employee_code: str = Field("", alias="maNguoiLaoDong")
    name: str = Field("", alias="ten")
    department_code: str = Field("", alias="maPhongBan")
    status_code: str = Field("", alias="maTinhTrang")
    insurance_number: str = Field("", alias="MaSoBhxh")
    page_index: int = Field(1, alias="PageIndex", ge=1)
    page_size: int = Field(100, alias="PageSize", ge=1, le=MAX_PAGE_SIZE)

    model_config = ConfigDict(populate_by_name=True)

    def to_portal(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class EmployeeSyncRequest(BaseModel):
    """Lookup of an employee in the central registry (portal code 156)."""

    insurance_number: str = Field(..., alias="masoBhxh", min_length=1)
    agency_code: str = Field(..., alias="maCqbh", min_length=1)

    model_config = ConfigDict(populate_by_name=True)
