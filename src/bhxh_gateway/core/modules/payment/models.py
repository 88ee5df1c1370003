from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class C12Query(BaseModel):
    """Month of the C12 contribution statement; the year defaults to the current one."""

    month: int = Field(..., alias="thang", ge=1, le=12)
    year: int | None = Field(None, alias="nam", ge=2000, le=2100)

    model_config = ConfigDict(populate_by_name=True)


class C12Section(BaseModel):
    """Heading line of a C12 section."""

    stt: str = ""
    content: str = ""


class C12CarriedOver(C12Section):
    """Section A (carried over from the previous period) and section Đ (carried forward)."""

    total: float = 0
    employee_count: float = 0
    amount_due: float = 0
    overpayment: float = 0
    underpayment: float = 0
    interest: float = 0


class C12CurrentPeriod(C12Section):
    """Section B: obligations arising in the month."""

    total: float = 0
    employees_added: float = 0
    employees_removed: float = 0
    salary_fund_total: float = 0
    salary_fund_increase: float = 0
    salary_fund_decrease: float = 0
    amount_due: float = 0
    amount_due_increase: float = 0
    amount_due_decrease: float = 0
    adjustment: float = 0
    prior_year_adjustment: float = 0
    interest_principal: float = 0
    interest_rate: float = 0
    interest_total: float = 0
    mandatory_reserve: float = 0


class C12Payment(BaseModel):
    """Payment order (UNC) received during the month."""

    reference: str
    date: str  # DD/MM/YYYY as printed by the portal
    amount: float


class C12Payments(C12Section):
    """Section C: payments received."""

    total: float = 0
    payments: list[C12Payment] = Field(default_factory=list)


class C12Allocation(C12Section):
    """Section D: how received payments were allocated."""

    allocated_to_obligations: float = 0
    allocated_to_interest: float = 0


class C12Report(BaseModel):
    """Structured view of the C12 statement line items."""

    agency_code: str | None = None
    agency_name: str | None = None
    section_a: C12CarriedOver
    section_b: C12CurrentPeriod
    section_c: C12Payments
    section_d: C12Allocation
    section_dd: C12CarriedOver


class C12ReportResult(BaseModel):
    raw: Any
    parsed: C12Report


class PaymentHistoryQuery(BaseModel):
    page_index: int = Field(1, alias="PageIndex", ge=1)
    page_size: int = Field(10, alias="PageSize", ge=1)
    filter_text: str = Field("", alias="Filter")

    model_config = ConfigDict(populate_by_name=True)

    def to_portal(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class PaymentReferenceRequest(BaseModel):
    """Inputs of the bank transfer memo; unit and agency default to the session's unit."""

    unit_code: str | None = Field(None, alias="unitCode")
    agency_code: str | None = Field(None, alias="agencyCode")
    transaction_type: str = Field("103", alias="type")
    description: str = "dong BHXH"

    model_config = ConfigDict(populate_by_name=True)


class PaymentReference(BaseModel):
    reference: str
    components: dict[str, str]
