from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PortalCode(StrEnum):
    """Operation codes accepted by the portal's CallApiWithCurrentUser endpoint."""

    LIST_EMPLOYEES = "067"
    UPDATE_EMPLOYEE = "068"
    EMPLOYEE_FULL_DETAILS = "117"
    SYNC_EMPLOYEE = "156"
    EMPLOYEE_DETAIL = "172"
    SAVE_DEPARTMENT = "077"
    LIST_DEPARTMENTS = "079"
    DELETE_DEPARTMENT = "080"
    DOCUMENT_LIST = "028"
    DISTRICTS = "063"
    PAPER_TYPES = "071"
    COUNTRIES = "072"
    ETHNICITIES = "073"
    LABOR_PLAN_TYPES = "086"
    BENEFITS = "098"
    RELATIONSHIPS = "099"
    SUBMIT_DECLARATION = "084"
    C12_REPORT = "137"
    UNIT_INFO = "503"
    BANK_ACCOUNTS = "504"
    PAYMENT_HISTORY = "514"


class CaptchaChallenge(BaseModel):
    """CAPTCHA issued by the portal: an opaque token plus a base64 image."""

    code: str
    image: str


class TokenResponse(BaseModel):
    """Successful answer of the portal's token endpoint."""

    access_token: str
    expires_in: int | None = None
    units_raw: Any = Field(None, alias="dsDonVi")  # JSON string or list, see session.units.parse_units

    model_config = ConfigDict(populate_by_name=True, extra="allow")
