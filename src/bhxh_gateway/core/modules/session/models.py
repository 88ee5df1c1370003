"""Session management models."""

import hashlib
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from bhxh_gateway.utils import now

DEFAULT_CACHE_KEY = "default"


class Unit(BaseModel):
    """Organizational unit (DonVi) the portal account may act for.

    Field aliases are the portal's own keys; unknown keys are kept as-is so
    the full record can be handed back to API callers.
    """

    code: str | None = Field(None, alias="Ma")
    name: str | None = Field(None, alias="Ten")
    alt_name: str | None = Field(None, alias="TenDonVi")
    agency_code: str | None = Field(None, alias="MaCoquan")
    category: str | int | None = Field(None, alias="LoaiDoiTuong")
    insurance_code: str | None = Field(None, alias="MaSoBHXH")
    unit_code: str | None = Field(None, alias="MaDonVi")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def display_name(self) -> str:
        return self.name or self.alt_name or "Unknown"

    def matches(self, code: str) -> bool:
        """Check whether any of the unit's identifying codes equals ``code``."""
        return code in (self.code, self.insurance_code, self.unit_code)

    def user_context(self) -> dict[str, str]:
        """Caller identity fields the portal expects in every RPC payload."""
        return {
            "masobhxhuser": self.code or "",
            "macoquanuser": self.agency_code or "",
            "loaidoituonguser": str(self.category or "1"),
        }

    def to_portal(self) -> dict[str, Any]:
        """Serialize back to the portal's key names, keeping extra fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Session(BaseModel):
    """Authenticated portal session.

    ``x_client`` is derived once per login and sent with every request made
    under this session.
    """

    token: str
    x_client: str
    unit: Unit
    expires_at: datetime

    def is_valid(self, at: datetime | None = None) -> bool:
        return self.expires_at > (at or now())

    def expires_in(self, at: datetime | None = None) -> int:
        """Whole seconds until expiry, never negative."""
        remaining = (self.expires_at - (at or now())).total_seconds()
        return max(0, int(remaining))


class PortalCredentials(BaseModel):
    """Portal account supplied per request instead of the configured one."""

    username: str
    password: str

    def cache_key(self) -> str:
        digest = hashlib.sha256(f"{self.username}:{self.password}".encode()).hexdigest()
        return f"user:{digest}"


def cache_key_for(credentials: PortalCredentials | None) -> str:
    return credentials.cache_key() if credentials else DEFAULT_CACHE_KEY


class SessionStatus(BaseModel):
    """Cached session state (API representation)."""

    status: Literal["active", "expired"] = Field(..., description="Whether a valid session is cached")
    expires_in: int = Field(..., alias="expiresIn", description="Seconds until the cached session expires")
    unit: str | None = Field(None, description="Display name of the selected unit")

    model_config = ConfigDict(populate_by_name=True)
