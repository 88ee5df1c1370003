from typing import Any, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PortalPage[T](BaseModel):
    """One page of records returned by a portal list operation."""

    items: list[T] = Field(..., description="Records in the current page")
    total: int = Field(..., description="Total number of records reported by the portal", ge=0)
    page_index: int = Field(..., description="1-based page number", ge=1)
    page_size: int = Field(..., description="Maximum records per page", ge=1)
    unit: str = Field(..., description="Display name of the unit the page was fetched for")

    @property
    def has_more(self) -> bool:
        """Whether the portal holds records beyond the current page."""
        return (self.page_index - 1) * self.page_size + len(self.items) < self.total


def portal_list(data: Any, key: str) -> list[dict[str, Any]]:
    """Extract a record list from a portal response; a null or missing list reads as empty."""
    if not isinstance(data, dict):
        return []
    records = data.get(key)
    return records if isinstance(records, list) else []


def portal_total(data: Any) -> int:
    if not isinstance(data, dict):
        return 0
    try:
        return int(data.get("TotalRecords") or 0)
    except (TypeError, ValueError):
        return 0
