from enum import StrEnum
from typing import Any

from bhxh_gateway.core.core import Service
from bhxh_gateway.core.modules.portal.models import PortalCode
from bhxh_gateway.core.modules.session.models import PortalCredentials
from bhxh_gateway.errors import ValidationError


class Catalog(StrEnum):
    """Reference catalogs served straight from the portal, keyed by URL slug."""

    PAPER_TYPES = "paper-types"
    COUNTRIES = "countries"
    ETHNICITIES = "ethnicities"
    LABOR_PLAN_TYPES = "labor-plan-types"
    BENEFITS = "benefits"
    RELATIONSHIPS = "relationships"
    DOCUMENT_LIST = "document-list"


CATALOG_CODES: dict[Catalog, PortalCode] = {
    Catalog.PAPER_TYPES: PortalCode.PAPER_TYPES,
    Catalog.COUNTRIES: PortalCode.COUNTRIES,
    Catalog.ETHNICITIES: PortalCode.ETHNICITIES,
    Catalog.LABOR_PLAN_TYPES: PortalCode.LABOR_PLAN_TYPES,
    Catalog.BENEFITS: PortalCode.BENEFITS,
    Catalog.RELATIONSHIPS: PortalCode.RELATIONSHIPS,
    Catalog.DOCUMENT_LIST: PortalCode.DOCUMENT_LIST,
}


class MasterDataService(Service):
    """Lookup tables and geographic reference data."""

    async def get_catalog(self, credentials: PortalCredentials | None, catalog: Catalog) -> Any:
        response = await self.core.services.portal.call(CATALOG_CODES[catalog], credentials)
        return response.data

    async def get_districts(self, credentials: PortalCredentials | None, province_code: str) -> Any:
        """Districts of a province; also used for the medical facility lookup."""
        if not province_code:
            raise ValidationError("maTinh is required")
        response = await self.core.services.portal.call(
            PortalCode.DISTRICTS, credentials, lambda _: {"maTinh": province_code}, user_context=False
        )
        return response.data or []
