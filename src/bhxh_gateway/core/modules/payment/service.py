from typing import Any

import structlog

from bhxh_gateway.core.core import Service
from bhxh_gateway.core.modules.payment.c12 import parse_c12_report
from bhxh_gateway.core.modules.payment.models import (
    C12Query,
    C12ReportResult,
    PaymentHistoryQuery,
    PaymentReference,
    PaymentReferenceRequest,
)
from bhxh_gateway.core.modules.portal.models import PortalCode
from bhxh_gateway.core.modules.session.models import PortalCredentials, Session
from bhxh_gateway.core.pagination import PortalPage, portal_list, portal_total
from bhxh_gateway.errors import ValidationError
from bhxh_gateway.utils import now

logger = structlog.get_logger(__name__)

REFERENCE_PREFIX = "BHXH"
REFERENCE_RESERVED = "00"


def build_payment_reference(
    unit_code: str, agency_code: str, transaction_type: str = "103", description: str = "dong BHXH"
) -> PaymentReference:
    """Compose the bank transfer memo the portal uses to match a payment to a unit."""
    components = {
        "prefix": REFERENCE_PREFIX,
        "transactionType": transaction_type,
        "reserved": REFERENCE_RESERVED,
        "unitCode": unit_code,
        "agencyCode": agency_code,
        "description": description,
    }
    reference = "+" + "+".join(components.values()) + "+"
    return PaymentReference(reference=reference, components=components)


class PaymentService(Service):
    """Contribution statements, e-payment history and transfer details."""

    async def get_c12_report(self, credentials: PortalCredentials | None, query: C12Query) -> C12ReportResult:
        year = query.year or now().year

        def payload(session: Session) -> dict[str, Any]:
            return {
                "thang": str(query.month),
                "nam": str(year),
                "maDmBhxh": session.unit.agency_code or "",
                "maDonVi": session.unit.code or "",
            }

        response = await self.core.services.portal.call(PortalCode.C12_REPORT, credentials, payload)
        logger.debug("c12_report_fetched", month=query.month, year=year)
        return C12ReportResult(raw=response.data, parsed=parse_c12_report(response.data))

    async def get_payment_history(
        self, credentials: PortalCredentials | None, query: PaymentHistoryQuery
    ) -> PortalPage[dict[str, Any]]:
        """E-payment transactions; units not registered for e-payment get an empty page."""
        response = await self.core.services.portal.call(
            PortalCode.PAYMENT_HISTORY, credentials, lambda _: query.to_portal()
        )
        return PortalPage(
            items=portal_list(response.data, "DSNopBhxhBB"),
            total=portal_total(response.data),
            page_index=query.page_index,
            page_size=query.page_size,
            unit=response.session.unit.display_name,
        )

    async def get_bank_accounts(self, credentials: PortalCredentials | None) -> Any:
        response = await self.core.services.portal.call(
            PortalCode.BANK_ACCOUNTS, credentials, lambda session: {"maCoquan": session.unit.agency_code or ""}
        )
        return response.data or []

    async def get_unit_info(self, credentials: PortalCredentials | None) -> Any:
        response = await self.core.services.portal.call(
            PortalCode.UNIT_INFO,
            credentials,
            lambda session: {
                "Masobhxh": session.unit.code or "",
                "Macoquan": session.unit.agency_code or "",
                "Loaidoituong": str(session.unit.category or "1"),
            },
        )
        return response.data

    async def get_payment_reference(
        self, credentials: PortalCredentials | None, request: PaymentReferenceRequest
    ) -> PaymentReference:
        """Build the transfer memo, filling unit and agency from the session when not given."""
        unit_code, agency_code = request.unit_code, request.agency_code
        if not unit_code or not agency_code:
            session = await self.core.services.session.get_valid_session(credentials)
            unit_code = unit_code or session.unit.code
            agency_code = agency_code or session.unit.agency_code
        if not unit_code or not agency_code:
            raise ValidationError("unitCode and agencyCode are required")
        return build_payment_reference(unit_code, agency_code, request.transaction_type, request.description)
