from typing import Any

import structlog

from bhxh_gateway.core.core import Service
from bhxh_gateway.core.modules.employee.models import EmployeeQuery, EmployeeSyncRequest
from bhxh_gateway.core.modules.portal.models import PortalCode
from bhxh_gateway.core.modules.session.models import PortalCredentials, Session
from bhxh_gateway.core.pagination import PortalPage, portal_list, portal_total
from bhxh_gateway.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class EmployeeService(Service):
    """Employee records of the selected unit."""

    async def list_employees(
        self, credentials: PortalCredentials | None, query: EmployeeQuery
    ) -> PortalPage[dict[str, Any]]:
        def payload(session: Session) -> dict[str, Any]:
            return {
                **query.to_portal(),
                "maDonVi": session.unit.code or "",
                "maCoquan": session.unit.agency_code or "",
            }

        response = await self.core.services.portal.call(PortalCode.LIST_EMPLOYEES, credentials, payload)
        items = portal_list(response.data, "dsLaoDong")
        logger.debug("employees_listed", count=len(items), unit_code=response.session.unit.code)
        return PortalPage(
            items=items,
            total=portal_total(response.data),
            page_index=query.page_index,
            page_size=query.page_size,
            unit=response.session.unit.display_name,
        )

    async def get_employee(self, credentials: PortalCredentials | None, employee_id: int) -> Any:
        """Get a single employee record by its internal id."""
        response = await self.core.services.portal.call(
            PortalCode.EMPLOYEE_DETAIL, credentials, lambda _: {"id": employee_id}
        )
        if not response.data:
            raise NotFoundError(f"Employee not found with ID: {employee_id}")
        return response.data

    async def update_employee(self, credentials: PortalCredentials | None, employee_id: int, fields: dict[str, Any]) -> Any:
        """Save an employee record; the id always comes from the caller's path, not the body."""
        response = await self.core.services.portal.call(
            PortalCode.UPDATE_EMPLOYEE, credentials, lambda _: {**fields, "id": employee_id}
        )
        logger.info("employee_updated", employee_id=employee_id)
        return response.data

    async def sync_employee(self, credentials: PortalCredentials | None, request: EmployeeSyncRequest) -> Any:
        """Fetch the official record of an employee from the central registry."""
        response = await self.core.services.portal.call(
            PortalCode.SYNC_EMPLOYEE,
            credentials,
            lambda session: {
                "masoBhxh": request.insurance_number,
                "maCqbh": request.agency_code,
                "maDonVi": session.unit.code or "",
                "isGetAll": False,
            },
        )
        return response.data

    async def get_full_details(self, credentials: PortalCredentials | None, employee_ids: list[int]) -> Any:
        """Contracts, salary, family and history for several employees at once."""
        if not employee_ids:
            raise ValidationError("listNldid is required and must not be empty")
        response = await self.core.services.portal.call(
            PortalCode.EMPLOYEE_FULL_DETAILS, credentials, lambda _: {"listNldid": employee_ids}
        )
        logger.debug("employee_details_fetched", requested=len(employee_ids))
        return response.data
