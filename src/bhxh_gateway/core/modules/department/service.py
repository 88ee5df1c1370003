from typing import Any

import structlog

from bhxh_gateway.core.core import Service
from bhxh_gateway.core.modules.department.models import DepartmentInput, DepartmentQuery
from bhxh_gateway.core.modules.portal.models import PortalCode
from bhxh_gateway.core.modules.session.models import PortalCredentials, Session
from bhxh_gateway.core.pagination import PortalPage, portal_list, portal_total
from bhxh_gateway.errors import NotFoundError

logger = structlog.get_logger(__name__)


def unit_scope(session: Session) -> dict[str, str]:
    """Owning unit fields every department payload carries."""
    return {"madonvi": session.unit.code or "", "macoquan": session.unit.agency_code or ""}


class DepartmentService(Service):
    """Departments (PhongBan) of the selected unit."""

    async def list_departments(
        self, credentials: PortalCredentials | None, query: DepartmentQuery
    ) -> PortalPage[dict[str, Any]]:
        response = await self.core.services.portal.call(
            PortalCode.LIST_DEPARTMENTS, credentials, lambda session: {**query.to_portal(), **unit_scope(session)}
        )
        return PortalPage(
            items=portal_list(response.data, "dsPhongBan"),
            total=portal_total(response.data),
            page_index=query.page_index,
            page_size=query.page_size,
            unit=response.session.unit.display_name,
        )

    async def get_department(self, credentials: PortalCredentials | None, department_id: int) -> dict[str, Any]:
        """Find a department by id; the portal has no single-record lookup, so the default page is searched."""
        page = await self.list_departments(credentials, DepartmentQuery())
        for department in page.items:
            if str(department.get("id")) == str(department_id):
                return department
        raise NotFoundError(f"No department found with ID {department_id}")

    async def create_department(self, credentials: PortalCredentials | None, department: DepartmentInput) -> Any:
        response = await self.core.services.portal.call(
            PortalCode.SAVE_DEPARTMENT,
            credentials,
            lambda session: {**department.to_portal(), "id": None, **unit_scope(session)},
        )
        logger.info("department_created", code=department.code)
        return response.data

    async def update_department(
        self, credentials: PortalCredentials | None, department_id: int, department: DepartmentInput
    ) -> Any:
        response = await self.core.services.portal.call(
            PortalCode.SAVE_DEPARTMENT,
            credentials,
            lambda session: {**department.to_portal(), "id": department_id, **unit_scope(session)},
        )
        logger.info("department_updated", department_id=department_id)
        return response.data

    async def delete_department(self, credentials: PortalCredentials | None, department_id: int) -> None:
        await self.core.services.portal.call(
            PortalCode.DELETE_DEPARTMENT, credentials, lambda session: {"id": department_id, **unit_scope(session)}
        )
        logger.info("department_deleted", department_id=department_id)
