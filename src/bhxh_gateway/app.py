import secrets
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from bhxh_gateway.config import Config
from bhxh_gateway.core.core import Core
from bhxh_gateway.core.modules.department.models import DepartmentInput, DepartmentQuery
from bhxh_gateway.core.modules.declaration.service import DeclarationResult
from bhxh_gateway.core.modules.employee.models import EmployeeQuery, EmployeeSyncRequest
from bhxh_gateway.core.modules.master_data.service import Catalog
from bhxh_gateway.core.modules.payment.models import (
    C12Query,
    C12ReportResult,
    PaymentHistoryQuery,
    PaymentReference,
    PaymentReferenceRequest,
)
from bhxh_gateway.core.modules.session.models import PortalCredentials, Session, SessionStatus
from bhxh_gateway.core.pagination import PortalPage
from bhxh_gateway.errors import AccessDeniedError, AuthenticationError


class App:
    """Facade for all gateway operations, delegating to Core services."""

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._core = Core(config, transport)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def api_key_required(self) -> bool:
        return bool(self._core.config.api_keys)

    def check_api_key(self, api_key: str | None) -> None:
        """Accept the caller's API key or raise; a gateway without configured keys accepts everyone."""
        if not self.api_key_required:
            return
        if not api_key:
            raise AuthenticationError("API key required. Provide X-API-Key header.")
        if not any(secrets.compare_digest(api_key, key) for key in self._core.config.api_keys):
            raise AccessDeniedError("Invalid API key")

    # Session

    async def get_session_status(self, credentials: PortalCredentials | None) -> SessionStatus:
        return await self._core.services.session.get_status(credentials)

    async def refresh_session(self, credentials: PortalCredentials | None) -> Session:
        """Drop the cached session and log in again."""
        return await self._core.services.session.refresh_session(credentials)

    async def get_company(self, credentials: PortalCredentials | None) -> Session:
        """Get the session whose unit the gateway acts for, logging in if needed."""
        return await self._core.services.session.get_valid_session(credentials)

    # Employees

    async def list_employees(self, credentials: PortalCredentials | None, query: EmployeeQuery) -> PortalPage[dict[str, Any]]:
        return await self._core.services.employee.list_employees(credentials, query)

    async def get_employee(self, credentials: PortalCredentials | None, employee_id: int) -> Any:
        return await self._core.services.employee.get_employee(credentials, employee_id)

    async def update_employee(self, credentials: PortalCredentials | None, employee_id: int, fields: dict[str, Any]) -> Any:
        return await self._core.services.employee.update_employee(credentials, employee_id, fields)

    async def sync_employee(self, credentials: PortalCredentials | None, request: EmployeeSyncRequest) -> Any:
        return await self._core.services.employee.sync_employee(credentials, request)

    async def get_employee_details(self, credentials: PortalCredentials | None, employee_ids: list[int]) -> Any:
        return await self._core.services.employee.get_full_details(credentials, employee_ids)

    # Departments

    async def list_departments(
        self, credentials: PortalCredentials | None, query: DepartmentQuery
    ) -> PortalPage[dict[str, Any]]:
        return await self._core.services.department.list_departments(credentials, query)

    async def get_department(self, credentials: PortalCredentials | None, department_id: int) -> dict[str, Any]:
        return await self._core.services.department.get_department(credentials, department_id)

    async def create_department(self, credentials: PortalCredentials | None, department: DepartmentInput) -> Any:
        return await self._core.services.department.create_department(credentials, department)

    async def update_department(
        self, credentials: PortalCredentials | None, department_id: int, department: DepartmentInput
    ) -> Any:
        return await self._core.services.department.update_department(credentials, department_id, department)

    async def delete_department(self, credentials: PortalCredentials | None, department_id: int) -> None:
        await self._core.services.department.delete_department(credentials, department_id)

    # Master data

    async def get_catalog(self, credentials: PortalCredentials | None, catalog: Catalog) -> Any:
        return await self._core.services.master_data.get_catalog(credentials, catalog)

    async def get_districts(self, credentials: PortalCredentials | None, province_code: str) -> Any:
        return await self._core.services.master_data.get_districts(credentials, province_code)

    # Payments

    async def get_c12_report(self, credentials: PortalCredentials | None, query: C12Query) -> C12ReportResult:
        return await self._core.services.payment.get_c12_report(credentials, query)

    async def get_payment_history(
        self, credentials: PortalCredentials | None, query: PaymentHistoryQuery
    ) -> PortalPage[dict[str, Any]]:
        return await self._core.services.payment.get_payment_history(credentials, query)

    async def get_bank_accounts(self, credentials: PortalCredentials | None) -> Any:
        return await self._core.services.payment.get_bank_accounts(credentials)

    async def get_payment_unit_info(self, credentials: PortalCredentials | None) -> Any:
        return await self._core.services.payment.get_unit_info(credentials)

    async def get_payment_reference(
        self, credentials: PortalCredentials | None, request: PaymentReferenceRequest
    ) -> PaymentReference:
        return await self._core.services.payment.get_payment_reference(credentials, request)

    # Declarations

    async def submit_declaration(self, credentials: PortalCredentials | None, form: dict[str, Any]) -> DeclarationResult:
        return await self._core.services.declaration.submit(credentials, form)
