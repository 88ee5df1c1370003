from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import cast

import httpx

from bhxh_gateway.config import Config
from bhxh_gateway.core.modules.portal.client import PortalClient, build_portal_http_client
from bhxh_gateway.core.modules.session.cache import SessionCache, create_session_cache


class Service:
    """Base class for services wired into the core container."""

    def __init__(self) -> None:
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from bhxh_gateway.core.modules.captcha.service import CaptchaService  # noqa: PLC0415
    from bhxh_gateway.core.modules.declaration.service import DeclarationService  # noqa: PLC0415
    from bhxh_gateway.core.modules.department.service import DepartmentService  # noqa: PLC0415
    from bhxh_gateway.core.modules.employee.service import EmployeeService  # noqa: PLC0415
    from bhxh_gateway.core.modules.master_data.service import MasterDataService  # noqa: PLC0415
    from bhxh_gateway.core.modules.payment.service import PaymentService  # noqa: PLC0415
    from bhxh_gateway.core.modules.portal.service import PortalService  # noqa: PLC0415
    from bhxh_gateway.core.modules.session.service import SessionService  # noqa: PLC0415

    captcha: CaptchaService
    session: SessionService
    portal: PortalService
    employee: EmployeeService
    department: DepartmentService
    master_data: MasterDataService
    payment: PaymentService
    declaration: DeclarationService

    def __init__(self) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - session depends on captcha, everything else on portal
        service_configs = [
            ("captcha", "bhxh_gateway.core.modules.captcha.service", "CaptchaService"),
            ("session", "bhxh_gateway.core.modules.session.service", "SessionService"),
            ("portal", "bhxh_gateway.core.modules.portal.service", "PortalService"),
            ("employee", "bhxh_gateway.core.modules.employee.service", "EmployeeService"),
            ("department", "bhxh_gateway.core.modules.department.service", "DepartmentService"),
            ("master_data", "bhxh_gateway.core.modules.master_data.service", "MasterDataService"),
            ("payment", "bhxh_gateway.core.modules.payment.service", "PaymentService"),
            ("declaration", "bhxh_gateway.core.modules.declaration.service", "DeclarationService"),
        ]

        # Dynamically import and instantiate services
        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class()
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, HTTP clients, the session cache, and all service instances."""

    config: Config
    portal_http: httpx.AsyncClient
    solver_http: httpx.AsyncClient
    portal: PortalClient
    session_cache: SessionCache
    services: Services

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize core with config, HTTP clients, cache backend, and auto-register services.

        ``transport`` replaces the network layer of both HTTP clients (used with httpx.MockTransport).
        """
        self.config = config
        self.portal_http = build_portal_http_client(config, transport)
        # The solver may legitimately take captcha_timeout seconds, so allow the HTTP round-trip on top
        self.solver_http = httpx.AsyncClient(
            timeout=httpx.Timeout(config.captcha_timeout + config.request_timeout),
            transport=transport,
        )
        self.portal = PortalClient(self.portal_http)
        self.session_cache = create_session_cache(config)
        self.services = Services()
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services, then release HTTP connections and the cache backend."""
        await self.services.stop_all()
        await self.portal_http.aclose()
        await self.solver_http.aclose()
        await self.session_cache.close()
