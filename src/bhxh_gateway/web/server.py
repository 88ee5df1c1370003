from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bhxh_gateway.app import App
from bhxh_gateway.config import Config
from bhxh_gateway.errors import GatewayError, UserError
from bhxh_gateway.web.error_handlers import gateway_error_handler, general_exception_handler, user_error_handler
from bhxh_gateway.web.openapi import set_custom_openapi
from bhxh_gateway.web.routers import (
    declarations_router,
    departments_router,
    employees_router,
    geographic_router,
    master_data_router,
    payments_router,
    session_router,
)

logger = structlog.get_logger(__name__)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        # Store app instance and config in app state
        app.state.app = app_instance
        app.state.config = config
        if not app_instance.api_key_required:
            logger.warning("api_key_check_disabled", reason="no BHXH_API_KEYS configured")
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="BHXH Gateway API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoints, public
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/api/v1/health")
    async def api_health_check() -> dict[str, str]:
        return {"status": "healthy"}

    # API v1 routes
    app.include_router(session_router, prefix="/api/v1")
    app.include_router(employees_router, prefix="/api/v1")
    app.include_router(departments_router, prefix="/api/v1")
    app.include_router(master_data_router, prefix="/api/v1")
    app.include_router(geographic_router, prefix="/api/v1")
    app.include_router(payments_router, prefix="/api/v1")
    app.include_router(declarations_router, prefix="/api/v1")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
