from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from bhxh_gateway.core.pagination import PortalPage


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="BHXH Gateway API",
            version="0.1.0",
            summary="REST gateway to the Vietnam Social Insurance (BHXH) portal",
            routes=app.routes,
        )

        # Add security schemes
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "ApiKeyAuth": {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Static API key issued to gateway clients",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [{"ApiKeyAuth": []}]

        # Remove security from public endpoints
        public_endpoints = {
            ("GET", "/health"),
            ("GET", "/api/v1/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    # Mark as public endpoint (no security required)
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ApiResponse[T](BaseModel):
    """Standard success envelope."""

    success: bool = Field(True, description="Always true for successful responses")
    data: T = Field(..., description="Operation result")
    meta: dict[str, Any] | None = Field(None, description="Paging or session details, when relevant")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "API key required. Provide X-API-Key header.", "type": "authentication_error"},
                {"message": "Failed to solve captcha after 3 attempts", "type": "login_unavailable"},
                {"message": "No department found with ID 7", "type": "not_found"},
            ]
        }
    }


def page_response(page: PortalPage[dict[str, Any]]) -> ApiResponse[list[dict[str, Any]]]:
    """Wrap a portal page, moving the paging figures into ``meta``."""
    return ApiResponse[list[dict[str, Any]]](
        data=page.items,
        meta={
            "total": page.total,
            "count": len(page.items),
            "pageIndex": page.page_index,
            "pageSize": page.page_size,
            "hasMore": page.has_more,
            "unit": page.unit,
        },
    )
