import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from bhxh_gateway.errors import (
    AccessDeniedError,
    AuthenticationError,
    ConfigurationError,
    DataShapeError,
    LoginUnavailableError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def gateway_error_handler(_: Request, exc: Exception) -> Response:
    """Handle failures of the portal, the captcha solver, or missing settings."""
    if isinstance(exc, LoginUnavailableError):
        status_code = 503
        error_type = "login_unavailable"
    elif isinstance(exc, ConfigurationError):
        status_code = 500
        error_type = "configuration_error"
    elif isinstance(exc, DataShapeError):
        status_code = 502
        error_type = "unexpected_upstream_response"
    elif isinstance(exc, UpstreamError):
        status_code = 502
        error_type = "upstream_error"
    else:
        status_code = 502
        error_type = "gateway_error"

    logger.warning("Gateway error (%s): %s", error_type, exc)
    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
