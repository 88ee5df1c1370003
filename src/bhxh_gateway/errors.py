from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when the caller of this API is not authenticated."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when the caller presents an API key that is not accepted."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class GatewayError(Exception):
    """Base class for failures while talking to the portal or its collaborators."""


class ConfigurationError(GatewayError):
    """Raised when required settings (credentials, keys) are missing."""


class UpstreamError(GatewayError):
    """Raised when the portal is unreachable or answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PortalUnauthorizedError(UpstreamError):
    """Raised when the portal rejects the bearer token (HTTP 401)."""

    def __init__(self, message: str = "Portal rejected the session token") -> None:
        super().__init__(message, status_code=401)


class DataShapeError(GatewayError):
    """Raised when a portal response does not have the expected structure."""


class CaptchaSolveError(GatewayError):
    """Raised when a single CAPTCHA solving attempt fails."""


class LoginUnavailableError(GatewayError):
    """Raised when the portal login cannot be completed after all CAPTCHA attempts."""
