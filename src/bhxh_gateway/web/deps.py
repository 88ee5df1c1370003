from typing import Annotated, cast

from fastapi import Depends, Header, Request
from fastapi.security import APIKeyHeader

from bhxh_gateway.app import App
from bhxh_gateway.core.modules.session.models import PortalCredentials
from bhxh_gateway.errors import ValidationError

# Security schemes
api_key_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def require_api_key(
    app: Annotated[App, Depends(get_app)],
    api_key: Annotated[str | None, Depends(api_key_scheme)] = None,
) -> None:
    """Reject callers without an accepted X-API-Key header."""
    app.check_api_key(api_key)


async def get_credentials(
    username: Annotated[str | None, Header(alias="X-Username", description="Portal username for this request")] = None,
    password: Annotated[str | None, Header(alias="X-Password", description="Portal password for this request")] = None,
) -> PortalCredentials | None:
    """Per-request portal account; without headers the configured account is used."""
    if not username and not password:
        return None
    if not username or not password:
        raise ValidationError("X-Username and X-Password must be provided together")
    return PortalCredentials(username=username, password=password)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
CredentialsDep = Annotated[PortalCredentials | None, Depends(get_credentials)]
