"""HTTP client for the BHXH portal endpoints."""

import json
from typing import Any
from urllib.parse import quote, urlsplit

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from bhxh_gateway.config import Config
from bhxh_gateway.core.modules.portal.models import CaptchaChallenge, TokenResponse
from bhxh_gateway.core.modules.session.models import Session
from bhxh_gateway.errors import DataShapeError, PortalUnauthorizedError, UpstreamError

logger = structlog.get_logger(__name__)

STANDARD_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "vi-VN,vi;q=0.9,en-US;q=0.8,en;q=0.7",
}

CAPTCHA_SIZE = {"height": 60, "width": 300}
MAX_ERROR_BODY = 500


def build_proxy_url(config: Config) -> str | None:
    """Compose the forward proxy URL, embedding Basic-auth credentials when configured."""
    if not config.proxy_url:
        return None
    url = config.proxy_url if "://" in config.proxy_url else f"http://{config.proxy_url}"
    parts = urlsplit(url)
    scheme = parts.scheme
    host = parts.netloc
    if config.proxy_username and config.proxy_password:
        userinfo = f"{quote(config.proxy_username, safe='')}:{quote(config.proxy_password, safe='')}@"
        return f"{scheme}://{userinfo}{host}"
    return f"{scheme}://{host}"


def build_portal_http_client(config: Config, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the shared HTTP client for portal traffic."""
    proxy = build_proxy_url(config)
    if proxy:
        logger.info("portal_proxy_enabled", proxy_host=urlsplit(proxy).hostname)
    # A proxy is configured on the transport itself, so an injected transport replaces it
    return httpx.AsyncClient(
        base_url=config.base_url,
        headers=STANDARD_HEADERS,
        timeout=httpx.Timeout(config.request_timeout),
        verify=config.verify_tls,
        proxy=proxy if transport is None else None,
        transport=transport,
    )


class PortalClient:
    """Thin wrapper over the portal's login and RPC endpoints.

    Every non-2xx answer and every transport failure surfaces as UpstreamError.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def _send(self, step: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("portal_request_failed", step=step, error=str(e))
            raise UpstreamError(f"{step} failed: {e}") from e

        if response.is_error:
            logger.warning("portal_request_rejected", step=step, status_code=response.status_code)
            raise UpstreamError(
                f"{step} failed: {response.status_code} - {response.text[:MAX_ERROR_BODY]}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(step: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DataShapeError(f"{step} returned a non-JSON body") from e

    async def get_client_id(self) -> str:
        """Fetch the transient client identifier that seeds the X-CLIENT header."""
        response = await self._send("get client id", "GET", "/oauth2/GetClientId", headers={"Accept": "application/json"})
        body = response.text.strip()
        # Served either as a JSON string literal or as bare text
        if body.startswith('"'):
            try:
                body = json.loads(body)
            except json.JSONDecodeError as e:
                raise DataShapeError("Client id is not a valid JSON string") from e
        if not isinstance(body, str) or not body:
            raise DataShapeError("Portal returned an empty client id")
        return body

    async def get_captcha(self, x_client: str) -> CaptchaChallenge:
        """Request a fresh CAPTCHA challenge bound to the X-CLIENT value."""
        response = await self._send(
            "get captcha",
            "POST",
            "/api/getCaptchaImage",
            json=CAPTCHA_SIZE,
            headers={"X-CLIENT": x_client, "is_public": "true"},
        )
        try:
            return CaptchaChallenge.model_validate(self._json("get captcha", response))
        except PydanticValidationError as e:
            raise DataShapeError(f"Unexpected captcha response: {e}") from e

    async def exchange_token(
        self, username: str, password: str, captcha_text: str, captcha_token: str, client_id: str
    ) -> TokenResponse:
        """Trade credentials plus the solved CAPTCHA for an access token."""
        form = {
            "grant_type": "password",
            "username": username,
            "password": password,
            "loaidoituong": "1",  # Organization account
            "text": captcha_text,
            "code": captcha_token,
            "clientId": client_id,
        }
        response = await self._send("login", "POST", "/token", data=form, headers={"not_auth_token": "false"})
        try:
            return TokenResponse.model_validate(self._json("login", response))
        except PydanticValidationError as e:
            raise DataShapeError(f"Unexpected token response: {e}") from e

    async def call_api(self, session: Session, code: str, data: dict[str, Any]) -> Any:
        """Invoke the generic RPC endpoint; ``code`` selects the portal operation."""
        step = f"api {code}"
        try:
            response = await self._send(
                step,
                "POST",
                "/CallApiWithCurrentUser",
                json={"code": code, "data": json.dumps(data, ensure_ascii=False)},
                headers={"Authorization": f"Bearer {session.token}", "X-CLIENT": session.x_client},
            )
        except UpstreamError as e:
            if e.status_code == httpx.codes.UNAUTHORIZED:
                raise PortalUnauthorizedError(str(e)) from e
            raise
        if not response.content:
            return None
        return self._json(step, response)
