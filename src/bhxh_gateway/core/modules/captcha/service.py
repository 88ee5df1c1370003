import re
from typing import Any

import httpx
import structlog

from bhxh_gateway.core.core import Service
from bhxh_gateway.errors import CaptchaSolveError

logger = structlog.get_logger(__name__)

# The solver enforces a 5-character minimum while the portal issues 4-character
# codes; its validation error still carries the recognised text.
INPUT_VALUE_RE = re.compile(r"input_value='([A-Za-z0-9]+)'")


def to_data_uri(image: str) -> str:
    """Prefix a bare base64 PNG with a data URI scheme."""
    return image if image.startswith("data:") else f"data:image/png;base64,{image}"


def extract_code_from_validation_error(payload: Any) -> str | None:
    """Pull the recognised code out of a 422 body shaped like ``{"detail": {"detail": "...input_value='AB12'..."}}``."""
    if not isinstance(payload, dict):
        return None
    outer = payload.get("detail")
    detail = outer.get("detail") if isinstance(outer, dict) else None
    if not isinstance(detail, str):
        return None
    match = INPUT_VALUE_RE.search(detail)
    return match.group(1) if match else None


class CaptchaService(Service):
    """Client for the external AI CAPTCHA solving service."""

    async def solve(self, image: str) -> str:
        """Return the text shown in a base64 CAPTCHA image.

        Raises CaptchaSolveError when the solver is unreachable or gives no usable answer.
        """
        config = self.core.config
        headers = {"Authorization": f"Bearer {config.captcha_api_key}"} if config.captcha_api_key else {}
        body = {
            "image_data": to_data_uri(image),
            "provider": config.captcha_provider,
            "timeout": config.captcha_timeout,
        }

        try:
            response = await self.core.solver_http.post(config.captcha_endpoint, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise CaptchaSolveError(f"Captcha solver unreachable: {e}") from e

        payload = self._payload(response)

        if response.status_code == httpx.codes.UNPROCESSABLE_ENTITY:
            code = extract_code_from_validation_error(payload)
            if code:
                logger.info("captcha_extracted_from_validation_error", length=len(code))
                return code

        if response.is_error:
            raise CaptchaSolveError(f"Captcha solver failed: {response.status_code} - {payload!r}")

        if not isinstance(payload, dict) or not payload.get("success") or not payload.get("captcha_code"):
            raise CaptchaSolveError("Captcha solver returned no captcha_code")

        code = str(payload["captcha_code"])
        logger.debug("captcha_solved", provider=payload.get("provider", config.captcha_provider), length=len(code))
        return code

    @staticmethod
    def _payload(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text
