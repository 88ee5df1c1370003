from collections.abc import Callable
from typing import Any, NamedTuple

import structlog

from bhxh_gateway.core.core import Service
from bhxh_gateway.core.modules.session.models import PortalCredentials, Session
from bhxh_gateway.errors import PortalUnauthorizedError

logger = structlog.get_logger(__name__)

type PayloadBuilder = Callable[[Session], dict[str, Any]]


class PortalResponse(NamedTuple):
    data: Any
    session: Session


class PortalService(Service):
    """Session-aware access to the portal's generic RPC endpoint."""

    async def call(
        self,
        code: str,
        credentials: PortalCredentials | None,
        build_payload: PayloadBuilder | None = None,
        user_context: bool = True,
    ) -> PortalResponse:
        """Invoke RPC ``code`` with a payload built from the current session.

        When the portal rejects the token, the session is replaced once and the
        call repeated; a second rejection propagates.
        """
        sessions = self.core.services.session
        session = await sessions.get_valid_session(credentials)
        try:
            data = await self._call_once(code, session, build_payload, user_context)
        except PortalUnauthorizedError:
            logger.warning("portal_token_rejected", code=code, unit=session.unit.display_name)
            session = await sessions.refresh_session(credentials, stale_token=session.token)
            data = await self._call_once(code, session, build_payload, user_context)
        return PortalResponse(data, session)

    async def _call_once(
        self, code: str, session: Session, build_payload: PayloadBuilder | None, user_context: bool
    ) -> Any:
        payload = build_payload(session) if build_payload else {}
        if user_context:
            payload = {**payload, **session.unit.user_context()}
        logger.debug("portal_call", code=code)
        return await self.core.portal.call_api(session, code, payload)
