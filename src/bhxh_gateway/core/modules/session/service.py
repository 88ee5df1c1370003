import asyncio
import time
from datetime import timedelta

import structlog

from bhxh_gateway.core.core import Service
from bhxh_gateway.core.modules.portal.crypto import encrypt_client_id
from bhxh_gateway.core.modules.portal.models import CaptchaChallenge
from bhxh_gateway.core.modules.session.cache import SessionCache
from bhxh_gateway.core.modules.session.models import PortalCredentials, Session, SessionStatus, cache_key_for
from bhxh_gateway.core.modules.session.units import parse_units, select_unit
from bhxh_gateway.errors import CaptchaSolveError, ConfigurationError, LoginUnavailableError
from bhxh_gateway.utils import elapsed_ms, now, retry

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Acquires and caches authenticated portal sessions.

    Concurrent cache misses for the same key share a single login (single-flight).
    """

    def __init__(self) -> None:
        super().__init__()
        self._logins: dict[str, asyncio.Task[Session]] = {}

    async def on_stop(self) -> None:
        """Cancel logins still in flight and wait for them to unwind."""
        tasks = list(self._logins.values())
        self._logins.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def _cache(self) -> SessionCache:
        return self.core.session_cache

    async def get_valid_session(self, credentials: PortalCredentials | None = None) -> Session:
        """Return a cached unexpired session, logging in on a miss."""
        account = self._resolve_account(credentials)
        key = cache_key_for(credentials)

        cached = await self._cache.get(key)
        if cached is not None and cached.is_valid():
            return cached

        task = self._logins.get(key)
        if task is None:
            task = asyncio.create_task(self._login_and_store(key, account))
            self._logins[key] = task
            task.add_done_callback(lambda done: self._forget_login(key, done))
        else:
            logger.debug("login_in_flight_joined", cache_key=key[:12])

        # A cancelled caller must not cancel the login other callers are waiting on
        return await asyncio.shield(task)

    async def refresh_session(self, credentials: PortalCredentials | None = None, stale_token: str | None = None) -> Session:
        """Evict the cached session and log in again.

        With ``stale_token`` the eviction only happens if the cache still holds
        that token, so a burst of rejected calls results in one new login.
        """
        await self.invalidate_session(credentials, stale_token)
        return await self.get_valid_session(credentials)

    async def invalidate_session(self, credentials: PortalCredentials | None = None, stale_token: str | None = None) -> None:
        key = cache_key_for(credentials)
        if stale_token is not None:
            cached = await self._cache.get(key)
            if cached is None or cached.token != stale_token:
                return
        await self._cache.delete(key)
        logger.info("session_invalidated", cache_key=key[:12])

    async def clear_all_sessions(self) -> None:
        await self._cache.clear()
        logger.info("sessions_cleared")

    async def get_status(self, credentials: PortalCredentials | None = None) -> SessionStatus:
        """Report the cached session state without triggering a login."""
        cached = await self._cache.get(cache_key_for(credentials))
        if cached is not None and cached.is_valid():
            return SessionStatus(status="active", expires_in=cached.expires_in(), unit=cached.unit.display_name)
        return SessionStatus(status="expired", expires_in=0)

    def session_ttl(self, declared: int | None) -> int:
        """Session lifetime: the portal's expires_in capped by the configured ceiling."""
        ceiling = self.core.config.session_ttl_seconds
        if not declared or declared <= 0:
            return ceiling
        return min(declared, ceiling)

    def _resolve_account(self, credentials: PortalCredentials | None) -> PortalCredentials:
        if credentials is not None:
            return credentials
        config = self.core.config
        if config.username and config.password:
            return PortalCredentials(username=config.username, password=config.password)
        raise ConfigurationError(
            "Portal credentials not provided. Send X-Username and X-Password headers "
            "or configure BHXH_USERNAME and BHXH_PASSWORD."
        )

    def _forget_login(self, key: str, task: asyncio.Task[Session]) -> None:
        if self._logins.get(key) is task:
            del self._logins[key]
        # Consumes the failure even when no waiter is left
        error = None if task.cancelled() else task.exception()
        if error is not None:
            logger.warning("login_failed", cache_key=key[:12], error=str(error))

    async def _login_and_store(self, key: str, account: PortalCredentials) -> Session:
        session, ttl = await self._login(account)
        try:
            await self._cache.put(key, session, ttl)
        except Exception:
            # The caller still gets a usable session; the next miss logs in again
            logger.exception("session_cache_write_failed", cache_key=key[:12])
        return session

    async def _login(self, account: PortalCredentials) -> tuple[Session, int]:
        """Run the full portal login and return the session with its TTL in seconds."""
        config = self.core.config
        portal = self.core.portal
        started = time.perf_counter()
        logger.info("login_started", username=account.username)

        client_id = await portal.get_client_id()
        client_id_done = time.perf_counter()
        x_client = encrypt_client_id(client_id, config.encryption_key)
        logger.debug("client_id_obtained", client_id_prefix=client_id[:15], elapsed_ms=elapsed_ms(started, client_id_done))

        async def solve_fresh_captcha(attempt: int) -> tuple[str, CaptchaChallenge]:
            challenge = await portal.get_captcha(x_client)
            logger.info("captcha_fetched", attempt=attempt, max_attempts=config.max_captcha_retries)
            try:
                text = await self.core.services.captcha.solve(challenge.image)
            except CaptchaSolveError as e:
                logger.warning("captcha_solve_failed", attempt=attempt, error=str(e))
                raise
            return text, challenge

        try:
            captcha_text, challenge = await retry(solve_fresh_captcha, config.max_captcha_retries, CaptchaSolveError)
        except CaptchaSolveError as e:
            raise LoginUnavailableError(f"Failed to solve captcha after {config.max_captcha_retries} attempts") from e
        captcha_done = time.perf_counter()

        token = await portal.exchange_token(account.username, account.password, captcha_text, challenge.code, client_id)
        login_done = time.perf_counter()

        unit = select_unit(parse_units(token.units_raw), config.target_unit_code)
        ttl = self.session_ttl(token.expires_in)
        session = Session(
            token=token.access_token,
            x_client=x_client,
            unit=unit,
            expires_at=now() + timedelta(seconds=ttl),
        )

        logger.info(
            "login_succeeded",
            unit=unit.display_name,
            ttl=ttl,
            client_id_ms=elapsed_ms(started, client_id_done),
            captcha_ms=elapsed_ms(client_id_done, captcha_done),
            token_ms=elapsed_ms(captcha_done, login_done),
            total_ms=elapsed_ms(started, time.perf_counter()),
        )
        return session, ttl
