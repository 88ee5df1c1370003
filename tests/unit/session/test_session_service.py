"""Tests for portal login, session caching and single-flight."""

import asyncio
import base64
import json
from datetime import timedelta

import httpx
import pytest
from Crypto.Cipher import AES
from Crypto.Util.Padding import unpad
from structlog.testing import capture_logs

from bhxh_gateway.core.modules.portal.crypto import evp_bytes_to_key
from bhxh_gateway.core.modules.session.cache import MemorySessionCache
from bhxh_gateway.core.modules.session.models import DEFAULT_CACHE_KEY, PortalCredentials, Session, Unit
from bhxh_gateway.errors import ConfigurationError, DataShapeError, LoginUnavailableError, UpstreamError
from bhxh_gateway.utils import now


def decrypt_x_client(x_client: str, passphrase: str) -> str:
    raw = base64.b64decode(x_client.replace("teca", "+"))
    assert raw[:8] == b"Salted__"
    key, iv = evp_bytes_to_key(passphrase.encode(), raw[8:16])
    return unpad(AES.new(key, AES.MODE_CBC, iv).decrypt(raw[16:]), AES.block_size).decode()


class RecordingCache(MemorySessionCache):
    def __init__(self) -> None:
        super().__init__()
        self.puts: list[tuple[str, int]] = []

    async def put(self, key: str, session: Session, ttl: int) -> None:
        self.puts.append((key, ttl))
        await super().put(key, session, ttl)


class BrokenWriteCache(MemorySessionCache):
    async def put(self, key: str, session: Session, ttl: int) -> None:
        raise ConnectionError("cache down")


class TestLoginSequence:
    """Tests for a full login on a cache miss."""

    async def test_end_to_end_login(self, core, portal, config):
        """Test the login flow from client id to selected unit."""
        started = now()
        session = await core.services.session.get_valid_session()

        assert session.token == "TOK1"
        assert session.unit.code == "U2"
        assert session.unit.agency_code == "C02"
        assert session.unit.model_extra == {"DiaChi": "Ha Noi"}
        assert timedelta(seconds=1799) <= session.expires_at - started <= timedelta(seconds=1801)
        assert decrypt_x_client(session.x_client, config.encryption_key) == '"CID123"'
        assert "+" not in session.x_client

        assert portal.token_forms() == [
            {
                "grant_type": "password",
                "username": "0101234567",
                "password": "secret",
                "loaidoituong": "1",
                "text": "WXYZ",
                "code": "TKN",
                "clientId": "CID123",
            }
        ]

    async def test_captcha_request_carries_x_client(self, core, portal):
        """Test that the captcha request is bound to the session's X-CLIENT value."""
        session = await core.services.session.get_valid_session()

        captcha_request = next(r for r in portal.requests if r.url.path == "/api/getCaptchaImage")
        assert captcha_request.headers["X-CLIENT"] == session.x_client
        assert captcha_request.headers["is_public"] == "true"
        assert json.loads(captcha_request.content) == {"height": 60, "width": 300}

    async def test_solver_receives_data_uri(self, core, portal):
        """Test that the bare base64 image is sent to the solver as a data URI."""
        await core.services.session.get_valid_session()

        solver_request = next(r for r in portal.requests if r.url.host == "solver.test")
        body = json.loads(solver_request.content)
        assert body["image_data"] == "data:image/png;base64,aW1hZ2U="
        assert body["provider"] == "gemini"
        assert body["timeout"] == 30

    async def test_units_as_list(self, core, portal):
        """Test that dsDonVi may arrive already decoded."""
        portal.token["dsDonVi"] = [{"Ma": "U9", "Ten": "Only"}]

        session = await core.services.session.get_valid_session()

        assert session.unit.code == "U9"

    async def test_first_unit_without_match(self, make_core):
        """Test that the first unit is used when the target code matches nothing."""
        core = make_core(target_unit_code="NOPE")

        session = await core.services.session.get_valid_session()

        assert session.unit.code == "U1"

    async def test_empty_units(self, core, portal):
        """Test that a login without units is rejected and nothing is cached."""
        portal.token["dsDonVi"] = "[]"

        with pytest.raises(DataShapeError, match="No unit found"):
            await core.services.session.get_valid_session()

        assert await core.session_cache.get(DEFAULT_CACHE_KEY) is None

    async def test_missing_credentials(self, make_core, portal):
        """Test that missing credentials fail before any network call."""
        core = make_core(username=None, password=None)

        with pytest.raises(ConfigurationError):
            await core.services.session.get_valid_session()

        assert portal.requests == []

    async def test_per_request_credentials(self, core, portal):
        """Test that explicit credentials are used and cached under their own key."""
        credentials = PortalCredentials(username="other", password="pw")

        await core.services.session.get_valid_session(credentials)

        assert portal.token_forms()[0]["username"] == "other"
        assert await core.session_cache.get(credentials.cache_key()) is not None
        assert await core.session_cache.get(DEFAULT_CACHE_KEY) is None


class TestSessionTtl:
    """Tests for session lifetime computation."""

    async def test_ttl_capped_by_ceiling(self, core, portal):
        """Test that a declared lifetime above the ceiling is cut to the ceiling."""
        cache = RecordingCache()
        core.session_cache = cache
        portal.token["expires_in"] = 7200

        session = await core.services.session.get_valid_session()

        assert cache.puts == [(DEFAULT_CACHE_KEY, 3600)]
        assert 3590 <= session.expires_in() <= 3600

    async def test_ttl_defaults_to_ceiling(self, core, portal):
        """Test that a missing expires_in falls back to the ceiling."""
        cache = RecordingCache()
        core.session_cache = cache
        del portal.token["expires_in"]

        await core.services.session.get_valid_session()

        assert cache.puts == [(DEFAULT_CACHE_KEY, 3600)]

    async def test_session_ttl(self, core):
        """Test the TTL rule for declared values around the ceiling."""
        sessions = core.services.session
        assert sessions.session_ttl(1800) == 1800
        assert sessions.session_ttl(7200) == 3600
        assert sessions.session_ttl(None) == 3600
        assert sessions.session_ttl(0) == 3600


class TestSessionCaching:
    """Tests for cache hits, expiry and single-flight."""

    async def test_cache_hit_skips_portal(self, core, portal):
        """Test that a valid cached session is returned without network I/O."""
        first = await core.services.session.get_valid_session()
        requests_after_login = len(portal.requests)

        second = await core.services.session.get_valid_session()

        assert second == first
        assert len(portal.requests) == requests_after_login

    async def test_expired_session_triggers_login(self, core, portal):
        """Test that an expired session in the store is treated as absent."""
        stale = Session(
            token="OLD",
            x_client="x",
            unit=Unit(Ma="U2"),
            expires_at=now() - timedelta(seconds=1),
        )
        await core.session_cache.put(DEFAULT_CACHE_KEY, stale, 3600)

        session = await core.services.session.get_valid_session()

        assert session.token == "TOK1"
        assert portal.calls["token"] == 1

    async def test_concurrent_misses_share_one_login(self, core, portal):
        """Test that concurrent callers for the same key trigger a single login."""
        portal.login_delay = 0.05

        sessions = await asyncio.gather(*(core.services.session.get_valid_session() for _ in range(5)))

        assert portal.calls["client_id"] == 1
        assert portal.calls["token"] == 1
        assert {s.token for s in sessions} == {"TOK1"}

    async def test_concurrent_misses_for_different_keys(self, core, portal):
        """Test that different credentials log in independently."""
        portal.login_delay = 0.01
        alice = PortalCredentials(username="alice", password="a")
        bob = PortalCredentials(username="bob", password="b")

        await asyncio.gather(
            core.services.session.get_valid_session(alice),
            core.services.session.get_valid_session(bob),
        )

        assert portal.calls["token"] == 2

    async def test_failed_login_is_not_cached(self, core, portal):
        """Test that a failed login clears the in-flight entry and the next call retries."""
        portal.token_replies.append(httpx.Response(500, text="maintenance"))

        with pytest.raises(UpstreamError) as exc_info:
            await core.services.session.get_valid_session()
        assert exc_info.value.status_code == 500

        session = await core.services.session.get_valid_session()

        assert session.token == "TOK1"
        assert portal.calls["token"] == 2

    async def test_failed_login_propagates_to_all_waiters(self, core, portal):
        """Test that every caller joined to a failing login sees the same error."""
        portal.login_delay = 0.02
        portal.token_replies.append(httpx.Response(400, json={"error": "invalid_grant"}))

        results = await asyncio.gather(
            *(core.services.session.get_valid_session() for _ in range(3)), return_exceptions=True
        )

        assert all(isinstance(r, UpstreamError) for r in results)
        assert portal.calls["token"] == 1

    async def test_cancelled_waiter_keeps_shared_login(self, core, portal):
        """Test that cancelling one caller leaves the login running for the others."""
        portal.login_delay = 0.05
        first = asyncio.create_task(core.services.session.get_valid_session())
        second = asyncio.create_task(core.services.session.get_valid_session())
        await asyncio.sleep(0.01)

        first.cancel()
        session = await second

        assert first.cancelled()
        assert session.token == "TOK1"
        assert portal.calls["token"] == 1

    async def test_failure_without_waiters_is_logged(self, core, portal):
        """Test that a login whose only caller was cancelled still reports its failure."""
        portal.login_delay = 0.02
        portal.token_replies.append(httpx.Response(500, text="maintenance"))

        with capture_logs() as logs:
            waiter = asyncio.create_task(core.services.session.get_valid_session())
            await asyncio.sleep(0.005)
            waiter.cancel()
            await asyncio.sleep(0.1)

        assert any(entry["event"] == "login_failed" for entry in logs)
        assert core.services.session._logins == {}

    async def test_stop_cancels_logins_in_flight(self, core, portal):
        """Test that shutdown cancels pending logins and waits for them."""
        portal.login_delay = 0.05
        waiter = asyncio.create_task(core.services.session.get_valid_session())
        await asyncio.sleep(0.01)
        login = next(iter(core.services.session._logins.values()))

        await core.services.session.on_stop()

        assert login.cancelled()
        assert core.services.session._logins == {}
        with pytest.raises(asyncio.CancelledError):
            await waiter

    async def test_cache_write_failure_still_returns_session(self, core):
        """Test that a failing cache write does not fail the login."""
        core.session_cache = BrokenWriteCache()

        session = await core.services.session.get_valid_session()

        assert session.token == "TOK1"


class TestCaptchaRetries:
    """Tests for the captcha fetch-and-solve loop."""

    async def test_retry_with_fresh_captcha(self, core, portal):
        """Test that a failed solve fetches a new challenge and tries again."""
        portal.solver_replies.append(httpx.Response(200, json={"success": False}))

        session = await core.services.session.get_valid_session()

        assert session.token == "TOK1"
        assert portal.calls["captcha"] == 2
        assert portal.calls["solve"] == 2

    async def test_exhausted_retries(self, core, portal):
        """Test that three failed solves abort the login without a token request."""
        portal.solver_replies.extend(httpx.Response(500, text="overloaded") for _ in range(3))

        with pytest.raises(LoginUnavailableError):
            await core.services.session.get_valid_session()

        assert portal.calls["captcha"] == 3
        assert portal.calls["token"] == 0
        assert await core.session_cache.get(DEFAULT_CACHE_KEY) is None

    async def test_validation_error_fallback(self, core, portal):
        """Test that a 422 carrying the recognised text is used as the solution."""
        detail = "String should have at least 5 characters [type=string_too_short, input_value='AB12', input_type=str]"
        portal.solver_replies.append(httpx.Response(422, json={"detail": {"detail": detail}}))

        await core.services.session.get_valid_session()

        assert portal.token_forms()[0]["text"] == "AB12"
        assert portal.calls["solve"] == 1


class TestSessionRefresh:
    """Tests for eviction, refresh and status."""

    async def test_refresh_forces_login(self, core, portal):
        """Test that refresh replaces a valid cached session."""
        await core.services.session.get_valid_session()
        portal.token["access_token"] = "TOK2"

        session = await core.services.session.refresh_session()

        assert session.token == "TOK2"
        assert portal.calls["token"] == 2

    async def test_refresh_with_replaced_token_keeps_cache(self, core, portal):
        """Test that a stale token that is no longer cached does not evict the current session."""
        await core.services.session.get_valid_session()

        session = await core.services.session.refresh_session(stale_token="SOMETHING_ELSE")

        assert session.token == "TOK1"
        assert portal.calls["token"] == 1

    async def test_refresh_with_current_token(self, core, portal):
        """Test that the cached token is evicted when it is the stale one."""
        first = await core.services.session.get_valid_session()
        portal.token["access_token"] = "TOK2"

        session = await core.services.session.refresh_session(stale_token=first.token)

        assert session.token == "TOK2"

    async def test_status(self, core):
        """Test status before and after login."""
        sessions = core.services.session
        before = await sessions.get_status()
        assert before.status == "expired"
        assert before.expires_in == 0

        await sessions.get_valid_session()
        after = await sessions.get_status()

        assert after.status == "active"
        assert after.unit == "Cong ty Hai"
        assert 0 < after.expires_in <= 1800

    async def test_clear_all_sessions(self, core):
        """Test that clearing drops every cached session."""
        await core.services.session.get_valid_session()

        await core.services.session.clear_all_sessions()

        assert (await core.services.session.get_status()).status == "expired"
