"""Shared pytest fixtures."""

import asyncio
import json
from collections import Counter
from collections.abc import AsyncGenerator, Callable
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from bhxh_gateway.config import Config
from bhxh_gateway.core.core import Core

PORTAL_URL = "https://portal.test"
SOLVER_URL = "http://solver.test/api/v1/captcha/solve"

UNITS = [
    {"Ma": "U1", "Ten": "Cong ty Mot", "MaCoquan": "C01", "LoaiDoiTuong": "1"},
    {"Ma": "U2", "Ten": "Cong ty Hai", "MaCoquan": "C02", "LoaiDoiTuong": "2", "DiaChi": "Ha Noi"},
]


class FakePortal:
    """Scriptable stand-in for the portal and the captcha solver.

    Replies are queued per step; when a queue runs dry the default reply is used.
    Every request is recorded so tests can assert what was sent.
    """

    def __init__(self) -> None:
        self.client_id = "CID123"
        self.captcha = {"code": "TKN", "image": "aW1hZ2U="}
        self.token: dict[str, Any] = {"access_token": "TOK1", "expires_in": 1800, "dsDonVi": json.dumps(UNITS)}
        self.solver_replies: list[httpx.Response] = []
        self.token_replies: list[httpx.Response] = []
        self.api_replies: dict[str, list[httpx.Response]] = {}
        self.api_handler: Callable[[str, dict[str, Any]], Any] = lambda code, data: {}
        self.login_delay = 0.0
        self.calls: Counter[str] = Counter()
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def queue_api(self, code: str, response: httpx.Response) -> None:
        self.api_replies.setdefault(code, []).append(response)

    def token_forms(self) -> list[dict[str, str]]:
        forms = []
        for request in self.requests:
            if request.url.path == "/token":
                forms.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return forms

    def api_calls(self) -> list[tuple[str, dict[str, Any], httpx.Request]]:
        calls = []
        for request in self.requests:
            if request.url.path == "/CallApiWithCurrentUser":
                body = json.loads(request.content)
                calls.append((body["code"], json.loads(body["data"]), request))
        return calls

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "solver.test":
            self.calls["solve"] += 1
            if self.solver_replies:
                return self.solver_replies.pop(0)
            return httpx.Response(200, json={"success": True, "captcha_code": "WXYZ", "provider": "gemini"})

        path = request.url.path
        if path == "/oauth2/GetClientId":
            self.calls["client_id"] += 1
            return httpx.Response(200, text=json.dumps(self.client_id))
        if path == "/api/getCaptchaImage":
            self.calls["captcha"] += 1
            return httpx.Response(200, json=self.captcha)
        if path == "/token":
            self.calls["token"] += 1
            if self.login_delay:
                await asyncio.sleep(self.login_delay)
            if self.token_replies:
                return self.token_replies.pop(0)
            return httpx.Response(200, json=self.token)
        if path == "/CallApiWithCurrentUser":
            body = json.loads(request.content)
            code = body["code"]
            self.calls[f"api:{code}"] += 1
            queued = self.api_replies.get(code)
            if queued:
                return queued.pop(0)
            return httpx.Response(200, json=self.api_handler(code, json.loads(body["data"])))
        return httpx.Response(404, text="not found")


def make_config(**overrides: Any) -> Config:
    settings: dict[str, Any] = {
        "base_url": PORTAL_URL,
        "username": "0101234567",
        "password": "secret",
        "captcha_endpoint": SOLVER_URL,
        "target_unit_code": "U2",
    }
    settings.update(overrides)
    return Config(_env_file=None, **settings)


@pytest.fixture
def portal() -> FakePortal:
    return FakePortal()


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
async def core(config: Config, portal: FakePortal) -> AsyncGenerator[Core]:
    core = Core(config, portal.transport)
    yield core
    await core.on_stop()


@pytest.fixture
async def make_core(portal: FakePortal) -> AsyncGenerator[Callable[..., Core]]:
    """Factory for cores with config overrides, closed after the test."""
    cores: list[Core] = []

    def factory(**overrides: Any) -> Core:
        core = Core(make_config(**overrides), portal.transport)
        cores.append(core)
        return core

    yield factory
    for core in cores:
        await core.on_stop()
