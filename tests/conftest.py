"""Shared fixtures: a scripted fake of the Microsoft/Xbox/Minecraft services"""

import json
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

import settings
from minecraft_auth import AuthOrchestrator
from utils.storage import SessionStore


ResponseSpec = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def json_response(status_code: int, payload) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


class FakeServices:
    """Routes requests by (method, url) to scripted responses

    Each route holds a queue; the last entry repeats once the others are used.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[ResponseSpec]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, *responses: ResponseSpec):
        self.routes.setdefault((method, url), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, str(request.url)))
        if not queue:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(item):
            return item(request)
        return item

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def requests_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    def form(self, request: httpx.Request) -> Dict[str, str]:
        return dict(httpx.QueryParams(request.content.decode()))

    def body(self, request: httpx.Request) -> dict:
        return json.loads(request.content)

    def script_chain(self, access_token="mc-token", name="Steve", profile_id="069a79f444e94726a5befca90e38aaf5"):
        """Script the Xbox Live → XSTS → Minecraft → profile stages to succeed"""
        self.add("POST", settings.XBOX_AUTH_URL, json_response(200, {"Token": "xbl-token"}))
        self.add("POST", settings.XBOX_XSTS_URL, json_response(200, {
            "Token": "xsts-token",
            "DisplayClaims": {"xui": [{"uhs": "user-hash"}]},
        }))
        self.add("POST", settings.MINECRAFT_AUTH_URL, json_response(200, {
            "access_token": access_token,
            "expires_in": 86400,
        }))
        self.add("GET", settings.MINECRAFT_PROFILE_URL, json_response(200, {
            "id": profile_id,
            "name": name,
        }))


class FakeClock:
    """Monotonic clock that only moves when the fake sleep is awaited"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


DEVICE_CODE_PAYLOAD = {
    "device_code": "D1",
    "user_code": "ABCD-EFGH",
    "verification_uri": "https://a/b",
    "expires_in": 900,
    "interval": 5,
    "message": "To sign in, use a web browser to open the page https://a/b and enter the code ABCD-EFGH",
}


@pytest.fixture
def services():
    return FakeServices()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return SessionStore(str(tmp_path / "launcher" / "config.json"))


@pytest.fixture
def orchestrator(store, services, clock):
    return AuthOrchestrator(
        store=store,
        client_factory=services.client,
        sleep=clock.sleep,
        clock=clock,
    )
