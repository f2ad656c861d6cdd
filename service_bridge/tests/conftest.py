"""
Shared fixtures for Bridge Gateway tests.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from shared.config import ServiceConfig, get_config
from service_bridge.app.adapters.bridge_client import BridgeClient
from service_bridge.app.adapters.registry_store import RegistryStore
from service_bridge.app.caching import TTLCache


BRIDGE_URL = "http://bridge.test/exec"
BRIDGE_TOKEN = "bridge-secret"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBridge:
    """Scripted upstream bridge served through ``httpx.MockTransport``.

    Replies are keyed by the ``id`` parameter, else ``alias``, else ``action``.
    """

    def __init__(self):
        self.replies: Dict[str, Union[Tuple[int, Dict[str, str], bytes], type]] = {}
        self.delays: Dict[str, float] = {}
        self.requests: List[httpx.Request] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def reply_json(self, key: str, payload: Any, status: int = 200) -> None:
        self.replies[key] = (status, {"content-type": "application/json; charset=utf-8"}, json.dumps(payload).encode())

    def reply_text(self, key: str, body: str, status: int = 200, content_type: str = "text/html; charset=utf-8") -> None:
        self.replies[key] = (status, {"content-type": content_type}, body.encode())

    def fail(self, key: str, exc_type: type = httpx.ConnectError) -> None:
        self.replies[key] = exc_type

    def delay(self, key: str, seconds: float) -> None:
        self.delays[key] = seconds

    @staticmethod
    def key_for(request: httpx.Request) -> str:
        params = request.url.params
        return params.get("id") or params.get("alias") or params.get("action") or ""

    def calls_for(self, key: str) -> int:
        return sum(1 for request in self.requests if self.key_for(request) == key)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = self.key_for(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(key)
            if delay:
                await asyncio.sleep(delay)
            reply = self.replies.get(key)
            if reply is None:
                return httpx.Response(404, json={"ok": False, "error": f"unknown key {key}"})
            if isinstance(reply, type):
                raise reply("bridge unreachable", request=request)
            status, headers, body = reply
            return httpx.Response(status, headers=headers, content=body)
        finally:
            self.in_flight -= 1

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def bridge_client(fake_bridge) -> BridgeClient:
    return BridgeClient(BRIDGE_URL, BRIDGE_TOKEN, timeout=5.0, transport=fake_bridge.transport)


@pytest.fixture
def registry_doc() -> Optional[Dict[str, Any]]:
    return {
        "project": "Test Bridge",
        "audiences": [
            {"alias": "ca1", "name": "First"},
            {"alias": "ca2"},
            {"alias": "ca1", "name": "Duplicate"},
        ],
    }


@pytest.fixture
def registry_path(tmp_path, registry_doc):
    path = tmp_path / "registry.json"
    if registry_doc is not None:
        path.write_text(json.dumps(registry_doc), encoding="utf-8")
    return path


@pytest.fixture
def registry_store(registry_path) -> RegistryStore:
    return RegistryStore(registry_path)


@pytest.fixture
def config(registry_path) -> ServiceConfig:
    return get_config(
        "bridge",
        bridge_url=BRIDGE_URL,
        bridge_token=BRIDGE_TOKEN,
        proxy_key="",
        registry_path=str(registry_path),
        status_timeout_seconds=1.0,
        bundle_concurrency=4,
    )
