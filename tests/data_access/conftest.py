# === NAVMAP v1 ===
# {
#   "module": "tests.data_access.conftest",
#   "purpose": "Hermetic HTTP fixtures for the data-access suite",
#   "sections": [
#     {"id": "scripted-api", "name": "ScriptedApi", "anchor": "class-scriptedapi", "kind": "class"},
#     {"id": "recording-sleep", "name": "RecordingSleep", "anchor": "class-recordingsleep", "kind": "class"},
#     {"id": "fake-clock", "name": "FakeClock", "anchor": "class-fakeclock", "kind": "class"},
#     {"id": "fixtures", "name": "fixtures", "anchor": "fixtures", "kind": "section"}
#   ]
# }
# === /NAVMAP ===

"""
Shared fixtures for the data-access tests.

``ScriptedApi`` is an ``httpx.MockTransport`` handler that records every
request and replies from a queue of scripted responses (or a callable), so
tests can assert exact call counts and query strings without a network.
"""

from __future__ import annotations

import json
from typing import Any, Callable, List, Optional, Union

import httpx
import pytest

from RestScroll.DataAccess.client import EntityClient, save_to_directory
from RestScroll.DataAccess.retry import RequestExecutor
from RestScroll.DataAccess.transport import HttpTransport

BASE_URL = "https://api.example.test/api"

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


def envelope(data: Any, **extra: Any) -> dict:
    body = {"data": data, "success": True}
    body.update(extra)
    return body


def json_response(status: int, body: Any) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(body).encode("utf-8"), headers={"content-type": "application/json"})


class ScriptedApi:
    """MockTransport handler replaying scripted replies in order."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._replies: List[Reply] = []
        self.default: Optional[Reply] = None

    def reply(self, status: int, body: Any = None) -> "ScriptedApi":
        self._replies.append(json_response(status, body))
        return self

    def reply_ok(self, data: Any, **extra: Any) -> "ScriptedApi":
        return self.reply(200, envelope(data, **extra))

    def reply_raw(self, response: Reply) -> "ScriptedApi":
        self._replies.append(response)
        return self

    def fail_connect(self) -> "ScriptedApi":
        self._replies.append(httpx.ConnectError("connection refused"))
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self._replies.pop(0) if self._replies else self.default
        if reply is None:
            raise AssertionError(f"unexpected request {request.method} {request.url}")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply) and not isinstance(reply, httpx.Response):
            return reply(request)
        return reply

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


class RecordingSleep:
    """Async sleep replacement that records requested delays (seconds)."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


# --- fixtures ---


@pytest.fixture
def api() -> ScriptedApi:
    return ScriptedApi()


@pytest.fixture
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_transport(api: ScriptedApi) -> Callable[..., HttpTransport]:
    def _make(**kwargs: Any) -> HttpTransport:
        return HttpTransport(transport=httpx.MockTransport(api), **kwargs)

    return _make


@pytest.fixture
def make_client(make_transport, sleeps: RecordingSleep, tmp_path) -> Callable[..., EntityClient]:
    """Factory for an EntityClient over the scripted API with instant backoff."""

    def _make(entity: str = "records", *, max_attempts: int = 3, base_delay_ms: float = 100, **kwargs: Any) -> EntityClient:
        transport = kwargs.pop("transport", None) or make_transport()
        executor = RequestExecutor(max_attempts, base_delay_ms, sleep=sleeps)
        kwargs.setdefault("save", save_to_directory(tmp_path / "downloads"))
        return EntityClient(transport, entity, base_url=BASE_URL, executor=executor, **kwargs)

    return _make
