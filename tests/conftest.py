import asyncio
import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from renewing_client import (
    ClientSettings,
    InMemoryCredentialStore,
    RequestDispatcher,
    RouteLocation,
)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def error(self, message: str) -> None:
        self.messages.append(message)


class RecordingNavigator:
    """Records pushes while staying on the same page."""

    def __init__(self, location: Optional[RouteLocation] = None) -> None:
        self.location = location or RouteLocation("Builds", "/builds?page=2")
        self.calls: List[Tuple[str, Optional[Dict[str, str]]]] = []

    def navigate_to(self, route_name, query=None):
        self.calls.append((route_name, query))

    def current_location(self) -> RouteLocation:
        return self.location


Route = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """
    API double: accepts only ``valid_token`` and renews ``valid_refresh``.

    Every request yields to the loop first so concurrent callers interleave
    the way they do against a real server.
    """

    def __init__(
        self,
        *,
        valid_token: str = "fresh-token",
        valid_refresh: str = "refresh-1",
        renewal_delay: float = 0.02,
    ) -> None:
        self.valid_token = valid_token
        self.valid_refresh = valid_refresh
        self.renewal_delay = renewal_delay
        self.renewal_calls = 0
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Route] = {}

    def route(self, method: str, path: str, handler: Route) -> None:
        self.routes[(method, path)] = handler

    def authorizations(self, path: str) -> List[Optional[str]]:
        return [
            r.headers.get("Authorization") for r in self.requests if r.url.path == path
        ]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        await asyncio.sleep(0)

        if request.url.path == "/api/auth/refresh":
            self.renewal_calls += 1
            await asyncio.sleep(self.renewal_delay)
            payload = json.loads(request.content)
            if payload.get("refresh_token") != self.valid_refresh:
                return httpx.Response(
                    401, json={"code": 401, "message": "refresh token expired"}
                )
            return httpx.Response(
                200,
                json={
                    "code": 200,
                    "data": {"token": self.valid_token, "refresh_token": "refresh-2"},
                },
            )

        if request.headers.get("Authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"code": 401, "message": "token expired"})

        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"code": 404, "message": "no such route"})
        return handler(request)


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(
        base_url="http://api.test/api",
        renewal_settle_seconds=0.05,
        redirect_suppression_seconds=0.05,
    )


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore(access="expired-token", refresh="refresh-1")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_dispatcher(store, navigator, notifier, settings):
    def _make(handler) -> RequestDispatcher:
        return RequestDispatcher(
            store,
            navigator,
            settings=settings,
            notifier=notifier,
            transport=httpx.MockTransport(handler),
        )

    return _make
