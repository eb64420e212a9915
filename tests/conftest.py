from __future__ import annotations

import inspect
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from aurelane.core.config import Settings
from aurelane.services.api_client import AurelaneClient
from aurelane.services.api_transport import ApiTransport
from aurelane.services.payment_gateway import (
    GatewayDismissed,
    GatewayOptions,
    GatewayOutcome,
)
from aurelane.services.request_cache import RequestCache
from aurelane.services.session_store import SessionStore

API_BASE_URL = "https://api.test/api"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Handler = Callable[[httpx.Request], Any]


class FakeBackend:
    """In-memory stand-in for the Aurelane REST API, mounted on httpx.MockTransport."""

    def __init__(self, prefix: str = "/api") -> None:
        self._prefix = prefix
        self._routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, handler: Handler) -> None:
        self._routes[(method.upper(), path)] = handler

    def json(self, method: str, path: str, body: Any, status_code: int = 200) -> None:
        self.route(
            method, path, lambda request: httpx.Response(status_code, json=body)
        )

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method.upper() and self._path(request) == path
        ]

    def last_json(self, method: str, path: str) -> Any:
        return json.loads(self.calls(method, path)[-1].content)

    def _path(self, request: httpx.Request) -> str:
        path = request.url.path
        if path.startswith(self._prefix):
            path = path[len(self._prefix):]
        return path

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get((request.method, self._path(request)))
        if handler is None:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result


class StubGateway:
    """Scripted payment widget."""

    def __init__(
        self,
        outcome: GatewayOutcome | None = None,
        *,
        loaded: bool = False,
        fail_load: bool = False,
    ) -> None:
        self.outcome = outcome or GatewayDismissed()
        self._loaded = loaded
        self.fail_load = fail_load
        self.loaded_urls: list[str] = []
        self.opened: list[GatewayOptions] = []
        self.on_open: Callable[[], Any] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def load(self, script_url: str) -> None:
        self.loaded_urls.append(script_url)
        if self.fail_load:
            raise RuntimeError("Failed to load payment script")
        self._loaded = True

    async def open(self, options: GatewayOptions) -> GatewayOutcome:
        self.opened.append(options)
        if self.on_open is not None:
            result = self.on_open()
            if inspect.isawaitable(result):
                await result
        return self.outcome


@pytest.fixture
def settings() -> Settings:
    return Settings(AURELANE_API_BASE_URL=API_BASE_URL, ENVIRONMENT="test")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def request_cache(clock) -> RequestCache:
    return RequestCache(clock=clock)


@pytest.fixture
def transport(settings, session_store, request_cache, backend) -> ApiTransport:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(backend), base_url=settings.api_base_url
    )
    return ApiTransport(
        settings, session=session_store, cache=request_cache, client=client
    )


@pytest.fixture
def client(transport) -> AurelaneClient:
    return AurelaneClient(transport)


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()
