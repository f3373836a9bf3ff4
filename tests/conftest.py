"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any, Union

import httpx
import pytest

from suspicious_activity.services import (
    AnalysisJobOrchestrator,
    AnalysisJobStore,
    ApiClient,
    DetectionAlertPromoter,
    StaticTokenAuthenticator,
)

API_PREFIX = "/ai-security/api"
API_URL = f"http://backend.test{API_PREFIX}"
TEST_TOKEN = "test-token"

# A canned response: a JSON body (HTTP 200), a (status, body) pair, or an
# async callable producing either (used to hold responses back).
Reply = Union[dict, tuple, Callable[[httpx.Request], Awaitable[Any]]]


class FakeBackend:
    """Scripted stand-in for the analysis REST API.

    Replies registered for a route are consumed in order; the last one is
    repeated for any further calls.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *replies: Reply) -> None:
        self.routes.setdefault((method, path), []).extend(replies)

    def calls(self, method: str, path: str) -> int:
        return sum(
            1
            for request in self.requests
            if request.method == method and self._route_path(request) == path
        )

    @staticmethod
    def _route_path(request: httpx.Request) -> str:
        return request.url.path.removeprefix(API_PREFIX)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, self._route_path(request)))
        if not queue:
            return httpx.Response(404, json={"detail": "Not found."})

        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            reply = await reply(request)
        if isinstance(reply, tuple):
            status, body = reply
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=reply)


@pytest.fixture
def backend() -> FakeBackend:
    """Fresh fake backend per test."""
    return FakeBackend()


@pytest.fixture
async def api_client(backend: FakeBackend) -> AsyncGenerator[ApiClient, None]:
    """API client wired to the fake backend."""
    client = ApiClient(
        API_URL,
        StaticTokenAuthenticator(TEST_TOKEN),
        transport=httpx.MockTransport(backend.handle),
    )
    yield client
    await client.close()


@pytest.fixture
def store() -> AnalysisJobStore:
    return AnalysisJobStore()


@pytest.fixture
def orchestrator(api_client: ApiClient, store: AnalysisJobStore) -> AnalysisJobOrchestrator:
    return AnalysisJobOrchestrator(api_client, store)


@pytest.fixture
def promoter(
    api_client: ApiClient, orchestrator: AnalysisJobOrchestrator
) -> DetectionAlertPromoter:
    return DetectionAlertPromoter(api_client, orchestrator)
