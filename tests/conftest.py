"""Shared fixtures: settings, a recording ClickUp stub, and a gateway client."""

import json
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from clickup_relay.clickup import ClickUpClient
from clickup_relay.config import Settings
from clickup_relay.gateway import create_app

SECRET = "s3cret"
AUTH = {"X-Webhook-Secret": SECRET}
API = "/api/v2"


class UpstreamStub:
    """Stands in for the ClickUp API and records every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Any] = {}

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, API + path)] = (status, body)

    def fail(self, method: str, path: str, error: Exception) -> None:
        self.routes[(method, API + path)] = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"err": "Route not found", "ECODE": "APP_001"})
        if isinstance(route, Exception):
            raise route
        status, body = route
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, content=(body or "").encode())

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        clickup_api_token="Bearer tok-123",
        clickup_default_list_id="list-1",
        clickup_api_base_url="https://clickup.test/api/v2",
        pd_shared_secret=SECRET,
        clickup_shared_secret="",
        clickup_worker_url="http://gateway.test",
        goals_db_path=str(tmp_path / "goals.db"),
        scheduler_enabled=False,
    )


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def make_app(upstream: UpstreamStub):
    """Build a gateway app for the given settings, wired to the stub."""

    def _make(settings: Settings):
        clickup = ClickUpClient(settings, transport=httpx.MockTransport(upstream))
        return create_app(settings, clickup=clickup)

    return _make


@pytest.fixture
def client(settings: Settings, make_app) -> TestClient:
    return TestClient(make_app(settings))
