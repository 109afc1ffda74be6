"""Shared fixtures for repotrace tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from repotrace.config import Config
from repotrace.tracing import Telemetry

GOLANG_GO = {
    "id": 1,
    "stargazers_count": 9000,
    "forks": 500,
    "name": "go",
    "full_name": "golang/go",
}


@pytest.fixture
def cfg() -> Config:
    """A default Config with no external dependencies."""
    return Config()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def telemetry(span_exporter: InMemorySpanExporter) -> Telemetry:
    """Telemetry whose spans land in `span_exporter` as soon as they end."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield Telemetry(provider, provider.get_tracer("tests"))
    provider.shutdown()


class FakeGitHub:
    """A local stand-in for api.github.com with a scriptable response."""

    def __init__(self) -> None:
        self.status = 200
        self.body = json.dumps(GOLANG_GO)
        self.delay = 0.0
        self.url = ""
        self.last_headers: dict[str, str] = {}

    def respond(self, payload: Any = None, *, status: int = 200, raw: str | None = None) -> None:
        self.status = status
        self.body = raw if raw is not None else json.dumps(payload)

    async def handle(self, request: web.Request) -> web.Response:
        self.last_headers = dict(request.headers)
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(status=self.status, text=self.body, content_type="application/json")

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/repos/golang/go", self.handle)
        return app


@pytest_asyncio.fixture
async def upstream() -> FakeGitHub:
    fake = FakeGitHub()
    server = TestServer(fake.app())
    await server.start_server()
    fake.url = str(server.make_url("/repos/golang/go"))
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def dead_url() -> str:
    """A URL on a port nothing listens on any more."""
    server = TestServer(web.Application())
    await server.start_server()
    url = str(server.make_url("/repos/golang/go"))
    await server.close()
    return url
