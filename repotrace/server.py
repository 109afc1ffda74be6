"""HTTP surface — a single traced route that proxies the GitHub repo lookup."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator

import aiohttp
from aiohttp import web
from opentelemetry.trace import Status, StatusCode

from repotrace.config import Config
from repotrace.github import Repository, fetch_json, format_report, request_headers
from repotrace.tracing import Telemetry

log = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", Config)
TELEMETRY_KEY = web.AppKey("telemetry", Telemetry)
SESSION_KEY = web.AppKey("session", aiohttp.ClientSession)

REPO_NAME_ATTR = "golang.go.repo.name"
REPO_ID_ATTR = "golang.go.repo.id"
REPO_STARS_ATTR = "golang.go.repo.stars"


def _describe(exc: BaseException) -> str:
    # Bare timeouts stringify to ""
    return str(exc) or type(exc).__name__


async def handle_run(request: web.Request) -> web.Response:
    """Fetch the upstream repository and render it as a text report."""
    cfg = request.app[CONFIG_KEY]
    tracer = request.app[TELEMETRY_KEY].tracer
    session = request.app[SESSION_KEY]

    with tracer.start_as_current_span(cfg.server.route) as span:
        span.add_event("handling request")

        try:
            repo = await fetch_json(
                session, tracer, cfg.upstream.url, Repository,
                timeout=cfg.upstream.timeout_seconds,
                headers=request_headers(cfg.upstream.token),
            )
        except Exception as e:
            with tracer.start_as_current_span("write"):
                message = _describe(e)
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, message))
                log.error("error: %s", message)
                return web.Response(status=500, text=f"error: {message}\n")

        with tracer.start_as_current_span("write"):
            span.set_attributes({
                REPO_NAME_ATTR: repo.full_name,
                REPO_ID_ATTR: repo.id,
                REPO_STARS_ATTR: repo.stargazers_count,
            })
            return web.Response(text=format_report(repo))


async def _client_session(app: web.Application) -> AsyncIterator[None]:
    """One pooled ClientSession shared by all requests for the app's life."""
    timeout = aiohttp.ClientTimeout(total=app[CONFIG_KEY].upstream.client_timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        app[SESSION_KEY] = session
        yield


def create_app(cfg: Config, telemetry: Telemetry) -> web.Application:
    app = web.Application()
    app[CONFIG_KEY] = cfg
    app[TELEMETRY_KEY] = telemetry
    app.cleanup_ctx.append(_client_session)
    app.router.add_get(cfg.server.route, handle_run)
    return app


def resolve_port(default: int = 8080) -> str:
    """The literal PORT env value, or ``default`` when unset or empty."""
    port = os.getenv("PORT", "")
    if not port:
        port = str(default)
        log.info("defaulting to port %s", port)
    return port


def serve(cfg: Config, telemetry: Telemetry) -> None:
    """Listen and serve until interrupted.

    Raises:
        OSError: the port could not be bound.
        ValueError: PORT is not a number.
    """
    port = resolve_port(cfg.server.default_port)
    app = create_app(cfg, telemetry)
    log.info("server starting at: %s", port)
    web.run_app(app, host=cfg.server.host, port=int(port), print=None)
