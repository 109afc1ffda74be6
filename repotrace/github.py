"""GitHub repository fetch — one traced GET plus a traced JSON decode."""

from __future__ import annotations

from typing import Any, TypeVar

import aiohttp
from opentelemetry import context as otel_context
from opentelemetry import trace
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

STATUS_CODE_ATTR = "github.resp.status.code"

T = TypeVar("T", bound=BaseModel)


class Repository(BaseModel):
    """The slice of GitHub's repository payload the report needs.

    Field types are strict ("1" is not an int); a null field keeps its default.
    """
    model_config = ConfigDict(strict=True)

    id: int = 0
    stargazers_count: int = 0
    forks: int = 0
    name: str = ""
    full_name: str = ""         # "owner/name"

    @field_validator("*", mode="before")
    @classmethod
    def _null_is_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.full_name}"


def format_report(repo: Repository) -> str:
    """Plain-text report served on success."""
    return (
        f"===== {repo.full_name} =====\n"
        f"Repository: {repo.name} (ID: {repo.id})\n"
        f"Star Count: {repo.stargazers_count}\n"
        f"Fork Count: {repo.forks}\n"
        f"URL: {repo.html_url}"
    )


def request_headers(token: str = "") -> dict[str, str]:
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def fetch_json(
    session: aiohttp.ClientSession,
    tracer: trace.Tracer,
    url: str,
    target: type[T],
    *,
    timeout: float = 3.0,
    context: otel_context.Context | None = None,
    headers: dict[str, str] | None = None,
) -> T:
    """GET ``url`` and decode the JSON body into ``target``.

    Two child spans are opened under ``context`` (or the current span):
    ``fetch json`` around the request, tagged with the response status, and
    ``parse json`` around decoding.  Both end on every path.  Errors from the
    request or the decode propagate unchanged; non-2xx statuses are decoded
    like any other response.
    """
    with tracer.start_as_current_span("fetch json", context=context) as span:
        span.add_event("fetching repo info from github")
        resp = await session.get(
            url, headers=headers, timeout=aiohttp.ClientTimeout(total=timeout),
        )
        span.set_attribute(STATUS_CODE_ATTR, resp.status)

    async with resp:
        with tracer.start_as_current_span("parse json", context=context):
            data = await resp.json(content_type=None)
            return target.model_validate(data)
