"""Configuration — loads settings from config.toml + secrets from .env."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

import tomllib
from dotenv import load_dotenv

CONFIG_PATH = Path("config.toml")


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    default_port: int = 8080       # used when PORT is unset or empty
    route: str = "/run"
    log_level: str = "INFO"


class UpstreamConfig(BaseModel):
    url: str = "https://api.github.com/repos/golang/go"
    timeout_seconds: float = 3.0          # per-fetch bound
    client_timeout_seconds: float = 5.0   # shared session default
    token: str = ""


class TracingConfig(BaseModel):
    exporter: str = "cloud_trace"  # "cloud_trace", "otlp" or "console"
    project_id: str = ""
    otlp_endpoint: str = "localhost:4317"
    service_name: str = "sample-service"
    service_version: str = "1.0.0"
    instance_id: str = "foo12345"
    tracer_name: str = "company.com/trace"
    batch_timeout_seconds: float = 1.0
    max_export_batch_size: int = 16


class Config(BaseModel):
    server: ServerConfig = ServerConfig()
    upstream: UpstreamConfig = UpstreamConfig()
    tracing: TracingConfig = TracingConfig()


# Map of ENV_VAR -> (config section, field)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "GITHUB_TOKEN": ("upstream", "token"),
    "TRACE_EXPORTER": ("tracing", "exporter"),
    "GOOGLE_CLOUD_PROJECT": ("tracing", "project_id"),
    "OTEL_EXPORTER_OTLP_ENDPOINT": ("tracing", "otlp_endpoint"),
}


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load .env for secrets, then config.toml for everything else.

    Env vars always win so tokens never need to live in the TOML file.
    """
    load_dotenv()

    if path.exists():
        data = tomllib.loads(path.read_text())
    else:
        data = {}

    for env_var, (section, field) in _ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            data.setdefault(section, {})[field] = value

    return Config(**data)
