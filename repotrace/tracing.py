"""Tracing — builds the OpenTelemetry TracerProvider for the service.

One provider per process: `init_tracer` is called once at startup and the
resulting `Telemetry` is handed to the web app, which passes its tracer to
every request handler.  Spans are batched and exported in the background by
a `BatchSpanProcessor`; the SDK runs each export with instrumentation
suppressed, so the exporter's own gRPC/HTTP traffic is never traced.

Exporters:
  cloud_trace  Google Cloud Trace (credentials from the environment)
  otlp         OTLP over gRPC to `tracing.otlp_endpoint`
  console      pretty-printed spans on stdout, for local runs
"""

from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from repotrace.config import TracingConfig

log = logging.getLogger(__name__)


class TracingSetupError(RuntimeError):
    """The span exporter or provider could not be built."""


class Telemetry:
    """The process-wide provider plus the tracer request handlers use."""

    def __init__(self, provider: TracerProvider, tracer: trace.Tracer) -> None:
        self.provider = provider
        self.tracer = tracer

    def flush(self, timeout_millis: int = 30_000) -> bool:
        """Force-flush pending spans.  Failure is logged, never raised."""
        if not self.provider.force_flush(timeout_millis):
            log.warning("failed to flush tracer")
            return False
        return True

    def shutdown(self) -> None:
        self.flush()
        self.provider.shutdown()
        log.info("tracer shut down")


def build_exporter(cfg: TracingConfig) -> SpanExporter:
    """Construct the span exporter named by ``cfg.exporter``."""
    kind = cfg.exporter.lower()
    try:
        if kind == "cloud_trace":
            return CloudTraceSpanExporter(project_id=cfg.project_id or None)
        if kind == "otlp":
            return OTLPSpanExporter(endpoint=cfg.otlp_endpoint, insecure=True)
        if kind == "console":
            return ConsoleSpanExporter(service_name=cfg.service_name)
    except Exception as e:
        raise TracingSetupError(f"{kind} exporter: {e}") from e
    raise TracingSetupError(f"unknown exporter {cfg.exporter!r}")


def build_resource(cfg: TracingConfig) -> Resource:
    return Resource.create({
        "service.name": cfg.service_name,
        "service.version": cfg.service_version,
        "instance.id": cfg.instance_id,
    })


def build_provider(cfg: TracingConfig, exporter: SpanExporter) -> TracerProvider:
    """Always-sample provider that batches spans by time or by count."""
    provider = TracerProvider(sampler=ALWAYS_ON, resource=build_resource(cfg))
    provider.add_span_processor(BatchSpanProcessor(
        exporter,
        schedule_delay_millis=cfg.batch_timeout_seconds * 1000,
        max_export_batch_size=cfg.max_export_batch_size,
    ))
    return provider


def init_tracer(cfg: TracingConfig, *, install: bool = True) -> Telemetry:
    """Build exporter + provider and return the `Telemetry` for the app.

    With ``install`` the provider also becomes the global default, so any
    library calling ``trace.get_tracer`` routes through it.

    Raises:
        TracingSetupError: the exporter could not be constructed.
    """
    exporter = build_exporter(cfg)
    provider = build_provider(cfg, exporter)
    if install:
        trace.set_tracer_provider(provider)
    log.info(
        "tracer initialized: exporter=%s service=%s/%s",
        cfg.exporter, cfg.service_name, cfg.service_version,
    )
    return Telemetry(provider, provider.get_tracer(cfg.tracer_name))
