"""
OpenTelemetry tracing for the gateway.

Tracing is opt-in (ENABLE_TRACING). Until a provider is installed, the
``bedrock.dispatch`` spans opened by the dispatcher go to the no-op tracer.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from bedrock_gateway import __version__
from bedrock_gateway.enums import ServiceEndpoint


if TYPE_CHECKING:
    from fastapi import FastAPI
    from opentelemetry.sdk.trace.export import SpanExporter

    from bedrock_gateway.config import GatewaySettings

logger = logging.getLogger(__name__)

# Routes hit by probes and scrapers; tracing them only adds noise.
UNTRACED_ROUTES = (
    ServiceEndpoint.METRICS.value,
    ServiceEndpoint.HEALTH.value,
    ServiceEndpoint.STATUS.value,
)

_provider_lock = Lock()
_provider: TracerProvider | None = None


def _gateway_resource(settings: GatewaySettings, service_name: str) -> Resource:
    return Resource.create(
        {
            SERVICE_NAME: service_name,
            SERVICE_VERSION: __version__,
            "service.namespace": "bedrock",
            "bedrock.cluster": settings.cluster_name,
            "bedrock.primary_hosts": settings.primary_hosts,
            "bedrock.failover_hosts": settings.failover_hosts,
        }
    )


def _span_exporter(settings: GatewaySettings) -> SpanExporter:
    """OTLP exporter for the configured endpoint; console output when none is usable."""
    if not settings.otel_exporter_endpoint:
        logger.info("No OTLP endpoint configured; writing spans to the console")
        return ConsoleSpanExporter()
    try:
        return OTLPSpanExporter(
            endpoint=settings.otel_exporter_endpoint,
            insecure=settings.otel_exporter_insecure,
            timeout=5,
        )
    except Exception as exc:
        logger.warning(
            "Cannot export spans to %s (%s); writing spans to the console",
            settings.otel_exporter_endpoint,
            exc,
        )
        return ConsoleSpanExporter()


def setup_tracing(settings: GatewaySettings, service_name: str = "bedrock-gateway") -> bool:
    """
    Install the process-wide tracer provider once.

    Returns:
        True if a provider is installed after the call
    """
    global _provider
    if not settings.enable_tracing:
        return _provider is not None

    with _provider_lock:
        if _provider is None:
            provider = TracerProvider(resource=_gateway_resource(settings, service_name))
            provider.add_span_processor(BatchSpanProcessor(_span_exporter(settings)))
            trace.set_tracer_provider(provider)
            _provider = provider
            logger.info(
                "Tracing enabled for cluster %s (exporter endpoint: %s)",
                settings.cluster_name,
                settings.otel_exporter_endpoint or "console",
            )
    return True


def shutdown_tracing() -> None:
    """Flush pending spans and release the provider, if one was installed."""
    global _provider
    with _provider_lock:
        provider, _provider = _provider, None
    if provider is not None:
        provider.shutdown()
        logger.info("Tracing shut down")


def instrument_fastapi_app(app: FastAPI) -> None:
    """Trace every gateway route except the probe and scrape routes."""
    try:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(UNTRACED_ROUTES))
    except Exception as exc:
        logger.warning("Unable to instrument FastAPI app for tracing: %s", exc)
