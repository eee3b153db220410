"""Logging and tracing setup for the ticketdesk API."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ticketdesk import __version__
from ticketdesk.core.config import Settings

PACKAGE_LOGGER = "ticketdesk"

# Third-party loggers that are noisy below these levels.
_LIBRARY_LEVELS = {
    "asyncpg": "WARNING",
    "passlib": "ERROR",
}

_active_provider: TracerProvider | None = None


def _otlp_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key=value`` exporter headers, ignoring malformed pairs."""

    if not raw:
        return {}
    pairs = (item.split("=", 1) for item in raw.split(",") if "=" in item)
    return {key.strip(): value.strip() for key, value in pairs}


def configure_logging(settings: Settings) -> logging.Logger:
    """Route every logger to stderr at the configured level and return the app logger."""

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    loggers: dict[str, dict[str, object]] = {
        PACKAGE_LOGGER: {"level": level, "propagate": True},
    }
    for name, library_level in _LIBRARY_LEVELS.items():
        loggers[name] = {"level": max(level, logging.getLevelName(library_level)), "propagate": True}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"plain": {"format": settings.log_format}},
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "level": level,
                }
            },
            "loggers": loggers,
            "root": {"handlers": ["stderr"], "level": level},
        }
    )
    return logging.getLogger(settings.app_name)


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP tracer provider when tracing is enabled; at most one per process."""

    global _active_provider

    if not settings.otel_enabled or _active_provider is not None:
        return None

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
            "deployment.environment": settings.environment,
        }
    )
    exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint,
        headers=_otlp_headers(settings.otel_exporter_otlp_headers) or None,
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _active_provider = provider
    logging.getLogger(PACKAGE_LOGGER).info(
        "tracing_enabled service=%s endpoint=%s",
        settings.otel_service_name,
        settings.otel_exporter_otlp_endpoint or "default",
    )
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    """Flush and stop a provider returned by :func:`init_tracer`."""

    global _active_provider

    if provider is None:
        return
    provider.shutdown()
    if provider is _active_provider:
        _active_provider = None
