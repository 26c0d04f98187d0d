"""Logging, tracing and metrics wiring for the back office.

Only the root app in main.py calls setup_observability; the mounted service
apps log through the same structlog configuration and report through the
root's /metrics endpoint.
"""
import os
import logging
import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from shared.config.settings import STORE_TIMEZONE

logger = structlog.get_logger(__name__)

UNTRACED_HANDLERS = ["/metrics", "/health"]


def trace_context(logger, log_method, event_dict):
    """Tag the line with the active span so logs and traces can be joined."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict.setdefault("trace_id", trace.format_trace_id(ctx.trace_id))
        event_dict.setdefault("span_id", trace.format_span_id(ctx.span_id))
    return event_dict


def static_fields(**fields):
    def processor(logger, log_method, event_dict):
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict
    return processor


def configure_logging(level: str | None = None, service: str | None = None):
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        trace_context,
    ]
    if service:
        processors.append(static_fields(service=service, store_tz=STORE_TIMEZONE))
    processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str) -> bool:
    endpoint = os.getenv("OTLP_ENDPOINT")
    if not endpoint:
        logger.info("tracing.disabled", hint="set OTLP_ENDPOINT to export spans")
        return False

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(UNTRACED_HANDLERS))
    logger.info("tracing.enabled", endpoint=endpoint, service=service_name)
    return True


def configure_metrics(app: FastAPI):
    # Archive and report counters live in the default registry and ride along
    Instrumentator(excluded_handlers=UNTRACED_HANDLERS).instrument(app).expose(app, include_in_schema=False)


def setup_observability(app: FastAPI, service_name: str):
    configure_logging(service=service_name)
    configure_tracing(app, service_name)
    configure_metrics(app)
