"""
Observability initialization

Provides centralized initialization for tracing, metrics and logging.
"""

import logging
import logging.config

from opentelemetry import trace

from .config import TelemetryConfig
from .metrics import initialize_metrics, reset_metrics
from .tracer import initialize_tracing

logger = logging.getLogger(__name__)

_initialized = False


def initialize_observability(config: TelemetryConfig) -> None:
    """
    Initialize all observability features

    Safe to call more than once; later calls are ignored.

    Args:
        config: Telemetry configuration
    """
    global _initialized

    if _initialized:
        logger.debug("Observability already initialized, skipping")
        return

    if not config.enabled:
        logger.info("Observability is disabled")
        return

    if config.logging.enabled:
        configure_logging(config)

    logger.info(f"Initializing observability for environment: {config.environment}")

    if config.tracing.enabled:
        try:
            initialize_tracing(config)
        except Exception as e:
            logger.error(f"Failed to initialize tracing: {e}")

    if config.metrics.enabled:
        try:
            initialize_metrics(config)
        except ValueError as e:
            logger.error(f"Failed to initialize metrics: {e}")

    _initialized = True
    logger.info("Observability initialization complete")


def configure_logging(config: TelemetryConfig) -> None:
    """Configure structured logging with trace correlation"""
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s %(pathname)s %(lineno)d",
            },
            "text": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": config.logging.level,
                "formatter": config.logging.format,
                "stream": "ext://sys.stderr",
            }
        },
        "root": {"level": config.logging.level, "handlers": ["console"]},
        "loggers": {"autopsy": {"level": config.logging.level, "propagate": True}},
    }

    logging.config.dictConfig(log_config)

    if config.tracing.enabled and config.logging.correlate_traces:
        for handler in logging.getLogger().handlers:
            handler.addFilter(TraceContextFilter())


class TraceContextFilter(logging.Filter):
    """Stamps trace/span ids of the current span onto log records"""

    def filter(self, record: logging.LogRecord) -> bool:
        span = trace.get_current_span()
        if span.is_recording():
            span_context = span.get_span_context()
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
        else:
            record.trace_id = ""
            record.span_id = ""
        return True


def is_observability_initialized() -> bool:
    return _initialized


def shutdown_observability() -> None:
    """Shutdown observability systems gracefully"""
    global _initialized

    if not _initialized:
        return

    logger.info("Shutting down observability systems")

    provider = trace.get_tracer_provider()
    shutdown = getattr(provider, "shutdown", None)
    if shutdown is not None:
        shutdown()
        logger.debug("Tracing provider shutdown complete")

    reset_metrics()
    _initialized = False
    logger.info("Observability shutdown complete")
