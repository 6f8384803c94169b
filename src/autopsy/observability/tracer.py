"""
OpenTelemetry spans for autopsy

Spans cover alert ingestion, triage reviews, availability computation and
status page reads. Until initialize_tracing() runs every span comes from the
no-op tracer.
"""

import functools
import inspect
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Optional, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from ..version import __version__
from .config import TelemetryConfig

logger = logging.getLogger(__name__)

_tracer: Optional[trace.Tracer] = None

P = ParamSpec("P")
T = TypeVar("T")


def initialize_tracing(config: TelemetryConfig) -> None:
    """Install the SDK tracer provider, exporting over OTLP when configured"""
    global _tracer

    if not config.enabled or not config.tracing.enabled:
        logger.info("Tracing is disabled")
        return

    resource = Resource.create(
        {
            "service.name": config.tracing.service_name,
            "service.version": __version__,
            "deployment.environment": config.environment,
        }
    )
    provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(config.tracing.sample_rate)),
    )

    if config.should_export_traces():
        exporter = OTLPSpanExporter(
            endpoint=config.tracing.otlp_endpoint,
            insecure=config.tracing.otlp_insecure,
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info(f"Exporting autopsy spans to {config.tracing.otlp_endpoint}")

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer("autopsy", __version__)


def get_tracer() -> trace.Tracer:
    return _tracer or trace.NoOpTracer()


@contextmanager
def trace_operation(name: str, attributes: Optional[dict[str, Any]] = None):
    """
    Run a block inside a span

    Failures are tagged with ``error.type`` and re-raised; the SDK records
    the exception and the error status.
    """
    with get_tracer().start_as_current_span(name, attributes=attributes or {}) as span:
        try:
            yield span
        except Exception as e:
            span.set_attribute("error.type", type(e).__name__)
            raise


def _recorded_arguments(
    signature: inspect.Signature,
    names: tuple[str, ...],
    args: tuple,
    kwargs: dict,
) -> dict[str, Any]:
    """Span attributes ``autopsy.<name>`` for the named scalar arguments"""
    if not names:
        return {}
    bound = signature.bind_partial(*args, **kwargs).arguments
    return {
        f"autopsy.{name}": bound[name]
        for name in names
        if isinstance(bound.get(name), (str, int, float, bool))
    }


def trace_async(span_name: str, record: tuple[str, ...] = ()):
    """
    Trace a coroutine function

    Args:
        span_name: Span name, e.g. ``orchestrator.handle_create_alert``
        record: Argument names whose scalar values become span attributes
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attributes = _recorded_arguments(signature, record, args, kwargs)
            with trace_operation(span_name, attributes):
                return await func(*args, **kwargs)

        return wrapper

    return decorator


def trace_sync(span_name: str, record: tuple[str, ...] = ()):
    """Trace a plain function; see trace_async for the arguments"""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attributes = _recorded_arguments(signature, record, args, kwargs)
            with trace_operation(span_name, attributes):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def add_event(name: str, attributes: Optional[dict[str, Any]] = None) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes or {})


def set_attribute(key: str, value: Any) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)
