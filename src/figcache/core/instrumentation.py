"""Optional OpenTelemetry tracing for sync and ingestion runs.

Spans go to an OTLP/HTTP collector, Arize Phoenix by default. With tracing
off, or when the exporter cannot be set up, the helpers below hand out no
span and cost nothing.

Usage:
    configure_phoenix_tracing(config.tracing)

    with traced_request("sync", attributes={"figcache.reason": reason}) as span:
        result = await pipeline.execute(request)
        record_counts(span, nodes_indexed=result.nodes_indexed)
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator

from loguru import logger

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.trace import Span, Tracer

SPAN_PREFIX = "figcache"


@dataclass
class TracingConfig:
    """Where and how spans are exported.

    Attributes:
        enabled: Turn tracing on (off by default).
        phoenix_endpoint: OTLP HTTP endpoint receiving spans.
        service_name: ``service.name`` resource attribute.
        service_version: ``service.version`` resource attribute.
        sample_rate: Fraction of traces kept, 0.0-1.0.
        batch_export: Export in batches instead of span by span.
    """

    enabled: bool = False
    phoenix_endpoint: str = "http://localhost:6006/v1/traces"
    service_name: str = "figcache"
    service_version: str = "0.1.0"
    sample_rate: float = 1.0
    batch_export: bool = True


@dataclass
class _TracerState:
    tracer: "Tracer | None" = None
    setup_failure_reported: bool = False


_state = _TracerState()


def get_tracer() -> "Tracer | None":
    return _state.tracer


def _build_provider(config: TracingConfig) -> "TracerProvider":
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor
    from opentelemetry.sdk.trace.sampling import ALWAYS_ON, TraceIdRatioBased

    sampler = ALWAYS_ON if config.sample_rate >= 1.0 else TraceIdRatioBased(config.sample_rate)
    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": config.service_name, "service.version": config.service_version}
        ),
        sampler=sampler,
    )
    processor_cls = BatchSpanProcessor if config.batch_export else SimpleSpanProcessor
    provider.add_span_processor(processor_cls(OTLPSpanExporter(endpoint=config.phoenix_endpoint)))
    return provider


def configure_phoenix_tracing(config: TracingConfig) -> "Tracer | None":
    """Install a global tracer provider exporting to Phoenix.

    Setup failures are reported once and leave tracing off.

    Returns:
        The tracer, or None when tracing is disabled or could not start.
    """
    if not config.enabled:
        logger.debug("Tracing is disabled")
        _state.tracer = None
        return None

    try:
        from opentelemetry import trace

        trace.set_tracer_provider(_build_provider(config))
        _state.tracer = trace.get_tracer(config.service_name, config.service_version)
    except Exception as e:
        if not _state.setup_failure_reported:
            logger.warning(f"Tracing unavailable, continuing without spans: {e}")
            _state.setup_failure_reported = True
        _state.tracer = None
        return None

    _state.setup_failure_reported = False
    logger.info(f"Exporting spans to {config.phoenix_endpoint} (sample_rate={config.sample_rate})")
    return _state.tracer


def shutdown_tracing() -> None:
    """Flush pending spans and drop the tracer."""
    if _state.tracer is None:
        return
    _state.tracer = None

    from opentelemetry import trace

    provider = trace.get_tracer_provider()
    shutdown = getattr(provider, "shutdown", None)
    if shutdown is None:
        return
    try:
        shutdown()
    except Exception as e:
        logger.warning(f"Tracer provider shutdown failed: {e}")
    else:
        logger.debug("Tracer provider flushed")


def _set_attributes(span: "Span", attributes: dict[str, Any]) -> None:
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, value)


def record_counts(span: "Span | None", **counts: int) -> None:
    """Attach ``figcache.<name>`` integer attributes to a span, if any."""
    if span is not None:
        _set_attributes(span, {f"{SPAN_PREFIX}.{name}": value for name, value in counts.items()})


@contextmanager
def traced_request(
    operation: str,
    *,
    tracer: "Tracer | None" = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator["Span | None"]:
    """Wrap a sync, ingestion phase or query in a ``figcache.<operation>`` span.

    Args:
        operation: Short operation name, e.g. ``sync`` or ``ingest.nodes``.
        tracer: Tracer to use instead of the configured one.
        attributes: Extra span attributes; None values are left out.

    Yields:
        The active span, or None when tracing is off.
    """
    active = tracer or _state.tracer
    if active is None:
        yield None
        return

    from opentelemetry.trace import Status, StatusCode

    with active.start_as_current_span(f"{SPAN_PREFIX}.{operation}") as span:
        _set_attributes(span, attributes or {})
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        span.set_status(Status(StatusCode.OK))
