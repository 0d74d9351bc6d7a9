"""
OpenTelemetry tracing for the booking service.

- FastAPI and SQLAlchemy auto-instrumentation
- `traceparent` propagation on outgoing payment gateway calls
- OTLP export when an endpoint is configured, console export for local debugging
"""

from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.propagate import inject
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from src.platform.config.core_setting import settings


class TracingConfig:
    """
    Usage:
        tracing = TracingConfig.from_settings()
        tracing.setup()
        tracing.instrument_sqlalchemy(engine=get_engine())
    """

    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: str | None = None,
        enable_console: bool = False,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint
        self.enable_console = enable_console
        self._provider: TracerProvider | None = None

    @classmethod
    def from_settings(cls) -> 'TracingConfig':
        return cls(
            service_name=settings.SERVICE_NAME,
            otlp_endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT or None,
            enable_console=settings.OTEL_CONSOLE_EXPORT,
        )

    def setup(self) -> None:
        """Install the global tracer provider. Call once per process."""
        self._provider = TracerProvider(
            resource=Resource(attributes={SERVICE_NAME: self.service_name}),
            sampler=ALWAYS_ON,
        )

        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: Any) -> None:
        # Probes and scrapes would drown the booking spans
        FastAPIInstrumentor.instrument_app(app, excluded_urls='health,metrics')

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        SQLAlchemyInstrumentor().instrument(engine=getattr(engine, 'sync_engine', engine))

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()
            self._provider = None


def inject_trace_context(*, headers: dict[str, str] | None = None) -> dict[str, str]:
    """Add `traceparent` for the current span to outgoing gateway request headers."""
    headers = dict(headers or {})
    inject(headers)
    return headers
