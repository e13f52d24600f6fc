"""Tracer configuration for meshtrace.

Typical use at process startup::

    options = TracingOptions.from_env()
    options.validate()
    if options.tracing_enabled:
        handle = configure("myapp", options)
        atexit.register(handle.close)
"""

from __future__ import annotations

import logging
import threading

from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from meshtrace.config import HTTP_TIMEOUT
from meshtrace.config import config as meshtrace_config
from meshtrace.errors import BackendConstructionError

from . import global_tracer, propagation
from .exporters import (
    CompositeSpanExporter,
    ExporterFactory,
    ResilientSpanExporter,
    SpanLogger,
    new_jaeger_exporter,
    new_zipkin_exporter,
    span_logger,
)
from .options import TracingOptions

logger = logging.getLogger(__name__)


class TracerHandle:
    """
    Release handle for a tracer installed by :meth:`Configurator.configure`.

    Hold on to it for as long as tracing is needed and call :meth:`close` at
    shutdown. A handle without a provider (nothing was enabled) closes as a
    no-op.
    """

    def __init__(
        self,
        provider: TracerProvider | None = None,
        propagator: TextMapPropagator | None = None,
    ) -> None:
        self._provider = provider
        self._propagator = propagator
        self._lock = threading.Lock()
        self._released = False

    @property
    def tracer_provider(self) -> TracerProvider | None:
        return self._provider

    @property
    def installed(self) -> bool:
        """Whether this handle's tracer is still the process-wide one."""
        return self._provider is not None and global_tracer.get_tracer_provider() is self._provider

    def close(self) -> None:
        """
        Detach the tracer from the process slot if it is still ours, then flush and release it.

        The ownership check is repeated on every call, so a later tracer
        installed by another caller is never cleared. Errors while releasing
        the exporters are logged, not raised.
        """
        if self._provider is None:
            return

        if global_tracer.clear_tracer_provider_if(self._provider):
            logger.debug("Cleared global tracer provider")
            if self._propagator is not None:
                propagation.restore_propagator(self._propagator)

        with self._lock:
            if self._released:
                return
            self._released = True

        try:
            self._provider.shutdown()
        except Exception as exc:
            logger.error("Failed to shut down tracer provider: %s", exc)

    def __enter__(self) -> TracerHandle:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class Configurator:
    """Builds span reporters from :class:`TracingOptions` and installs the resulting tracer."""

    def __init__(
        self,
        zipkin_factory: ExporterFactory = new_zipkin_exporter,
        jaeger_factory: ExporterFactory = new_jaeger_exporter,
        http_timeout: float = HTTP_TIMEOUT,
        sink: SpanLogger | None = None,
    ) -> None:
        self._zipkin_factory = zipkin_factory
        self._jaeger_factory = jaeger_factory
        self._http_timeout = http_timeout
        self._sink = sink or span_logger

    def configure(self, service_name: str, options: TracingOptions) -> TracerHandle:
        """
        Build a tracer for ``service_name`` and install it process-wide.

        Args:
            service_name: Name reported for every span of this process.
            options: Which reporters to enable. Validated again here.

        Returns:
            A TracerHandle; close it at shutdown.

        Raises:
            ConfigError: Zipkin and Jaeger were both enabled.
            BackendConstructionError: A remote exporter could not be built.
                Nothing is installed in that case.
        """
        options.validate()

        exporters = self._build_exporters(options)
        if not exporters:
            # leave the no-op tracer in place since there's no place for spans to go
            return TracerHandle()

        if len(exporters) == 1:
            exporter = exporters[0]
        else:
            exporter = CompositeSpanExporter(exporters)

        provider = self._create_tracer_provider(service_name, exporter)

        propagator = propagation.new_propagator()
        propagation.install_propagator(propagator)

        # NOTE: global side effect!
        global_tracer.set_tracer_provider(provider)
        global_tracer.install_otel_bridge()

        logger.info(
            "Tracing configured for service %s (zipkin=%s, jaeger=%s, log_spans=%s)",
            service_name,
            options.zipkin_url or "-",
            options.jaeger_url or "-",
            options.log_trace_spans,
        )
        return TracerHandle(provider, propagator)

    def _build_exporters(self, options: TracingOptions) -> list[SpanExporter]:
        # Order is fixed (zipkin, jaeger, log) so composition is deterministic.
        exporters: list[SpanExporter] = []
        remotes = (
            ("zipkin", options.zipkin_url, self._zipkin_factory),
            ("jaeger", options.jaeger_url, self._jaeger_factory),
        )
        for backend, url, factory in remotes:
            if not url:
                continue
            try:
                remote = factory(url, self._http_timeout)
            except Exception as exc:
                for built in exporters:
                    built.shutdown()
                raise BackendConstructionError(backend, exc) from exc
            exporters.append(ResilientSpanExporter(remote, backend, self._sink))

        if options.log_trace_spans:
            exporters.append(self._sink)

        return exporters

    def _create_tracer_provider(self, service_name: str, exporter: SpanExporter) -> TracerProvider:
        resource = Resource.create(
            {
                SERVICE_NAME: service_name,
                "meshtrace.sdk.name": meshtrace_config.get("sdk_name", "meshtrace"),
                "meshtrace.sdk.version": meshtrace_config.get("sdk_version", "unknown"),
            }
        )
        provider = TracerProvider(sampler=ALWAYS_ON, resource=resource, shutdown_on_exit=False)

        # The log sink is synchronous; remote exporters are batched.
        processor_cls = SimpleSpanProcessor if isinstance(exporter, SpanLogger) else BatchSpanProcessor
        provider.add_span_processor(processor_cls(exporter))
        return provider


_default_configurator = Configurator()


def configure(service_name: str, options: TracingOptions) -> TracerHandle:
    """
    Initialize the tracing subsystem for this process.

    You typically call this once at process startup. Once it returns, the
    tracing system is ready to accept data.
    """
    return _default_configurator.configure(service_name, options)
