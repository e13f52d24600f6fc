"""Span exporters used as reporters by the meshtrace configurator."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from urllib.parse import urlparse

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.zipkin.encoder import Protocol
from opentelemetry.exporter.zipkin.json import ZipkinExporter
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from opentelemetry.trace import format_span_id, format_trace_id
from requests import PreparedRequest
from requests.exceptions import InvalidURL

logger = logging.getLogger(__name__)

# Builds a remote exporter from a collector URL and a per-request timeout.
ExporterFactory = Callable[[str, float], SpanExporter]


class SpanLogger(SpanExporter):
    """Reporter that writes every finished span to the log.

    Also serves as the logging sink for the remote reporters' errors.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logging.getLogger("meshtrace.spans")

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        for span in spans:
            extra = {"operation": span.name}
            if span.context is not None:
                extra["trace_id"] = format_trace_id(span.context.trace_id)
                extra["span_id"] = format_span_id(span.context.span_id)
            self._log.info(
                "Reporting span operation: %s span: %s",
                span.name,
                span.to_json(indent=None),
                extra=extra,
            )
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        return

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True

    def error(self, msg: str) -> None:
        self._log.error(msg)


span_logger = SpanLogger()


class CompositeSpanExporter(SpanExporter):
    """Fan every call out to a fixed, ordered set of exporters.

    No locking is done here; each member handles its own synchronization.
    """

    def __init__(self, exporters: Sequence[SpanExporter]) -> None:
        self._exporters = tuple(exporters)

    @property
    def exporters(self) -> tuple[SpanExporter, ...]:
        return self._exporters

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        result = SpanExportResult.SUCCESS
        for exporter in self._exporters:
            if exporter.export(spans) is not SpanExportResult.SUCCESS:
                result = SpanExportResult.FAILURE
        return result

    def shutdown(self) -> None:
        for exporter in self._exporters:
            exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        flushed = True
        for exporter in self._exporters:
            flushed = exporter.force_flush(timeout_millis) and flushed
        return flushed


class ResilientSpanExporter(SpanExporter):
    """
    Wrap a remote exporter so transport failures never reach the host application.

    Errors are reported through the span logger at error level and the call
    returns a failure value instead of raising.
    """

    def __init__(self, exporter: SpanExporter, backend: str, sink: SpanLogger | None = None) -> None:
        self._exporter = exporter
        self._backend = backend
        self._sink = sink or span_logger

    @property
    def wrapped(self) -> SpanExporter:
        return self._exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        try:
            return self._exporter.export(spans)
        except Exception as exc:
            self._sink.error(f"{self._backend} span export failed: {type(exc).__name__}: {exc}")
            return SpanExportResult.FAILURE

    def shutdown(self) -> None:
        try:
            self._exporter.shutdown()
        except Exception as exc:
            self._sink.error(f"{self._backend} exporter shutdown failed: {type(exc).__name__}: {exc}")

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        try:
            return self._exporter.force_flush(timeout_millis)
        except Exception as exc:
            self._sink.error(f"{self._backend} exporter flush failed: {type(exc).__name__}: {exc}")
            return False


def check_collector_url(url: str) -> None:
    """Raise a requests URL error unless ``url`` is an absolute http(s) URL."""
    PreparedRequest().prepare_url(url, None)
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidURL(f"Invalid collector URL {url!r}: expected an http or https URL")


def zipkin_protocol(url: str) -> Protocol:
    """Pick the Zipkin JSON encoding matching the collector API version in the URL."""
    if "/api/v1/" in urlparse(url).path:
        return Protocol.V1
    return Protocol.V2


def new_zipkin_exporter(url: str, timeout: float) -> SpanExporter:
    """Build the Zipkin HTTP exporter, validating the URL up front."""
    check_collector_url(url)
    return ZipkinExporter(version=zipkin_protocol(url), endpoint=url, timeout=timeout)


def new_jaeger_exporter(url: str, timeout: float) -> SpanExporter:
    """Build the exporter for a Jaeger collector's OTLP/HTTP endpoint.

    The URL is not checked here; a bad URL only shows up as export errors.
    """
    return OTLPSpanExporter(endpoint=url, timeout=timeout)
