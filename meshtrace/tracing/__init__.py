"""Tracing package for meshtrace.

This package builds the OpenTelemetry tracer, its span reporters and the B3
propagation setup, and installs the tracer process-wide.
"""

from .exporters import CompositeSpanExporter, ResilientSpanExporter, SpanLogger, span_logger
from .global_tracer import get_tracer, get_tracer_provider
from .options import TracingOptions
from .propagation import extract_http_headers, inject_http_headers
from .provider import Configurator, TracerHandle, configure

__all__ = [
    "CompositeSpanExporter",
    "Configurator",
    "ResilientSpanExporter",
    "SpanLogger",
    "TracerHandle",
    "TracingOptions",
    "configure",
    "extract_http_headers",
    "get_tracer",
    "get_tracer_provider",
    "inject_http_headers",
    "span_logger",
]
