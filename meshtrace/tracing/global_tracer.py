"""The process-wide tracer slot.

Every tracer built by :func:`meshtrace.tracing.configure` is installed here.
Code that starts spans reads the slot, either through :func:`get_tracer` or
through OpenTelemetry's own global once :func:`install_otel_bridge` has run.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace

logger = logging.getLogger(__name__)


class GlobalTracerSlot:
    """Thread-safe holder for the active tracer provider."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._provider: trace.TracerProvider = trace.NoOpTracerProvider()

    def get(self) -> trace.TracerProvider:
        with self._lock:
            return self._provider

    def set(self, provider: trace.TracerProvider) -> trace.TracerProvider:
        """Install ``provider`` and return the one it replaced."""
        with self._lock:
            previous, self._provider = self._provider, provider
            return previous

    def compare_and_clear(self, expected: trace.TracerProvider) -> bool:
        """Reset the slot to a no-op provider if ``expected`` is still installed."""
        with self._lock:
            if self._provider is not expected:
                return False
            self._provider = trace.NoOpTracerProvider()
            return True

    def is_noop(self) -> bool:
        return isinstance(self.get(), trace.NoOpTracerProvider)


_SLOT = GlobalTracerSlot()


def get_tracer_provider() -> trace.TracerProvider:
    """Return the tracer provider currently installed in the process slot."""
    return _SLOT.get()


def set_tracer_provider(provider: trace.TracerProvider) -> trace.TracerProvider:
    """Replace the process-wide tracer provider. The last writer wins."""
    return _SLOT.set(provider)


def clear_tracer_provider_if(expected: trace.TracerProvider) -> bool:
    return _SLOT.compare_and_clear(expected)


class _SlotTracer(trace.Tracer):
    """Tracer that resolves the slot's provider each time a span starts.

    The underlying tracer is cached until the slot's provider changes.
    """

    def __init__(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._args = args
        self._kwargs = kwargs
        self._cached: tuple[trace.TracerProvider, trace.Tracer] | None = None

    def _current(self) -> trace.Tracer:
        provider = _SLOT.get()
        cached = self._cached
        if cached is not None and cached[0] is provider:
            return cached[1]
        tracer = provider.get_tracer(*self._args, **self._kwargs)
        self._cached = (provider, tracer)
        return tracer

    def start_span(self, *args: Any, **kwargs: Any) -> trace.Span:  # type: ignore[override]
        return self._current().start_span(*args, **kwargs)

    @contextmanager  # type: ignore[override]
    def start_as_current_span(self, *args: Any, **kwargs: Any):
        with self._current().start_as_current_span(*args, **kwargs) as span:
            yield span


class SlotTracerProvider(trace.TracerProvider):
    """OpenTelemetry tracer provider that follows the process slot."""

    def get_tracer(self, *args: Any, **kwargs: Any) -> trace.Tracer:  # type: ignore[override]
        return _SlotTracer(args, kwargs)


_BRIDGE = SlotTracerProvider()


def get_tracer(name: str, version: str | None = None) -> trace.Tracer:
    """
    Get a tracer bound to the process slot.

    The returned tracer always uses the provider that is active when a span
    starts, so it may be created before tracing is configured.

    Example:
        >>> from meshtrace.tracing import get_tracer
        >>> tracer = get_tracer(__name__)
        >>> with tracer.start_as_current_span("my-operation"):
        ...     pass
    """
    return _BRIDGE.get_tracer(name, version)


def install_otel_bridge() -> bool:
    """
    Route OpenTelemetry's global tracer provider through the process slot.

    OpenTelemetry only allows its global provider to be set once, so the
    bridge is installed only if nothing else has claimed it yet.
    """
    current = trace.get_tracer_provider()
    if current is _BRIDGE:
        return True
    if not isinstance(current, trace.ProxyTracerProvider):
        logger.debug("OpenTelemetry global tracer provider already set to %r; not bridging", current)
        return False
    trace.set_tracer_provider(_BRIDGE)
    return True
