"""B3 trace-context propagation over HTTP headers."""

from __future__ import annotations

import threading
import weakref
from collections.abc import Mapping, MutableMapping

from opentelemetry import context as otel_context
from opentelemetry.propagate import get_global_textmap, set_global_textmap
from opentelemetry.propagators.b3 import B3MultiFormat
from opentelemetry.propagators.textmap import TextMapPropagator
from requests.structures import CaseInsensitiveDict


def new_propagator() -> TextMapPropagator:
    """
    Zipkin-style B3 propagator.

    Injects the ``X-B3-*`` header set and extracts either that set or the
    single ``b3`` header.
    """
    return B3MultiFormat()


_lock = threading.Lock()
# Propagators registered by install_propagator, and the global textmap that
# was in place before the first of them went in.
_installed: weakref.WeakSet[TextMapPropagator] = weakref.WeakSet()
_baseline: TextMapPropagator | None = None


def install_propagator(propagator: TextMapPropagator) -> TextMapPropagator:
    """Register ``propagator`` as the global HTTP header propagator, returning the old one."""
    global _baseline
    with _lock:
        previous = get_global_textmap()
        if previous not in _installed:
            _baseline = previous
        _installed.add(propagator)
        set_global_textmap(propagator)
        return previous


def restore_propagator(installed: TextMapPropagator) -> bool:
    """
    Put back the textmap that preceded meshtrace's propagators.

    Nothing happens if ``installed`` is no longer the global textmap.
    """
    with _lock:
        if _baseline is None or get_global_textmap() is not installed:
            return False
        set_global_textmap(_baseline)
        return True


def inject_http_headers(
    headers: MutableMapping[str, str],
    context: otel_context.Context | None = None,
) -> MutableMapping[str, str]:
    """Write the trace context of ``context`` (default: current) into outgoing headers."""
    get_global_textmap().inject(headers, context=context)
    return headers


def extract_http_headers(headers: Mapping[str, str]) -> otel_context.Context:
    """Read the trace context from incoming headers, ignoring header case."""
    return get_global_textmap().extract(CaseInsensitiveDict(headers))
