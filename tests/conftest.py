"""Pytest configuration and fixtures.

Every test gets the process tracer slot and the global propagator restored
afterwards, so tests that install tracers cannot leak into each other.
"""

import pytest
from opentelemetry.propagate import get_global_textmap, set_global_textmap

from meshtrace.tracing import global_tracer


@pytest.fixture(autouse=True)
def isolate_global_tracer():
    """Restore the global tracer slot and textmap after each test."""
    provider = global_tracer.get_tracer_provider()
    textmap = get_global_textmap()
    yield
    global_tracer.set_tracer_provider(provider)
    set_global_textmap(textmap)
