"""Exceptions raised while configuring tracing."""

from __future__ import annotations


class TracingError(Exception):
    """Base class for all meshtrace errors."""


class ConfigError(TracingError, ValueError):
    """The tracing options are invalid (e.g. both Zipkin and Jaeger are enabled)."""


class BackendConstructionError(TracingError):
    """A span reporter's transport could not be built.

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, backend: str, cause: BaseException) -> None:
        super().__init__(f"could not build {backend} reporter: {cause}")
        self.backend = backend
        self.cause = cause
