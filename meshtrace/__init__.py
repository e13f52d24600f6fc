"""
meshtrace - process-wide tracer setup for Zipkin, Jaeger and log span reporting.

Example:
    ```python
    from meshtrace import TracingOptions, configure

    options = TracingOptions(zipkin_url="http://zipkin:9411/api/v2/spans")
    options.validate()
    if options.tracing_enabled:
        with configure("my-app", options):
            run_app()
    ```
"""
from typing import TYPE_CHECKING

from ._version import __version__
from .errors import BackendConstructionError, ConfigError, TracingError

# For static analysis / type checkers, expose symbols; at runtime we'll lazily import them.
if TYPE_CHECKING:
    from .tracing.options import TracingOptions  # pragma: no cover
    from .tracing.provider import TracerHandle, configure  # pragma: no cover

# Lazily import to avoid importing the OpenTelemetry exporters
# during build-time metadata inspection.
__all__ = [
    "BackendConstructionError",
    "ConfigError",
    "TracerHandle",
    "TracingError",
    "TracingOptions",
    "__version__",
    "configure",
]


def __getattr__(name: str):
    if name == "TracingOptions":
        from .tracing.options import TracingOptions  # imported only when accessed
        return TracingOptions
    if name == "TracerHandle":
        from .tracing.provider import TracerHandle  # imported only when accessed
        return TracerHandle
    if name == "configure":
        from .tracing.provider import configure  # imported only when accessed
        return configure
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
