"""Tracing options for meshtrace."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from meshtrace.errors import ConfigError

BoolLike = bool | str | None

ZIPKIN_URL_ENV = "TRACE_ZIPKIN_URL"
JAEGER_URL_ENV = "TRACE_JAEGER_URL"
LOG_SPANS_ENV = "TRACE_LOG_SPANS"


def _as_bool(value: BoolLike) -> bool | None:
    """Convert common truthy/falsey string values to bools."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return None


@dataclass(frozen=True)
class TracingOptions:
    """
    The set of options supported by the tracing package.

    Zipkin and Jaeger outputs are mutually exclusive; the log sink can be
    combined with either of them.
    """

    zipkin_url: str = ""
    """URL of the Zipkin collector (example: 'http://zipkin:9411/api/v1/spans')."""

    jaeger_url: str = ""
    """URL of the Jaeger HTTP collector (example: 'http://jaeger:4318/v1/traces')."""

    log_trace_spans: bool = False
    """Whether or not to emit trace spans as log records."""

    def validate(self) -> None:
        """Raise ConfigError if the options cannot be used together."""
        # the exporters misbehave with both remote outputs active at once
        if self.zipkin_url and self.jaeger_url:
            raise ConfigError("can't have Jaeger and Zipkin outputs active simultaneously")

    @property
    def tracing_enabled(self) -> bool:
        """Whether the options enable tracing to take place."""
        return bool(self.zipkin_url or self.jaeger_url or self.log_trace_spans)

    def with_env_overrides(self) -> TracingOptions:
        """
        Return a copy of the options with environment overrides applied.

        Supported environment variables:
            TRACE_ZIPKIN_URL
            TRACE_JAEGER_URL
            TRACE_LOG_SPANS
        """
        changes: dict[str, object] = {}

        zipkin_url = os.getenv(ZIPKIN_URL_ENV)
        if zipkin_url:
            changes["zipkin_url"] = zipkin_url

        jaeger_url = os.getenv(JAEGER_URL_ENV)
        if jaeger_url:
            changes["jaeger_url"] = jaeger_url

        log_spans = _as_bool(os.getenv(LOG_SPANS_ENV))
        if log_spans is not None:
            changes["log_trace_spans"] = log_spans

        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> TracingOptions:
        """Build options from the environment alone."""
        return cls().with_env_overrides()
