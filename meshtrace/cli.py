"""Typer options exposing the tracing settings on a command-line app."""

from typing import Annotated

import typer

from meshtrace.tracing.options import (
    JAEGER_URL_ENV,
    LOG_SPANS_ENV,
    ZIPKIN_URL_ENV,
    TracingOptions,
)

CONTEXT_KEY = "meshtrace.tracing_options"

ZipkinURLOption = Annotated[
    str,
    typer.Option(
        "--trace_zipkin_url",
        envvar=ZIPKIN_URL_ENV,
        help="URL of Zipkin collector (example: 'http://zipkin:9411/api/v1/spans').",
    ),
]

JaegerURLOption = Annotated[
    str,
    typer.Option(
        "--trace_jaeger_url",
        envvar=JAEGER_URL_ENV,
        help="URL of Jaeger HTTP collector (example: 'http://jaeger:4318/v1/traces').",
    ),
]

LogSpansOption = Annotated[
    bool,
    typer.Option(
        "--trace_log_spans",
        envvar=LOG_SPANS_ENV,
        help="Whether or not to log trace spans.",
    ),
]


def attach_typer_options(app: typer.Typer) -> None:
    """
    Attach the tracing options to the given Typer app.

    The options are registered on the app callback, so they are accepted
    before any subcommand and apply to all of them. Any callback already
    registered on the app is replaced. Subcommands read the parsed values
    with :func:`options_from_context`.
    """

    @app.callback()
    def tracing_options(
        ctx: typer.Context,
        trace_zipkin_url: ZipkinURLOption = "",
        trace_jaeger_url: JaegerURLOption = "",
        trace_log_spans: LogSpansOption = False,
    ) -> None:
        ctx.meta[CONTEXT_KEY] = TracingOptions(
            zipkin_url=trace_zipkin_url,
            jaeger_url=trace_jaeger_url,
            log_trace_spans=trace_log_spans,
        )


def options_from_context(ctx: typer.Context) -> TracingOptions:
    """Return the tracing options parsed for this invocation, or the defaults."""
    return ctx.meta.get(CONTEXT_KEY) or TracingOptions()
