"""
Example: Wiring meshtrace into a Typer command-line app.

This example demonstrates:
- Attaching the --trace_* options to every subcommand
- Validating the options and configuring tracing at startup
- Starting spans through the process-wide tracer
- Propagating the trace context to an outgoing HTTP request with B3 headers

Run with:
    python examples/cli_tracing_example.py --trace_log_spans serve
    python examples/cli_tracing_example.py --trace_zipkin_url http://localhost:9411/api/v2/spans serve
"""

from __future__ import annotations

import logging

import typer

from meshtrace import ConfigError, configure
from meshtrace.cli import attach_typer_options, options_from_context
from meshtrace.tracing import get_tracer, inject_http_headers

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Demo service with tracing")
attach_typer_options(app)

tracer = get_tracer(__name__)


@app.command()
def serve(ctx: typer.Context) -> None:
    """Handle a fake request and print the headers a downstream call would carry."""
    options = options_from_context(ctx).with_env_overrides()
    try:
        options.validate()
    except ConfigError as exc:
        logger.error("Invalid options for tracing: %s", exc)
        raise typer.Exit(code=1) from exc

    if not options.tracing_enabled:
        logger.info("Tracing disabled")

    handle = configure("cli-tracing-example", options) if options.tracing_enabled else None
    try:
        with tracer.start_as_current_span("handle-request") as span:
            span.set_attribute("example.user", "alice")
            with tracer.start_as_current_span("call-downstream"):
                headers = inject_http_headers({})
                typer.echo(f"Outgoing headers: {headers}")
    finally:
        if handle is not None:
            handle.close()


@app.command()
def version() -> None:
    """Print the package version."""
    from meshtrace import __version__

    typer.echo(__version__)


if __name__ == "__main__":
    app()
