"""hyperconnect CLI.

Usage:
    hyperconnect serve examples.minimal:app                 # Serve an ASGI app
    hyperconnect serve examples.users:app --port 8080       # Custom port
    hyperconnect health --url http://127.0.0.1:3000/health  # Probe a server
"""

from __future__ import annotations

import logging
import sys

import click
import httpx

from .config import Settings


def configure_logging(level: str) -> None:
    """Send log records to stderr at ``level``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx: click.Context) -> None:
    """hyperconnect - run phase-typed middleware in a callback pipeline."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument("app")
@click.option("--host", default=None, help="Host to bind to (default: HYPERCONNECT_HOST or 127.0.0.1)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: HYPERCONNECT_PORT or 3000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--log-level", default=None, help="Log level (default: HYPERCONNECT_LOG_LEVEL or WARNING)")
def serve(app: str, host: str | None, port: int | None, reload: bool, log_level: str | None) -> None:
    """Serve APP, given as ``module:attribute``, with uvicorn."""
    import uvicorn

    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from None

    host = host or settings.host
    port = port or settings.port
    level = (log_level or settings.log_level).upper()
    configure_logging(level)

    if ":" not in app:
        raise click.UsageError(f"APP must look like 'module:attribute', got {app!r}")

    click.echo(f"Serving {app} on http://{host}:{port}", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(app, host=host, port=port, reload=reload, log_level=level.lower())


@main.command()
@click.option("--url", default="http://127.0.0.1:3000/", help="URL to probe")
@click.option("--timeout", default=5.0, help="Request timeout in seconds")
def health(url: str, timeout: float) -> None:
    """Check that a server answers URL with a 2xx status."""
    try:
        response = httpx.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        click.echo(f"Server at {url} is not reachable: {e}", err=True)
        sys.exit(1)

    if response.is_success:
        click.echo(f"OK {response.status_code}")
        return

    click.echo(f"Unhealthy: {response.status_code}", err=True)
    sys.exit(1)


if __name__ == "__main__":
    main()
