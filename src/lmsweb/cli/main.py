"""Command-line interface for lmsweb."""

import logging
from typing import Annotated

import typer
from aiohttp import web
from rich.console import Console
from rich.logging import RichHandler

from lmsweb.cli.auth import auth_app
from lmsweb.settings import get_settings
from lmsweb.web.app import create_app


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


app = typer.Typer(
    name="lmsweb",
    help="Sign-in and session layer for the LMS web application.",
)
app.add_typer(auth_app)


@app.command()
def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", help="Interface to bind. Defaults to HOST setting."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to bind. Defaults to PORT setting."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose logging.",
        ),
    ] = False,
) -> None:
    """Run the web application."""
    _setup_logging(verbose)
    settings = get_settings()
    console = Console()

    host = host or settings.host
    port = port or settings.port
    console.print(f"\n[bold]lmsweb[/bold] - serving {settings.app_url} on {host}:{port}\n")

    web.run_app(create_app(settings), host=host, port=port, print=None)


if __name__ == "__main__":
    app()
