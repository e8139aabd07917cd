"""CLI commands for authentication."""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from lmsweb.auth.session import SessionState, SessionStore
from lmsweb.auth.storage import FileStorage
from lmsweb.exceptions import ConfigurationError
from lmsweb.settings import get_settings
from lmsweb.web.context import is_valid_browser_id

auth_app = typer.Typer(name="auth", help="Inspect sign-in configuration and sessions.")
console = Console()


@auth_app.command()
def endpoints() -> None:
    """Show the OAuth endpoints derived from settings."""
    settings = get_settings()

    table = Table(title="OAuth Endpoints")
    table.add_column("Endpoint", style="cyan")
    table.add_column("URL", style="green")

    try:
        table.add_row("Client ID", settings.client_id())
        table.add_row("Authorize", settings.authorization_endpoint)
        table.add_row("Token", settings.token_endpoint)
        table.add_row("End session", settings.end_session_endpoint)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    table.add_row("Redirect URI", settings.redirect_uri)
    table.add_row("Backend API", settings.api_url)
    console.print(table)


@auth_app.command()
def sessions() -> None:
    """Show persisted browser sessions."""
    asyncio.run(_sessions_async())


async def _load_session(browser_id: str) -> SessionState:
    settings = get_settings()
    store = SessionStore(FileStorage(settings.browsers_dir / browser_id))
    return await store.rehydrate()


async def _sessions_async() -> None:
    """Async implementation of sessions command."""
    browsers_dir = get_settings().browsers_dir

    table = Table(title="Browser Sessions")
    table.add_column("Browser", style="cyan")
    table.add_column("User", style="green")
    table.add_column("Role", style="yellow")
    table.add_column("Status")

    browser_ids = []
    if browsers_dir.is_dir():
        browser_ids = sorted(p.name for p in browsers_dir.iterdir() if p.is_dir())
    for browser_id in browser_ids:
        state = await _load_session(browser_id)
        if state.is_authenticated and state.user:
            role = state.user.role.value if state.user.role else "-"
            table.add_row(browser_id, state.user.email, role, "Signed in")
        else:
            table.add_row(browser_id, "-", "-", "Signed out")

    if not browser_ids:
        console.print("[dim]No persisted sessions[/dim]")
        return
    console.print(table)


@auth_app.command()
def clear(
    browser_id: Annotated[
        str,
        typer.Argument(help="Browser id shown by `lmsweb auth sessions`."),
    ],
) -> None:
    """Sign a persisted browser session out locally."""
    if not is_valid_browser_id(browser_id):
        console.print(f"[red]Invalid browser id: {browser_id}[/red]")
        raise typer.Exit(1)
    asyncio.run(_clear_async(browser_id))
    console.print(f"[green]Signed out browser {browser_id}[/green]")


async def _clear_async(browser_id: str) -> None:
    settings = get_settings()
    store = SessionStore(FileStorage(settings.browsers_dir / browser_id))
    await store.rehydrate()
    store.logout()
    await store.persist()
