"""
Command Line Interface for Show Ingest.
"""

import asyncio
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..db.base import get_session_local, init_database
from ..db.services import ShowService
from ..integrations.mixcloud import MixcloudClient
from ..log_config import configure_logging
from ..oauth.token_manager import MixcloudTokenManager
from ..playlist.parser import ParserOptions, generate_parse_summary, parse_playlist_text

app = typer.Typer(help="Show Ingest - Mixcloud show import service")
console = Console()


@app.callback()
def main() -> None:
    configure_logging(get_settings())


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    dev: bool = typer.Option(False, help="Run in development mode with reload"),
):
    """Start the HTTP API."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    rprint(Panel.fit(f"🎧 Starting {settings.app_name} on http://{host}:{port}", style="bold blue"))
    uvicorn.run(
        "show_ingest.main:app",
        host=host,
        port=port,
        reload=dev,
        workers=1 if dev else settings.api_workers,
    )


@app.command()
def init_db():
    """Create any missing database tables."""
    init_database()
    console.print("✅ Database initialized")


@app.command()
def parse_playlist(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Tracklist text file"),
    allow_missing_track: bool = typer.Option(False, help="Accept lines without a title"),
):
    """Parse a tracklist file and print the result."""
    result = parse_playlist_text(
        path.read_text(encoding="utf-8"),
        ParserOptions(allow_missing_track=allow_missing_track),
    )

    table = Table(title="Parsed Tracklist", show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Hour", style="yellow")
    table.add_column("Artist", style="green")
    table.add_column("Track")
    for track in result.tracks:
        table.add_row(
            str(track.position),
            str(track.hour) if track.hour is not None else "-",
            track.artist,
            track.track,
        )
    console.print(table)

    for error in result.errors:
        console.print(f"❌ {error}")
    for warning in result.warnings:
        console.print(f"⚠️  {warning}")
    console.print(generate_parse_summary(result))

    if result.errors:
        raise typer.Exit(code=1)


@app.command()
def list_shows(
    search: Optional[str] = typer.Option(None, help="Filter by title or description"),
    limit: int = typer.Option(20, help="Maximum number of shows"),
):
    """List imported shows, newest first."""
    db = get_session_local()()
    try:
        rows, total = ShowService(db).list_shows(search=search, limit=limit)
    finally:
        db.close()

    if not rows:
        console.print("No shows found")
        return

    table = Table(title=f"Shows ({total})", show_header=True, header_style="bold cyan")
    table.add_column("Title", style="yellow")
    table.add_column("Slug", style="green")
    table.add_column("Published")
    table.add_column("Tracks", justify="right")
    table.add_column("Storyblok", style="magenta")
    for show, track_count in rows:
        data = show.to_dict()
        table.add_row(
            data["title"],
            data["slug"],
            data["published_date"] or "",
            str(track_count),
            data["storyblok_id"] or "",
        )
    console.print(table)


def _token_manager(db) -> MixcloudTokenManager:
    settings = get_settings()
    client = MixcloudClient(
        client_id=settings.mixcloud_client_id,
        client_secret=settings.mixcloud_client_secret,
        redirect_uri=settings.mixcloud_callback_url,
        timeout=settings.http_timeout_seconds,
    )
    return MixcloudTokenManager(
        db,
        client,
        refresh_buffer=timedelta(seconds=settings.mixcloud_token_refresh_buffer_seconds),
    )


@app.command()
def token_status(user_id: str = typer.Argument(..., help="External user id of the admin")):
    """Show the Mixcloud connection status of an admin."""

    async def check():
        db = get_session_local()()
        manager = _token_manager(db)
        try:
            return await manager.connection_status(user_id)
        finally:
            await manager.client.close()
            db.close()

    status = asyncio.run(check())
    emoji = "🟢" if status["connected"] else "🔴"
    console.print(f"{emoji} {status.get('message') or ''}")
    if status.get("mixcloud_username"):
        console.print(f"Mixcloud user: {status['mixcloud_username']}")
    if status.get("expires_at"):
        console.print(f"Expires at: {status['expires_at']}")


@app.command()
def revoke_token(user_id: str = typer.Argument(..., help="External user id of the admin")):
    """Delete the stored Mixcloud token of an admin."""
    db = get_session_local()()
    manager = _token_manager(db)
    try:
        removed = manager.revoke(user_id)
    finally:
        asyncio.run(manager.client.close())
        db.close()

    if removed:
        console.print(f"✅ Revoked Mixcloud token for {user_id}")
    else:
        console.print(f"No Mixcloud token stored for {user_id}")


if __name__ == "__main__":
    app()
