"""Blotter CLI -- run the portal and administer its data directory."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from blotter import __version__, settings
from blotter.discord.sink import DiscordSink
from blotter.errors import BlotterError
from blotter.logging_setup import configure_logging
from blotter.services.accounts import AccountService
from blotter.services.reports import ReportService
from blotter.storage import RecordStore

console = Console()


def _open(ctx: click.Context) -> RecordStore:
    return RecordStore.open(ctx.obj["data_dir"])


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the JSON data files (default: $BLOTTER_DATA_DIR or ~/.blotter/data)",
)
@click.option("--log-level", default=None, help="Logging level (default: $BLOTTER_LOG_LEVEL)")
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[Path], log_level: Optional[str]):
    """Blotter - citation and arrest report portal.

    Officers file reports through the web API; each report is stored in
    local JSON files and mirrored to a Discord channel.
    """
    configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir or settings.DATA_DIR


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=5000, type=int, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """Run the web API with uvicorn."""
    import uvicorn

    from web.backend.app.main import create_app

    console.print(f"\n[bold blue]Blotter[/] serving data from {ctx.obj['data_dir']}\n")
    uvicorn.run(create_app(data_dir=ctx.obj["data_dir"]), host=host, port=port)


# ── Stats / users ────────────────────────────────────────────────────


@main.command()
@click.pass_context
def stats(ctx: click.Context):
    """Show user, admin, citation and arrest counts."""
    with _open(ctx) as records:
        counts = AccountService(records).stats()

    table = Table(title="Blotter Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Users", str(counts["user_count"]))
    table.add_row("Admins", str(counts["admin_count"]))
    table.add_row("Citations issued", str(counts["citation_count"]))
    table.add_row("Arrests made", str(counts["arrest_count"]))
    console.print(table)


@main.command()
@click.pass_context
def users(ctx: click.Context):
    """List registered officers."""
    with _open(ctx) as records:
        all_users = records.users.list()

    if not all_users:
        console.print("[yellow]No users registered.[/]")
        return

    table = Table(title=f"Users ({len(all_users)})")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Username", style="cyan")
    table.add_column("Badge")
    table.add_column("Rank")
    table.add_column("Admin", justify="center")
    for u in sorted(all_users, key=lambda u: u.id):
        table.add_row(str(u.id), u.username, u.badge_number, u.rank or "", "yes" if u.is_admin else "")
    console.print(table)


# ── Username lists ───────────────────────────────────────────────────


@main.command()
@click.argument("username")
@click.pass_context
def block(ctx: click.Context, username: str):
    """Prevent USERNAME from registering."""
    with _open(ctx) as records:
        try:
            mark = AccountService(records).block(None, username)
        except BlotterError as e:
            raise click.ClickException(str(e))
    console.print(f"[green]Blocked[/] {mark.username}")


@main.command()
@click.argument("username")
@click.pass_context
def unblock(ctx: click.Context, username: str):
    """Allow USERNAME to register again."""
    with _open(ctx) as records:
        changed = AccountService(records).unblock(username)
    if not changed:
        raise click.ClickException(f"{username} is not blocked")
    console.print(f"[green]Unblocked[/] {username.lower()}")


@main.command()
@click.argument("username")
@click.pass_context
def terminate(ctx: click.Context, username: str):
    """Prevent USERNAME from logging in or registering."""
    with _open(ctx) as records:
        try:
            mark = AccountService(records).terminate(None, username)
        except BlotterError as e:
            raise click.ClickException(str(e))
    console.print(f"[green]Terminated[/] {mark.username}")


@main.command()
@click.argument("username")
@click.pass_context
def unterminate(ctx: click.Context, username: str):
    """Lift the termination of USERNAME."""
    with _open(ctx) as records:
        changed = AccountService(records).unterminate(username)
    if not changed:
        raise click.ClickException(f"{username} is not terminated")
    console.print(f"[green]Unterminated[/] {username.lower()}")


# ── Purge ────────────────────────────────────────────────────────────


async def _purge(records: RecordStore, kind: str) -> int:
    sink = DiscordSink.from_settings()
    service = ReportService(records, sink, timeout=settings.DISCORD_TIMEOUT)
    try:
        if kind == "citations":
            return await service.delete_all_citations()
        return await service.delete_all_arrests()
    finally:
        if sink is not None:
            await sink.aclose()


@main.command()
@click.argument("kind", type=click.Choice(["citations", "arrests"]))
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def purge(ctx: click.Context, kind: str, yes: bool):
    """Delete every record of KIND and retract their Discord messages.

    The lifetime counter for KIND is reset to zero.
    """
    if not yes:
        click.confirm(f"Delete ALL {kind}? This cannot be undone", abort=True)
    with _open(ctx) as records:
        deleted = asyncio.run(_purge(records, kind))
    console.print(f"[green]Deleted {deleted} {kind}.[/]")


if __name__ == "__main__":
    main()
