"""Typer CLI for PartyBoard."""

from __future__ import annotations

import json
from pathlib import Path

from sqlalchemy.exc import OperationalError
import typer
import uvicorn

from .board import issue_guest, list_confirmed_guests, list_topics
from .config import (
    load_settings,
    settings,
    settings_as_dict,
    update_config_file,
)
from .scheduler import start_scheduler, stop_scheduler
from .seed import seed_fake_data
from .storage import (
    RSVP_TABLE,
    default_store,
    init_db,
    upgrade_database,
    vacuum_database,
)
from .utils import humanize_time, invite_link

app = typer.Typer(help="PartyBoard command-line interface")


def _readonly_exit(exc: OperationalError, what: str) -> None:
    message = str(getattr(exc, "orig", exc)).lower()
    if "readonly" in message or "read-only" in message:
        typer.secho(
            f"Unable to {what} because the database is read-only. "
            f"Ensure write access to {settings.database_path}.",
            err=True,
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Show help when no subcommand is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("init-db")
def init_database() -> None:
    """Create the RSVP and Topics tables if they do not exist."""
    init_db()
    typer.echo(f"Database ready at {settings.database_path}")


@app.command("upgrade-db")
def upgrade_db(
    no_backup: bool = typer.Option(
        False,
        "--no-backup",
        help="Skip creating a .bak copy of the database before upgrading",
    ),
) -> None:
    """Upgrade the SQLite database schema if needed."""
    try:
        actions = upgrade_database(make_backup=not no_backup)
    except OperationalError as exc:
        _readonly_exit(exc, "upgrade")
        raise

    typer.echo("Database upgrade complete:")
    for action in actions:
        typer.echo(f"- {action}")


@app.command("add-guest")
def add_guest(
    name: str = typer.Argument(..., help="Guest display name"),
    guest_id: str | None = typer.Option(
        None, "--guest-id", help="Use this id instead of generating one"
    ),
) -> None:
    """Register an invitee and print their invitation id."""
    init_db()
    try:
        issued = issue_guest(default_store(), name, guest_id)
    except ValueError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(issued)
    link = invite_link(settings.invite_base_url, issued)
    if link:
        typer.echo(link)


@app.command("guests")
def guests(
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """List every guest row with their RSVP."""
    init_db()
    store = default_store()
    rows = list_confirmed_guests(store)
    if as_json:
        typer.echo(json.dumps(rows, indent=2))
        return
    if not rows:
        typer.echo("No guests yet.")
        return
    updated = {
        row.values["guest_id"]: row.values["timestamp"]
        for row in store.scan(RSVP_TABLE)
    }
    for row in rows:
        extras = []
        if row["plusOne"]:
            extras.append("+1")
        if not row["showPublic"]:
            extras.append("hidden")
        suffix = f" ({', '.join(extras)})" if extras else ""
        typer.echo(
            f"{row['guestId']}  {row['name']}  {row['status'] or '-'}{suffix}  "
            f"{humanize_time(updated.get(row['guestId']))}"
        )


@app.command("topics")
def topics(
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """List topics with their like counts."""
    init_db()
    rows = list_topics(default_store())
    if as_json:
        typer.echo(json.dumps(rows, indent=2))
        return
    if not rows:
        typer.echo("No topics yet.")
        return
    for row in rows:
        typer.echo(f"[{row['likes']:>3}] {row['text']}  ({row['author'] or 'anonymous'})")


@app.command("vacuum")
def vacuum() -> None:
    """Run SQLite VACUUM."""
    vacuum_database()
    typer.echo("Database vacuum complete.")


@app.command("runserver")
def runserver(
    host: str = typer.Option(settings.app_host, "--host", help="Host to bind"),
    port: int = typer.Option(settings.app_port, "--port", help="Port to bind"),
):
    """Start FastAPI with APScheduler."""
    init_db()
    start_scheduler()
    config = uvicorn.Config(
        "partyboard.api:app",
        host=host,
        port=port,
        reload=False,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    server = uvicorn.Server(config)
    try:
        typer.echo(f"Starting PartyBoard on {host}:{port}")
        server.run()
    finally:
        stop_scheduler()


@app.command("seed-data")
def seed_data(
    guests: int = typer.Option(
        settings.seed_guests, "--guests", min=0, help="Number of guests to create"
    ),
    topics: int = typer.Option(
        settings.seed_topics, "--topics", min=0, help="Number of topics to create"
    ),
    seed: int | None = typer.Option(
        None, "--seed", help="Random seed for reproducible data"
    ),
):
    """Populate the database with fake guests and topics for testing."""
    init_db()
    stats = seed_fake_data(
        default_store(), guest_count=guests, topic_count=topics, seed=seed
    )
    typer.echo(
        f"Seed complete: {stats['guests']} guests, {stats['topics']} topics, "
        f"{stats['likes']} likes created."
    )


@app.command("config")
def configure(
    show: bool = typer.Option(
        False, "--show", help="Show the current effective configuration"
    ),
    host: str | None = typer.Option(None, "--host", help="Default host for runserver"),
    port: int | None = typer.Option(None, "--port", help="Default port for runserver"),
    cors_origins: str | None = typer.Option(
        None, "--cors-origins", help="Comma-separated origins allowed to call the API"
    ),
    invite_base_url: str | None = typer.Option(
        None, "--invite-base-url", help="Invitation page URL used by add-guest"
    ),
    vacuum_hours: int | None = typer.Option(
        None, "--vacuum-hours", min=1, help="Hours between SQLite VACUUM runs"
    ),
    enable_scheduler: bool | None = typer.Option(
        None,
        "--enable-scheduler/--disable-scheduler",
        help="Toggle background scheduler (vacuum)",
    ),
    seed_guests: int | None = typer.Option(
        None, "--seed-guests", min=0, help="Default seed-data guests"
    ),
    seed_topics: int | None = typer.Option(
        None, "--seed-topics", min=0, help="Default seed-data topics"
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config-path",
        help="Path to partyboard.toml (default: ./partyboard.toml)",
    ),
):
    """View or update the persistent configuration file."""

    updates = {
        "app_host": host,
        "app_port": port,
        "cors_origins": cors_origins,
        "invite_base_url": invite_base_url,
        "sqlite_vacuum_hours": vacuum_hours,
        "enable_scheduler": enable_scheduler,
        "seed_guests": seed_guests,
        "seed_topics": seed_topics,
    }
    clean_updates = {k: v for k, v in updates.items() if v is not None}

    target_path = config_path or settings.config_path
    if clean_updates:
        settings_ref = update_config_file(clean_updates, path=target_path)
        typer.echo(f"Updated configuration in {target_path}")
    else:
        settings_ref = load_settings(target_path)
    if show or not clean_updates:
        effective = settings_as_dict(settings_ref)
        effective["config_path"] = str(target_path)
        typer.echo(json.dumps(effective, indent=2))


if __name__ == "__main__":
    app()
