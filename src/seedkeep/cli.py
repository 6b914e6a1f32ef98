"""Command-line interface for SeedKeep.

This module provides the CLI commands for running the API server and for
working with the inventory from a terminal.
"""

import asyncio
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError

from seedkeep.core.config import get_settings
from seedkeep.core.exceptions import StoreError
from seedkeep.core.logging import configure_logging, get_logger


def _open_store():
    from seedkeep.infrastructure.persistence.store import InventoryStore

    settings = get_settings()
    return InventoryStore(
        settings.database_url, echo=settings.db_echo, create_tables=settings.db_create_tables
    )


@click.group()
@click.version_option(version="0.1.0", prog_name="SeedKeep")
def cli() -> None:
    """SeedKeep - cereal seed inventory tracker."""
    configure_logging(get_settings())


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option("--workers", type=int, default=None, help="Number of worker processes (overrides config)")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development")
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the SeedKeep API server."""
    import uvicorn

    settings = get_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    if bind_workers > 1 and settings.database_url.startswith("sqlite"):
        click.echo("Error: SQLite does not support multiple worker processes. Use --workers 1.", err=True)
        raise SystemExit(1)

    logger = get_logger(__name__)
    logger.info(
        "Starting SeedKeep server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "seedkeep.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command("init-db")
@click.option("--admin-id", type=str, default=None, help="Provider user id of the first administrator")
@click.option("--admin-email", type=str, default=None, help="Email of the first administrator")
def init_db(admin_id: str | None, admin_email: str | None) -> None:
    """Create the database tables, optionally with an approved administrator."""
    from seedkeep.domain.entities.user import Role, UserProfile

    if bool(admin_id) != bool(admin_email):
        raise click.UsageError("--admin-id and --admin-email must be given together")

    async def initialize():
        async with _open_store() as store:
            if admin_id:
                await store.upsert_user(UserProfile(id=admin_id, email=admin_email))
                await store.set_user_role(admin_id, Role.ADMIN)
                await store.set_user_approved(admin_id, True)
                click.echo(f"Administrator {admin_email} is approved.")
        click.echo("Database initialized successfully.")

    try:
        asyncio.run(initialize())
    except StoreError as e:
        click.echo(f"ERROR: {e.message}", err=True)
        raise SystemExit(1)


@cli.command("issue-token")
@click.option("--user-id", required=True, help="Provider user id (sub claim)")
@click.option("--email", required=True, help="Email claim")
@click.option("--name", default=None, help="Optional display name")
@click.option("--minutes", type=int, default=None, help="Lifetime in minutes (overrides config)")
def issue_token(user_id: str, email: str, name: str | None, minutes: int | None) -> None:
    """Print a signed bearer token for local development."""
    from datetime import timedelta

    from seedkeep.infrastructure.auth import jwt_service

    settings = get_settings()
    if settings.is_production:
        click.echo("ERROR: Tokens are issued by the authentication provider in production.", err=True)
        raise SystemExit(1)
    expires = timedelta(minutes=minutes) if minutes else None
    click.echo(jwt_service.issue_token(user_id, email, name=name, expires_delta=expires))


@cli.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "xlsx", "xlsx-per-box", "xlsx-per-year"]),
    default="csv",
    show_default=True,
)
@click.option("--filters", default=None, help="Filter state as JSON")
@click.option("--sort", default=None, help="Sort keys, e.g. 'box_number:asc,weight:desc'")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
def export(fmt: str, filters: str | None, sort: str | None, output_dir: Path) -> None:
    """Export the (filtered, sorted) inventory to a file."""
    from seedkeep.domain.entities.inventory import inventory_columns
    from seedkeep.domain.services.data_grid import DataGrid
    from seedkeep.domain.services.sort_paginate import parse_sort
    from seedkeep.infrastructure.api.schemas.grid_schemas import filters_adapter, filters_to_domain

    settings = get_settings()
    try:
        filter_state = filters_to_domain(filters_adapter.validate_json(filters)) if filters else {}
        sort_state = parse_sort(sort)
    except (ValidationError, ValueError) as e:
        raise click.BadParameter(str(e))

    async def run():
        async with _open_store() as store:
            return await store.fetch_all()

    grid = DataGrid(asyncio.run(run()), columns=inventory_columns(), dataset=settings.dataset_name)
    try:
        grid.set_filters(filter_state)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--filters")
    grid.set_sort(sort_state)
    exported = grid.export(fmt)
    if exported is None:
        click.echo("No data to export.")
        return

    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / exported.filename
    target.write_bytes(exported.content)
    click.echo(f"Wrote {target}")


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--actor", required=True, help="Email recorded as the importing user")
@click.option("--dry-run", is_flag=True, help="Validate only; write nothing")
def import_file(path: Path, actor: str, dry_run: bool) -> None:
    """Import inventory entries from a CSV or Excel file."""
    from seedkeep.domain.services.import_service import commit_import, preview_import

    try:
        report = preview_import(path.name, path.read_bytes())
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="PATH")

    for error in report.errors:
        where = f"row {error.row}: " if error.row else ""
        click.echo(f"{where}{error.message}", err=True)
    if not report.ok:
        click.echo(f"Import blocked: {len(report.errors)} error(s); nothing was imported.", err=True)
        raise SystemExit(1)
    if dry_run:
        click.echo(f"{len(report.records)} rows are valid.")
        return

    async def run():
        async with _open_store() as store:
            return await commit_import(report, store, actor=actor)

    created = asyncio.run(run())
    click.echo(f"Imported {len(created)} inventory entries from {path.name}.")


@cli.command()
@click.argument("record_id")
def history(record_id: str) -> None:
    """Show the change history of an inventory entry."""
    from seedkeep.domain.services.values import stringify

    async def run():
        async with _open_store() as store:
            return await store.list_history(record_id)

    entries = asyncio.run(run())
    if not entries:
        click.echo("No history.")
        return
    for entry in entries:
        click.echo(f"{entry.occurred_at.isoformat()}  {entry.action.value:<6}  {entry.actor}")
        for change in entry.changes:
            click.echo(
                f'    {change.field}: "{stringify(change.from_value)}" -> "{stringify(change.to_value)}"'
            )
        if not entry.changes and entry.summary:
            click.echo(f"    {entry.summary}")


@cli.command()
def info() -> None:
    """Display SeedKeep configuration."""
    settings = get_settings()

    click.echo(f"""
SeedKeep v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Grid:
  Dataset:      {settings.dataset_name}
  Page Size:    {settings.default_page_size}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `seedkeep` command is run
    or when using `python -m seedkeep`.
    """
    cli()


if __name__ == "__main__":
    main()
