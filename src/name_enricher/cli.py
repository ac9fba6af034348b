"""Name Enricher CLI."""

import asyncio
from typing import Optional

import typer

from name_enricher.core.database import Database
from name_enricher.core.errors import EnricherError
from name_enricher.core.schema import TABLES, apply_schema, drop_schema
from name_enricher.core.settings import get_settings
from name_enricher.enrichment.client import NameEnrichmentClient
from name_enricher.observability.logging import configure_logging, shutdown_logging

app = typer.Typer(
    name="name-enricher",
    help="Person registry enriched from name lookup services",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    """Name Enricher CLI - serve the API, manage the schema, try lookups."""
    configure_logging(get_settings())


# Server command
@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Bind address (default: ENRICHER_API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default: ENRICHER_API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
):
    """Start the HTTP API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    typer.echo(f"Starting Name Enricher API on {host}:{port}")
    uvicorn.run(
        "name_enricher.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload or settings.api_reload,
        log_level=settings.log_level.lower(),
    )


# Database commands
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")


@db_app.command("migrate")
def db_migrate():
    """Create the genders, nationalities and persons tables if missing."""
    try:
        with Database.from_settings(get_settings()) as database, database.session() as session:
            count = apply_schema(session)
    except EnricherError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Schema applied ({count} statements)")


@db_app.command("reset")
def db_reset(
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Drop and recreate every table."""
    if not confirm:
        confirm = typer.confirm("This will drop all tables. Continue?")
        if not confirm:
            raise typer.Abort()

    try:
        with Database.from_settings(get_settings()) as database, database.session() as session:
            drop_schema(session)
            apply_schema(session)
    except EnricherError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo("Database reset complete")


# Lookup command
@app.command("enrich")
def enrich(name: str = typer.Argument(..., help="First name to look up")):
    """Print age, gender and nationality guesses for NAME without storing anything."""

    async def lookup() -> tuple[int, str, str]:
        async with NameEnrichmentClient.from_settings(get_settings()) as client:
            age = await client.fetch_age(name)
            gender = await client.fetch_gender_label(name)
            nationality = await client.fetch_nationality_code(name)
        return age, gender, nationality

    try:
        age, gender, nationality = asyncio.run(lookup())
    except EnricherError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        shutdown_logging()

    typer.echo(f"Name:        {name}")
    typer.echo(f"Age:         {age}")
    typer.echo(f"Gender:      {gender or '-'}")
    typer.echo(f"Nationality: {nationality}")


# Doctor command
@app.command("doctor")
def doctor():
    """Run system diagnostics."""
    typer.echo("Running diagnostics...\n")
    settings = get_settings()

    typer.echo("Database:")
    healthy = True
    try:
        with Database.from_settings(settings) as database, database.session() as session:
            typer.echo(f"  ✓ Connected: {database.backend}")
            for table in TABLES:
                try:
                    row = session.fetchone(f"SELECT COUNT(*) FROM {table}")
                    typer.echo(f"  ✓ {table}: {row[0]} rows")
                except EnricherError as e:
                    healthy = False
                    typer.echo(f"  ✗ {table}: {e}")
    except EnricherError as e:
        healthy = False
        typer.echo(f"  ✗ Error: {e}")

    typer.echo("\nLookup services:")
    for label, url in (
        ("age", settings.agify_url),
        ("gender", settings.genderize_url),
        ("nationality", settings.nationalize_url),
    ):
        typer.echo(f"  {label:12} {url}")

    typer.echo("\nDiagnostics complete")
    if not healthy:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
