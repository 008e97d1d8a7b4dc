"""tablerest CLI entry point."""

import sys

import click

from tablerest.auth.routes import DEFAULT_ROLE_ROUTES, RoleRouteTable
from tablerest.engine import CredentialFieldPolicy, CrudEngine
from tablerest.errors import TableRestError
from tablerest.persistence import create_adapter
from tablerest.settings import Settings


@click.group()
def cli():
    """tablerest: generic REST CRUD over any SQL table."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the API server."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        "tablerest.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command()
@click.argument("table")
def inspect(table: str):
    """Show the columns of TABLE and the relations a list read joins."""
    settings = Settings.from_env()
    engine = CrudEngine(
        create_adapter(settings.database),
        CredentialFieldPolicy(rounds=settings.bcrypt_rounds),
    )
    try:
        schema, relations = engine.describe(table)
    except TableRestError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"{schema.table} ({len(schema.columns)} columns)")
    for column in schema.columns:
        marker = "  [credential]" if engine.credentials.is_credential_field(column.name) else ""
        click.echo(f"  {column.name:<30} {column.sql_type:<20} {column.family.value}{marker}")

    if relations:
        click.echo("Relations:")
        for relation in relations:
            click.echo(
                f"  {relation.column} -> {relation.related_table}.{relation.display_column}"
                f" as {relation.description_key}"
            )


@cli.command()
@click.argument("roles", nargs=-1, required=True)
def routes(roles: tuple[str, ...]):
    """Print the routes granted to ROLES."""
    settings = Settings.from_env()
    table = (
        RoleRouteTable.from_yaml(settings.role_routes_path)
        if settings.role_routes_path
        else DEFAULT_ROLE_ROUTES
    )
    granted = table.routes_for(roles)
    if not granted:
        click.echo("No routes.")
        return
    for route in granted:
        click.echo(route)
