"""
CRUD service CLI.

Command-line interface for common operations.
"""

import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="crud-service",
    help="Generic CRUD service CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Server Commands
# =============================================================================

@app.command()
def serve(
    host: str = typer.Option(None, help="Bind address (defaults to API_HOST)"),
    port: int = typer.Option(None, help="Bind port (defaults to API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the API server with the routers listed in API_ROUTERS."""
    import uvicorn

    from shared.config.settings import settings

    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[blue]Serving CRUD API on {host}:{port}[/blue]")
    uvicorn.run(
        "crud_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_create(
    module: list[str] = typer.Option(
        None, "--module", "-m", help="Module holding mapped classes (repeatable)"
    ),
):
    """Create the tables of every mapped entity."""
    from sqlalchemy import inspect

    from shared.infrastructure.db import SessionFactoryBuilder, settings_options
    from shared.utils.exceptions import ConfigurationError

    options = settings_options()
    metadata = dict(options["metadata"], create_all=True)
    if module:
        metadata["modules"] = list(module)
    options["metadata"] = metadata

    try:
        builder = SessionFactoryBuilder(options)
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Mapped Tables")
    table.add_column("Table", style="cyan")
    for name in sorted(inspect(builder.engine).get_table_names()):
        table.add_row(name)
    console.print(table)
    console.print("[green]✓ Tables created/verified[/green]")


@app.command()
def db_check():
    """Check database connectivity."""
    from sqlalchemy import text

    from shared.infrastructure.db import get_db_context

    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        console.print("[green]✓ Database reachable[/green]")
    except Exception as e:
        console.print(f"[red]✗ Database check failed: {e}[/red]")
        raise typer.Exit(1)


# =============================================================================
# Config Commands
# =============================================================================

def mask_url(url: str) -> str:
    """Hide the password of a database URL."""
    from sqlalchemy.engine import make_url
    from sqlalchemy.exc import ArgumentError

    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable URL>"


@app.command()
def config():
    """Show the effective settings."""
    from shared.config.settings import settings

    table = Table(title="Settings")
    table.add_column("Name", style="cyan")
    table.add_column("Value", style="green")

    for name, value in sorted(settings.model_dump().items()):
        if name == "database_url":
            value = mask_url(value)
        table.add_row(name.upper(), str(value))

    console.print(table)


@app.command()
def version():
    """Show version information."""
    table = Table(title="CRUD Service Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("API", "0.1.0")
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
