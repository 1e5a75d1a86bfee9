"""
Pizza shop CLI.

Command-line interface for database setup, seeding and inventory checks.
"""

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

app = typer.Typer(
    name="pizza-cli",
    help="Pizza Shop Management CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def init_db():
    """Create every table that does not exist yet."""
    from pizza_api.models import Base
    from pizza_shared.infrastructure.db import engine

    try:
        Base.metadata.create_all(bind=engine)
        console.print("[green]✓ Tables created/verified[/green]")
    except Exception as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def seed(
    force: bool = typer.Option(False, "--force", "-f", help="Allow seeding in production"),
):
    """Seed the catalog, subscription plans and the welcome promotion."""
    from pizza_api.seed import seed as run_seed
    from pizza_shared.config.settings import settings
    from pizza_shared.infrastructure.db import get_db_context

    if settings.environment == "production" and not force:
        console.print("[red]Cannot seed production without --force[/red]")
        raise typer.Exit(1)

    try:
        with get_db_context() as db:
            run_seed(db)
        console.print("[green]✓ Seeding complete[/green]")
    except Exception as e:
        console.print(f"[red]✗ Seeding failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def create_admin(
    username: str = typer.Argument(..., help="Admin username"),
    email: str = typer.Argument(..., help="Admin e-mail"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create an administrator account, or promote an existing user."""
    from pizza_api.models import User
    from pizza_shared.infrastructure.db import get_db_context, safe_commit
    from pizza_shared.security.password import hash_password

    with get_db_context() as db:
        user = db.scalar(select(User).where(User.username == username))
        if user is not None:
            user.is_admin = True
            safe_commit(db)
            console.print(f"[yellow]User '{username}' already existed and is now an admin[/yellow]")
            return

        db.add(User(
            username=username,
            email=email.strip().lower(),
            password=hash_password(password),
            is_admin=True,
        ))
        safe_commit(db)
    console.print(f"[green]✓ Admin '{username}' created[/green]")


# =============================================================================
# Inventory Commands
# =============================================================================

@app.command()
def low_stock():
    """Show catalog items at or below their low-stock threshold."""
    from pizza_api.repositories import SqlUnitOfWork
    from pizza_api.services.domain import CatalogService
    from pizza_shared.infrastructure.db import get_db_context

    with get_db_context() as db:
        items = CatalogService(SqlUnitOfWork(db)).low_stock()

    if not items:
        console.print("[green]All items are above their threshold[/green]")
        return

    table = Table(title="Low Stock")
    table.add_column("Kind", style="cyan")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Stock", justify="right", style="red")
    table.add_column("Threshold", justify="right")

    for item in items:
        table.add_row(item.kind, str(item.id), item.name, str(item.stock), str(item.threshold))

    console.print(table)


# =============================================================================
# Server Commands
# =============================================================================

@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(None, help="Port (defaults to PORT setting)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the API server with uvicorn."""
    import uvicorn

    from pizza_shared.config.settings import settings

    port = port or settings.port
    console.print(f"[blue]Starting API on {host}:{port}[/blue]")
    uvicorn.run("pizza_api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
