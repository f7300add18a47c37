"""
Restaurant POS CLI.

Command-line interface for database setup, reporting and smoke checks.
"""

import asyncio
import sys
import time
from datetime import date, datetime, timezone

import httpx
import typer
import websockets
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="pos",
    help="Restaurant POS management CLI",
    add_completion=False,
)
console = Console()

__version__ = "0.1.0"


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def init_db():
    """Create all database tables."""
    from rest_api.models import Base
    from shared.infrastructure.db import engine

    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        console.print(f"[red]✗ Could not create tables: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Tables created/verified[/green]")


@app.command()
def seed(
    force: bool = typer.Option(False, "--force", "-f", help="Allow seeding in production"),
):
    """Seed the demo restaurant (no-op when data exists)."""
    from rest_api.seed import seed as seed_demo
    from shared.config.settings import settings
    from shared.infrastructure.db import get_db_context

    if settings.environment == "production" and not force:
        console.print("[red]Cannot seed production without --force[/red]")
        raise typer.Exit(1)

    with get_db_context() as db:
        tenant = seed_demo(db)

    if tenant is None:
        console.print("[yellow]Database already seeded, nothing to do[/yellow]")
    else:
        console.print(f"[green]✓ Seeded tenant {tenant.name!r} (id={tenant.id})[/green]")


# =============================================================================
# Reporting Commands
# =============================================================================

@app.command()
def stats_rollup(
    tenant_id: int = typer.Argument(..., help="Tenant to roll up"),
    day: str = typer.Option(None, help="Day as YYYY-MM-DD (default: today, UTC)"),
):
    """Compute the daily stats row of a tenant from its completed orders."""
    from rest_api.services.domain import DashboardService
    from shared.infrastructure.db import get_db_context

    try:
        target = date.fromisoformat(day) if day else datetime.now(timezone.utc).date()
    except ValueError:
        console.print(f"[red]Invalid day: {day}[/red]")
        raise typer.Exit(1)

    with get_db_context() as db:
        stat = DashboardService(db).rollup_day(tenant_id, target)

    table = Table(title=f"Stats for tenant {tenant_id} on {target.isoformat()}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Revenue", str(stat.daily_revenue))
    table.add_row("Customers", str(stat.customer_count))
    table.add_row("Average check", str(stat.average_check))
    table.add_row("Occupancy %", str(stat.occupancy_rate))
    console.print(table)


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    base_url: str = typer.Option("http://localhost:5000", help="API base URL"),
):
    """Check API health."""

    async def _health():
        table = Table(title="Service Health")
        table.add_column("Endpoint", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Response Time", style="yellow")

        async with httpx.AsyncClient(base_url=base_url, timeout=5.0) as client:
            for path in ("/api/health", "/ws/health"):
                try:
                    start = time.time()
                    response = await client.get(path)
                    elapsed = (time.time() - start) * 1000
                    if response.status_code == 200:
                        table.add_row(path, "✓ Healthy", f"{elapsed:.0f}ms")
                    else:
                        table.add_row(path, f"✗ Status {response.status_code}", f"{elapsed:.0f}ms")
                except httpx.HTTPError as e:
                    table.add_row(path, f"✗ {type(e).__name__}", "-")

        console.print(table)

    asyncio.run(_health())


# =============================================================================
# WebSocket Commands
# =============================================================================

@app.command()
def ws_test(
    base_url: str = typer.Option("http://localhost:5000", help="API base URL"),
    username: str = typer.Option("admin", help="Staff username"),
    password: str = typer.Option("password", help="Staff password", hide_input=True),
):
    """Log in, open the realtime channel and round-trip a ping."""
    from pos_client import ApiClient, ApiError, AuthSession, QueryCache, RealtimeClient

    async def _test():
        async with ApiClient(base_url) as api:
            session = AuthSession(QueryCache(api))
            try:
                await session.login(username, password)
            except ApiError as e:
                console.print(f"[red]✗ Login failed: {e.message}[/red]")
                return False

            console.print(f"[blue]Logged in, tenant {session.tenant_id}[/blue]")
            try:
                async with RealtimeClient(api, session.tenant_id) as rt:
                    await rt.ping()
                    reply = await rt.recv(timeout=5)
                    console.print(f"[green]✓ Connected! Response: {reply}[/green]")
            except asyncio.TimeoutError:
                console.print("[red]✗ No reply within 5s[/red]")
                return False
            except (OSError, websockets.WebSocketException) as e:
                console.print(f"[red]✗ Connection failed: {e}[/red]")
                return False
        return True

    if not asyncio.run(_test()):
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Restaurant POS Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("POS", __version__)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
