"""
TalentHub Command Line Interface

Provides CLI commands for operating the TalentHub core,
including database setup and client action queue inspection.
"""

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="talenthub",
    help="TalentHub interview negotiation and disclosure CLI",
    add_completion=False,
)
console = Console()

_URGENCY_STYLES = {
    "critical": "bold red",
    "warning": "yellow",
    "normal": "green",
}

_HEALTH_STYLES = {
    "excellent": "bold green",
    "good": "green",
    "warning": "yellow",
    "critical": "bold red",
}


@app.command()
def version():
    """Show application version."""
    from talenthub import __version__, __app_name__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from talenthub.utils.config import get_settings

    settings = get_settings()

    table = Table(title="TalentHub Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Database URI", settings.database.uri(redact=True))
    table.add_row("Database Name", settings.database.name)
    table.add_row("Notifications", "enabled" if settings.notifications.enabled else "disabled")
    table.add_row("Dispatch Mode", settings.notifications.dispatch_mode)
    table.add_row("Interview Priority", str(settings.urgency.interview_priority))
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Initialize the database with required collections and indexes."""
    import asyncio
    from talenthub.data.database import get_database_manager

    console.print("[yellow]Initializing database...[/yellow]")

    try:
        db_manager = get_database_manager()

        console.print("  Checking database connection...")
        if not db_manager.check_sync_connection():
            console.print("[red]Error: Could not connect to MongoDB.[/red]")
            console.print("[dim]Make sure MongoDB is running and connection settings are correct.[/dim]")
            raise typer.Exit(1)

        console.print("  [green]✓[/green] Connected to MongoDB")

        console.print("  Creating indexes...")
        asyncio.run(db_manager.ensure_indexes())
        console.print("  [green]✓[/green] Indexes created")

        console.print("\n[green]Database initialized successfully![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def queue(
    client_id: str = typer.Argument(..., help="Client whose action queue to show"),
    limit: int = typer.Option(25, "--limit", "-n", help="Maximum items to show"),
):
    """Show a client's ranked action queue."""
    import asyncio
    from talenthub.core.urgency import get_action_queue_service
    from talenthub.data.database import get_database_manager

    if not get_database_manager().check_sync_connection():
        console.print("[red]Error: Could not connect to MongoDB. Run 'init-db' first.[/red]")
        raise typer.Exit(1)

    action_queue = asyncio.run(get_action_queue_service().build_queue_async(client_id))

    if not action_queue.items:
        console.print(f"[green]No open actions for client {client_id}.[/green]")
        raise typer.Exit(0)

    table = Table(title=f"Action Queue: {client_id}")
    table.add_column("Urgency", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Waiting", justify="right")
    table.add_column("Title")
    table.add_column("Job", style="dim")

    for item in action_queue.items[:limit]:
        urgency = item.urgency.value
        table.add_row(
            f"[{_URGENCY_STYLES[urgency]}]{urgency}[/{_URGENCY_STYLES[urgency]}]",
            item.action_type.value,
            f"{item.waiting_hours}h",
            item.title,
            item.job_title or "-",
        )

    console.print(table)
    console.print(
        f"\nDecisions: [cyan]{action_queue.pending_decisions}[/cyan]  "
        f"Interviews: [cyan]{action_queue.pending_interviews}[/cyan]  "
        f"Offers: [cyan]{action_queue.pending_offers}[/cyan]  "
        f"Critical: [red]{action_queue.critical_count}[/red]"
    )


@app.command()
def health(
    client_id: str = typer.Argument(..., help="Client whose queue health to score"),
    active_jobs: int = typer.Option(
        0, "--active-jobs", "-j", help="Number of open jobs of the client"
    ),
):
    """Show the health score of a client's action queue."""
    from talenthub.core.urgency import get_action_queue_service
    from talenthub.data.database import get_database_manager

    if not get_database_manager().check_sync_connection():
        console.print("[red]Error: Could not connect to MongoDB. Run 'init-db' first.[/red]")
        raise typer.Exit(1)

    report = get_action_queue_service().health_report(client_id, active_jobs)
    style = _HEALTH_STYLES[report.level.value]

    console.print(f"Health score for [cyan]{client_id}[/cyan]: [{style}]{report.score}[/{style}]")
    console.print(f"  Level: [{style}]{report.level.value}[/{style}]")
    console.print(f"  Critical items: {report.critical_count}")
    console.print(f"  Warning items: {report.warning_count}")


if __name__ == "__main__":
    app()
