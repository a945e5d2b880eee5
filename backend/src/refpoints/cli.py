"""Command-line interface for refpoints."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from refpoints.errors import RefpointsError
from refpoints.ledger.service import LedgerService
from refpoints.logging_config import configure_logging, get_logger
from refpoints.storage.db import Database, db
from refpoints.storage.models import TransactionStatus
from refpoints.transactions.service import TransactionService

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="refpoints",
    help="refpoints - referral rewards administration",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()

DatabaseOption = Annotated[
    str | None,
    typer.Option("--database-url", "-d", help="Database URL (defaults to settings)"),
]


def _database(database_url: str | None) -> Database:
    return Database(database_url) if database_url else db


def _review(transaction_id: int, status: TransactionStatus, database_url: str | None) -> None:
    service = TransactionService(_database(database_url))
    try:
        transaction = service.request_status_change(transaction_id, status)
    except RefpointsError as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]✓[/bold green] Transaction {transaction.id} is {transaction.status} "
        f"({transaction.points:+d} points)"
    )


@app.command("init")
def init_database(database_url: DatabaseOption = None) -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    _database(database_url).create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("reset")
def reset_database(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
    database_url: DatabaseOption = None,
) -> None:
    """Drop every table and create them again, empty."""
    if not yes:
        typer.confirm("This deletes all campaigns, customers and points. Continue?", abort=True)

    database = _database(database_url)
    database.drop_tables()
    database.create_tables()
    console.print("[bold green]✓[/bold green] Database reset")


@app.command("approve")
def approve_transaction(
    transaction_id: Annotated[int, typer.Argument(help="Transaction ID")],
    database_url: DatabaseOption = None,
) -> None:
    """Approve a pending transaction and credit its points."""
    _review(transaction_id, TransactionStatus.APPROVED, database_url)


@app.command("reject")
def reject_transaction(
    transaction_id: Annotated[int, typer.Argument(help="Transaction ID")],
    database_url: DatabaseOption = None,
) -> None:
    """Reject a pending transaction."""
    _review(transaction_id, TransactionStatus.REJECTED, database_url)


@app.command("balance")
def show_balance(
    customer_id: Annotated[int, typer.Argument(help="Customer ID")],
    history: Annotated[int, typer.Option("--history", "-n", help="Ledger entries to show")] = 10,
    database_url: DatabaseOption = None,
) -> None:
    """Show a customer's points and recent ledger entries."""
    ledger = LedgerService(_database(database_url))
    try:
        balance = ledger.get_balance(customer_id)
    except RefpointsError as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[bold]Customer {customer_id}[/bold]")
    console.print(f"  Total:     {balance.total_points}")
    console.print(f"  Redeemed:  {balance.redeemed_points}")
    console.print(f"  Available: {balance.available_points}")

    entries = ledger.get_history(customer_id, limit=history)
    if not entries:
        return

    table = Table(title="Ledger")
    table.add_column("Date", style="dim")
    table.add_column("Transaction")
    table.add_column("Delta", justify="right")
    table.add_column("Total", justify="right")
    for entry in entries:
        table.add_row(
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
            str(entry.transaction_id or "-"),
            f"{entry.points_delta:+d}",
            str(entry.total_after),
        )
    console.print(table)


@app.command("reconcile")
def reconcile_ledger(database_url: DatabaseOption = None) -> None:
    """Credit approved transactions that never reached a balance."""
    credited = TransactionService(_database(database_url)).reconcile_ledger()
    console.print(f"[bold green]✓[/bold green] Reconciled {credited} transaction(s)")


if __name__ == "__main__":
    app()
