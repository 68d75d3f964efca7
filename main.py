import subprocess
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Confirm

import database
from config import configure_logging, settings
from errors import LibraryError
from library import Library
from ui_helpers import set_output_mode, print_record, print_checkouts

APP_NAME = "Library CLI"

console = Console()


class LibraryManager:
    """Singleton Library bound to the current database file."""
    _instance: Optional[Library] = None
    _db_file_snapshot: Optional[str] = None

    @classmethod
    def get_instance(cls) -> Library:
        current_db = database.DATABASE_FILE
        # Rebuild when the document file changes (e.g. per-test databases)
        if cls._instance is None or current_db != cls._db_file_snapshot:
            cls._instance = Library(db_file=current_db)
            cls._db_file_snapshot = current_db
        return cls._instance


def _fail(error: LibraryError) -> None:
    print(f"Error: {error.message}")
    raise typer.Exit(code=1)


# --- Typer CLI application ---
app = typer.Typer(help=APP_NAME)

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG"),
):
    """Global options for the CLI."""
    configure_logging(log_level or "WARNING")
    if output:
        set_output_mode(output)

@app.command("add-book")
def cli_add_book(title: str, author: str, isbn: str, copies: int):
    """Add a book, or add copies to an existing ISBN."""
    lib = LibraryManager.get_instance()
    try:
        book = lib.add_book(title, author, isbn, copies)
    except LibraryError as e:
        _fail(e)
    print_record("Book saved", book.to_dict())

@app.command("book")
def cli_book(isbn: str):
    """Show a book by ISBN."""
    lib = LibraryManager.get_instance()
    try:
        book = lib.get_book(isbn)
    except LibraryError as e:
        _fail(e)
    print_record("Book Found", book.to_dict())

@app.command("add-customer")
def cli_add_customer(customer_id: str, name: str, email: str):
    """Register a new customer."""
    lib = LibraryManager.get_instance()
    try:
        customer = lib.add_customer(customer_id, name, email)
    except LibraryError as e:
        _fail(e)
    print_record("Customer registered", customer.to_dict())

@app.command("customer")
def cli_customer(customer_id: str):
    """Show a customer by ID."""
    lib = LibraryManager.get_instance()
    try:
        customer = lib.get_customer(customer_id)
    except LibraryError as e:
        _fail(e)
    print_record("Customer Found", customer.to_dict())

@app.command("loans")
def cli_loans(customer_id: str):
    """List the books a customer currently has checked out."""
    lib = LibraryManager.get_instance()
    try:
        checkouts = lib.list_customer_checkouts(customer_id)
    except LibraryError as e:
        _fail(e)
    print_checkouts(customer_id, [c.to_customer_view() for c in checkouts])

@app.command("checkout")
def cli_checkout(isbn: str, customer_id: str, due_date: str):
    """Check out one copy of a book for a customer."""
    lib = LibraryManager.get_instance()
    try:
        checkout = lib.checkout(isbn, customer_id, due_date)
    except LibraryError as e:
        _fail(e)
    print_record("Checked out", checkout.to_receipt())

@app.command("return")
def cli_return(isbn: str, customer_id: str):
    """Return a customer's most recent checkout of a book."""
    lib = LibraryManager.get_instance()
    try:
        result = lib.return_book(isbn, customer_id)
    except LibraryError as e:
        _fail(e)
    print_record(result.pop("message"), result)

@app.command("reset")
def cli_reset(yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt")):
    """Erase every book, customer and checkout."""
    if not yes and not Confirm.ask("Erase all library data?", console=console):
        print("Reset cancelled.")
        return
    LibraryManager.get_instance().reset()
    print("System reset successful")

@app.command("serve")
def cli_serve():
    """Run the HTTP API with uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    try:
        subprocess.run(args, check=False)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    app()
