import os
import json
from typing import Any, Dict, List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable that controls CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def print_record(title: str, record: Dict[str, Any]) -> None:
    """Print a single record.
    - plain: 'key: value' lines under a heading
    - json: JSON object
    - rich: Panel
    """
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(record, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{k}:[/] {v}" for k, v in record.items())
        _console.print(Panel.fit(content, title=title, border_style="blue"))
    else:
        print(title)
        for key, value in record.items():
            print(f"{key}: {value}")

def print_checkouts(customer_id: str, checkouts: List[Dict[str, Any]]) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(checkouts, ensure_ascii=False))
        return

    if not checkouts:
        print(f"Customer {customer_id} has no books checked out.")
        return

    if mode == "rich":
        table = Table(title=f"Books held by {customer_id}", show_lines=True, header_style="bold cyan")
        table.add_column("ISBN", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Checked out", style="green")
        table.add_column("Due", style="yellow")
        for c in checkouts:
            table.add_row(c["isbn"], c["title"], c["author"], c["checkout_date"], c["due_date"])
        _console.print(table)
    else:
        for c in checkouts:
            print(f"{c['isbn']} - {c['title']} by {c['author']} (due {c['due_date']})")
