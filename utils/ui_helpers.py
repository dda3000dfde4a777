import os
import json
from datetime import date
from typing import List, Any, Dict, Iterable, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

STATUS_COLORS = {
    "Available": "green",
    "Borrowed": "red",
}
OVERDUE_COLOR = "yellow"


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def status_color(book: Any, today: Optional[date] = None) -> str:
    """Display colour for a book's status; borrowed books past their due date are flagged."""
    status = getattr(book, "status", "")
    due = getattr(book, "due_date", "")
    if status == "Borrowed" and due:
        try:
            if date.fromisoformat(due) < (today or date.today()):
                return OVERDUE_COLOR
        except ValueError:
            pass
    return STATUS_COLORS.get(status, "white")


def _loan_text(book: Any) -> str:
    if getattr(book, "status", "") != "Borrowed":
        return ""
    return f"{book.borrower} (due {book.due_date})"


def print_list_result(books: List[Any]) -> None:
    """Print the book list in the current output mode.
    - plain: 'ID - Title by Author [Status]' lines, or 'No books in library.'
    - json: JSON array of full book records
    - rich: Rich table with coloured status
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True, justify="right")
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("ISBN", style="white", no_wrap=True)
        table.add_column("Year", style="white")
        table.add_column("Genre", style="white")
        table.add_column("Status", no_wrap=True)
        table.add_column("Borrower", style="white")
        for b in books:
            color = status_color(b)
            table.add_row(str(b.id), escape(b.title), escape(b.author), b.isbn, b.year, b.genre,
                          f"[{color}]{b.status}[/]", escape(_loan_text(b)))
        _console.print(table)
    else:
        for b in books:
            line = f"{b.id} - {b.title} by {b.author} [{b.status}]"
            if _loan_text(b):
                line += f" - {_loan_text(b)}"
            print(line)


def print_book_details(book: Any) -> None:
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
        return

    rows = [
        ("ID", str(book.id)),
        ("Title", book.title),
        ("Author", book.author),
        ("ISBN", book.isbn),
        ("Year", book.year),
        ("Genre", book.genre),
        ("Publisher", book.publisher),
        ("Status", book.status),
    ]
    if book.status == "Borrowed":
        rows += [("Borrower", book.borrower), ("Due Date", book.due_date)]

    if mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {escape(value)}" for label, value in rows)
        _console.print(Panel.fit(content, title="🔍 Book Found", border_style=status_color(book)))
    else:
        print("Book Found")
        for label, value in rows:
            print(f"{label}: {value}")


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics in the current output mode."""
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    labels = [
        ("total_books", "Total Books"),
        ("available", "Available"),
        ("borrowed", "Borrowed"),
        ("unique_authors", "Unique Authors"),
    ]

    if mode == "json":
        print(json.dumps({key: stats.get(key, 0) for key, _ in labels}, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {stats.get(key, 0)}" for key, label in labels)
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, label in labels:
            print(f"{label}: {stats.get(key, 0)}")


def print_errors(errors: Iterable[str], title: str = "Validation failed") -> None:
    errors = list(errors)
    if get_output_mode() == "rich":
        content = "\n".join(f"• {escape(e)}" for e in errors)
        _console.print(Panel.fit(content, title=f"❌ {title}", border_style="red"))
    else:
        print(f"{title}:")
        for e in errors:
            print(f"- {e}")
