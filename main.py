import sys
import logging
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Confirm, Prompt, IntPrompt
from rich.markup import escape
from rich import box

import typer

from book import BookStatus
from config import settings
from form import BookForm, FormController, FormResult
from library import Library
from storage import PersistenceError
from utils.ui_helpers import (
    set_output_mode,
    print_list_result,
    print_book_details,
    print_stats_result,
    print_errors,
    status_color,
)

APP_NAME = settings.app_name

console = Console()


class LibraryManager:
    """Holds the single Library for the running process."""

    _instance: Optional[Library] = None
    _load_error: Optional[str] = None

    @classmethod
    def get_instance(cls) -> Library:
        """Return the Library for the configured data file, loading it on first use."""
        if cls._instance is None or cls._instance.data_file != settings.data_file:
            cls._instance = Library(data_file=settings.data_file)
            try:
                cls._instance.load()
                cls._load_error = None
            except PersistenceError as e:
                # The library is empty now; keep going and tell the user once.
                cls._load_error = str(e)
        return cls._instance

    @classmethod
    def take_load_error(cls) -> Optional[str]:
        error, cls._load_error = cls._load_error, None
        return error

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
        cls._load_error = None


def get_controller() -> FormController:
    lib = LibraryManager.get_instance()
    error = LibraryManager.take_load_error()
    if error:
        print(f"Warning: {error}. Starting with an empty library.")
    return FormController(lib)


def report(result: FormResult) -> None:
    """Print a form outcome as a plain notification."""
    if result.errors:
        print_errors(result.errors)
    else:
        print(result.message if result.success else f"Error: {result.message}")


# --- Typer CLI Application ---
app = typer.Typer(help="Library inventory CLI")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    data_file: Optional[str] = typer.Option(
        None,
        "--data-file",
        help="JSON file holding the book inventory",
    ),
):
    """Global CLI options (output mode, data file)."""
    if output:
        set_output_mode(output)
    if data_file:
        settings.data_file = data_file


@app.command("list")
def cli_list():
    """List all books."""
    controller = get_controller()
    print_list_result(controller.books())


@app.command("add")
def cli_add(
    title: str = typer.Option("", "--title", "-t", help="Book title"),
    author: str = typer.Option("", "--author", "-a", help="Author name"),
    isbn: str = typer.Option("", "--isbn", "-i", help="ISBN-10 or ISBN-13"),
    year: str = typer.Option("", "--year", "-y", help="Publication year (4 digits)"),
    genre: str = typer.Option("", "--genre", "-g", help="Genre (see 'genres')"),
    publisher: str = typer.Option("", "--publisher", "-p", help="Publisher"),
    status: str = typer.Option(BookStatus.AVAILABLE.value, "--status", "-s", help="Available | Borrowed"),
    borrower: str = typer.Option("", "--borrower", "-b", help="Borrower name (Borrowed only)"),
    due_date: str = typer.Option("", "--due-date", "-d", help="Due date YYYY-MM-DD (Borrowed only)"),
):
    """Add a new book."""
    controller = get_controller()
    controller.form = BookForm(title=title, author=author, isbn=isbn, year=year, genre=genre,
                               publisher=publisher, status=status, borrower=borrower, due_date=due_date)
    result = controller.submit_add()
    report(result)
    if result.success:
        print(f"ID: {result.book.id}")


@app.command("edit")
def cli_edit(
    book_id: int = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i"),
    year: Optional[str] = typer.Option(None, "--year", "-y"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g"),
    publisher: Optional[str] = typer.Option(None, "--publisher", "-p"),
    status: Optional[str] = typer.Option(None, "--status", "-s"),
    borrower: Optional[str] = typer.Option(None, "--borrower", "-b"),
    due_date: Optional[str] = typer.Option(None, "--due-date", "-d"),
):
    """Edit the fields of an existing book. Fields not given stay unchanged."""
    controller = get_controller()
    selected = controller.select(book_id)
    if not selected.success:
        report(selected)
        return
    changes = dict(title=title, author=author, isbn=isbn, year=year, genre=genre, publisher=publisher,
                   status=status, borrower=borrower, due_date=due_date)
    for name, value in changes.items():
        if value is not None:
            setattr(controller.form, name, value)
    report(controller.submit_update())


@app.command("remove")
def cli_remove(
    book_id: int = typer.Argument(..., help="Book ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a book by ID."""
    controller = get_controller()
    book = controller.library.find_by_id(book_id)
    if not book:
        print(f"Book with ID {book_id} not found.")
        return
    if not yes and not typer.confirm(f"Delete '{book.title}'?", default=False):
        print("Deletion cancelled.")
        return
    report(controller.delete(book_id))


@app.command("find")
def cli_find(book_id: int = typer.Argument(..., help="Book ID")):
    """Show the details of a book."""
    controller = get_controller()
    book = controller.library.find_by_id(book_id)
    if book:
        print_book_details(book)
    else:
        print(f"Book with ID {book_id} not found.")


@app.command("borrow")
def cli_borrow(
    book_id: int = typer.Argument(..., help="Book ID"),
    borrower: Optional[str] = typer.Option(None, "--borrower", "-b", help="Borrower name"),
    due_date: Optional[str] = typer.Option(None, "--due-date", "-d", help="Due date YYYY-MM-DD"),
):
    """Lend a book. Defaults fill in a missing --borrower or --due-date."""
    controller = get_controller()
    if borrower is None:
        report(controller.borrow(book_id, due_date=due_date))
        return
    selected = controller.select(book_id)
    if not selected.success:
        report(selected)
        return
    controller.form.borrower = borrower
    controller.form.due_date = due_date or ""
    report(controller.borrow(book_id, use_form=True))


@app.command("return")
def cli_return(book_id: int = typer.Argument(..., help="Book ID")):
    """Return a borrowed book."""
    controller = get_controller()
    report(controller.return_book(book_id))


@app.command("stats")
def cli_stats():
    """Show library statistics."""
    controller = get_controller()
    print_stats_result(controller.statistics())


@app.command("genres")
def cli_genres():
    """List the genres a book can have."""
    for genre in Library.genres():
        print(genre)


# --- Interactive menu ---
def list_all_books(controller: FormController):
    books = controller.books()
    if not books:
        console.print("[yellow]No books in library.[/]")
        return

    table = Table(title="📚 Catalog", show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True, justify="right")
    table.add_column("Title", style="white")
    table.add_column("Author", style="white")
    table.add_column("Genre", style="white")
    table.add_column("Status", no_wrap=True)
    table.add_column("Borrower", style="white")
    table.add_column("Due", style="white", no_wrap=True)

    for book in books:
        color = status_color(book)
        table.add_row(str(book.id), escape(book.title), escape(book.author), book.genre,
                      f"[{color}]{book.status}[/]", escape(book.borrower), book.due_date)

    console.print(table)
    stats = controller.statistics()
    console.print(f"[dim]📊 {stats['total_books']} books, {stats['available']} available, "
                  f"{stats['borrowed']} borrowed[/]")


def show_result(result: FormResult):
    if result.success:
        console.print(Panel.fit(f"[green]{escape(result.message)}[/]", title="✅ Success", border_style="green"))
    elif result.errors:
        content = "\n".join(f"• {escape(e)}" for e in result.errors)
        console.print(Panel.fit(content, title="❌ Validation failed", border_style="red"))
    else:
        console.print(f"[bold red]Error:[/] {escape(result.message)}")


def fill_form(controller: FormController):
    """Prompt for every form field, offering the current values as defaults."""
    form = controller.form
    form.title = Prompt.ask("Title", default=form.title, show_default=bool(form.title))
    form.author = Prompt.ask("Author", default=form.author, show_default=bool(form.author))
    form.isbn = Prompt.ask("ISBN", default=form.isbn, show_default=bool(form.isbn))
    form.year = Prompt.ask("Year", default=form.year, show_default=bool(form.year))
    genre_default = {"default": form.genre} if form.genre else {}
    form.genre = Prompt.ask("Genre", choices=controller.genres(), **genre_default)
    form.publisher = Prompt.ask("Publisher", default=form.publisher, show_default=bool(form.publisher))
    form.status = Prompt.ask("Status", choices=[s.value for s in BookStatus], default=form.status)
    if form.status == BookStatus.BORROWED.value:
        form.borrower = Prompt.ask("Borrower", default=form.borrower, show_default=bool(form.borrower))
        form.due_date = Prompt.ask("Due date (YYYY-MM-DD)", default=form.due_date, show_default=bool(form.due_date))


def select_book(controller: FormController) -> bool:
    book_id = IntPrompt.ask("🔍 Book ID")
    result = controller.select(book_id)
    if not result.success:
        show_result(result)
        return False
    return True


def add(controller: FormController):
    controller.cancel()
    fill_form(controller)
    show_result(controller.submit_add())


def edit(controller: FormController):
    if not select_book(controller):
        return
    fill_form(controller)
    show_result(controller.submit_update())


def remove(controller: FormController):
    if not select_book(controller):
        return
    form = controller.form
    console.print(Panel(
        f"[bold]Title:[/] {escape(form.title)}\n"
        f"[bold]Author:[/] {escape(form.author)}\n"
        f"[bold]ISBN:[/] {form.isbn}",
        title="📚 Book to delete",
        border_style="yellow"
    ))
    if Confirm.ask("🗑️ Delete this book?", default=False):
        show_result(controller.delete())
    else:
        controller.cancel()
        console.print("[blue]🚫 Deletion cancelled.[/]")


def borrow_or_return(controller: FormController):
    if not select_book(controller):
        return
    form = controller.form
    if form.status == BookStatus.BORROWED.value:
        show_result(controller.return_book())
        return
    form.borrower = Prompt.ask("Borrower", default="")
    form.due_date = Prompt.ask("Due date (YYYY-MM-DD, empty for default)", default="")
    if form.borrower.strip() or form.due_date.strip():
        show_result(controller.borrow(use_form=True))
    else:
        show_result(controller.borrow())


def stats(controller: FormController):
    statistics = controller.statistics()
    console.print(Panel.fit(
        f"[bold]Total Books:[/] {statistics['total_books']}\n"
        f"[bold]Available:[/] {statistics['available']}\n"
        f"[bold]Borrowed:[/] {statistics['borrowed']}\n"
        f"[bold]Unique Authors:[/] {statistics['unique_authors']}",
        title="📊 Statistics",
        border_style="blue"
    ))


def run_menu():
    """Simple interactive menu for the library inventory."""
    controller = get_controller()

    def render_menu() -> None:
        menu_items = [
            ("1", "List all books", "📚"),
            ("2", "Add a book", "➕"),
            ("3", "Edit a book", "✏️"),
            ("4", "Delete a book", "🗑️"),
            ("5", "Borrow / return a book", "🔁"),
            ("6", "Show statistics", "📊"),
            ("0", "Exit", "🚪"),
        ]

        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, icon in menu_items:
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")

        panel = Panel(
            table,
            title=f"{APP_NAME} v{settings.app_version}",
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        )
        console.print(panel)

    actions = {
        "1": list_all_books,
        "2": add,
        "3": edit,
        "4": remove,
        "5": borrow_or_return,
        "6": stats,
    }

    while True:
        render_menu()
        choice = Prompt.ask("Choose an option", choices=["1", "2", "3", "4", "5", "6", "0"], default="1").strip()
        if choice == "0":
            console.print("[green]Goodbye![/]")
            break
        actions[choice](controller)
        print()  # blank line between operations


def main():
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.WARNING))
    if len(sys.argv) > 1:
        app()
    else:
        run_menu()


if __name__ == "__main__":
    main()
