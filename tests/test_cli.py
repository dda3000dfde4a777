import json
from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from config import settings
from main import app, LibraryManager
from utils.ui_helpers import OUTPUT_MODE_ENV

runner = CliRunner()

GATSBY = ["add", "--title", "The Great Gatsby", "--author", "F. Scott Fitzgerald",
          "--isbn", "9780743273565", "--year", "1925", "--genre", "Fiction", "--publisher", "Scribner"]


@pytest.fixture(autouse=True)
def cli_env(data_file, monkeypatch):
    monkeypatch.setattr(settings, "data_file", data_file)
    monkeypatch.setattr(settings, "seed_sample_data", False)
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")
    LibraryManager.reset()
    yield
    LibraryManager.reset()


def test_list_no_books():
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_add_book_success(data_file):
    result = runner.invoke(app, GATSBY)
    assert result.exit_code == 0
    assert "Book added successfully!" in result.stdout
    assert "ID: 1" in result.stdout

    with open(data_file, encoding="utf-8") as f:
        assert json.load(f)[0]["title"] == "The Great Gatsby"


def test_add_book_validation_errors():
    result = runner.invoke(app, ["add", "--title", "X", "--year", "3000"])
    assert result.exit_code == 0
    assert "Validation failed:" in result.stdout
    assert "- Title must be at least 2 characters long" in result.stdout
    assert "- Year must be between 1000 and 2099" in result.stdout
    assert "- Author is required" in result.stdout


def test_list_shows_books():
    runner.invoke(app, GATSBY)
    result = runner.invoke(app, ["list"])
    assert "1 - The Great Gatsby by F. Scott Fitzgerald [Available]" in result.stdout


def test_list_json_output():
    runner.invoke(app, GATSBY)
    result = runner.invoke(app, ["--output", "json", "list"])
    data = json.loads(result.stdout)
    assert data[0]["isbn"] == "9780743273565"
    assert data[0]["dueDate"] == ""


def test_find_book():
    runner.invoke(app, GATSBY)
    result = runner.invoke(app, ["find", "1"])
    assert "Book Found" in result.stdout
    assert "Title: The Great Gatsby" in result.stdout
    assert "Publisher: Scribner" in result.stdout


def test_find_book_not_found():
    result = runner.invoke(app, ["find", "42"])
    assert "Book with ID 42 not found." in result.stdout


def test_edit_book():
    runner.invoke(app, GATSBY)
    result = runner.invoke(app, ["edit", "1", "--title", "Gatsby"])
    assert "Book updated successfully!" in result.stdout
    assert "Title: Gatsby" in runner.invoke(app, ["find", "1"]).stdout


def test_remove_book_with_confirmation():
    runner.invoke(app, GATSBY)
    result = runner.invoke(app, ["remove", "1"], input="n\n")
    assert "Deletion cancelled." in result.stdout

    result = runner.invoke(app, ["remove", "1", "--yes"])
    assert "Book deleted successfully!" in result.stdout
    assert "No books in library." in runner.invoke(app, ["list"]).stdout


def test_borrow_with_defaults_and_return():
    runner.invoke(app, GATSBY)
    result = runner.invoke(app, ["borrow", "1"])
    assert f"borrowed by {settings.default_borrower}" in result.stdout

    result = runner.invoke(app, ["return", "1"])
    assert "'The Great Gatsby' returned" in result.stdout


def test_borrow_with_due_date_only():
    runner.invoke(app, GATSBY)
    due = (date.today() + timedelta(days=30)).isoformat()
    result = runner.invoke(app, ["borrow", "1", "--due-date", due])
    assert f"'The Great Gatsby' borrowed by {settings.default_borrower} until {due}" in result.stdout


def test_borrow_from_form_requires_borrower():
    runner.invoke(app, GATSBY)
    due = (date.today() + timedelta(days=14)).isoformat()
    result = runner.invoke(app, ["borrow", "1", "--borrower", "", "--due-date", due])
    assert "- Borrower name is required" in result.stdout


def test_borrow_with_borrower():
    runner.invoke(app, GATSBY)
    due = (date.today() + timedelta(days=14)).isoformat()
    result = runner.invoke(app, ["borrow", "1", "--borrower", "John Smith", "--due-date", due])
    assert f"'The Great Gatsby' borrowed by John Smith until {due}" in result.stdout


def test_stats():
    runner.invoke(app, GATSBY)
    runner.invoke(app, ["borrow", "1"])
    result = runner.invoke(app, ["stats"])
    assert "Total Books: 1" in result.stdout
    assert "Available: 0" in result.stdout
    assert "Borrowed: 1" in result.stdout


def test_genres():
    result = runner.invoke(app, ["genres"])
    assert result.stdout.splitlines()[0] == "Fiction"
    assert "Technology" in result.stdout


def test_corrupt_file_warns_and_starts_empty(data_file):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write("not json")
    result = runner.invoke(app, ["list"])
    assert "Warning: Could not read" in result.stdout
    assert "No books in library." in result.stdout
