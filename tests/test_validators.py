import pytest
from datetime import date, timedelta

from book import Book
from utils.validators import (
    ISBNValidator,
    LoanValidator,
    TextValidator,
    ValidationError,
    YearValidator,
    validate_book,
)

TODAY = date(2024, 5, 1)


def valid_fields(**overrides):
    fields = {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "isbn": "9780743273565",
        "year": "1925",
        "genre": "Fiction",
        "publisher": "Scribner",
        "status": "Available",
        "borrower": "",
        "due_date": "",
    }
    fields.update(overrides)
    return fields


@pytest.mark.parametrize("isbn", [
    "9780743273565",
    "979-10-90636-07-1",
    "978 0 06 112008 4",
    "0306406152",
    "080442957X",
    "080442957x",
])
def test_isbn_accepts_valid_formats(isbn):
    assert ISBNValidator.is_valid_isbn(isbn)
    assert ISBNValidator.validate(isbn).ok


@pytest.mark.parametrize("isbn", [
    "9770743273565",  # 13 digits with wrong prefix
    "978074327356",   # 12 digits
    "030640615",      # 9 digits
    "X306406152",     # check char only allowed last
    "97807432735AB",
    "ISBN9780743273565",
    "\u0669\u0667\u0668\u0660\u0667\u0664\u0663\u0662\u0667\u0663\u0665\u0666\u0665",  # Arabic-Indic digits
])
def test_isbn_rejects_invalid_formats(isbn):
    result = ISBNValidator.validate(isbn)
    assert not result.ok
    assert result.reason == ISBNValidator.FORMAT_MESSAGE


def test_isbn_required():
    assert ISBNValidator.validate("   ").reason == "ISBN is required"
    assert ISBNValidator.validate(None).reason == "ISBN is required"


def test_isbn_uniqueness_ignores_formatting_and_case():
    existing = [Book("Some Book", "Someone", "080442957x", "1999", "Fiction", "Pub", id=1)]
    assert not ISBNValidator.validate_unique("0-8044-2957-X", existing).ok
    # the book being edited does not clash with itself
    assert ISBNValidator.validate_unique("0-8044-2957-X", existing, book_id=1).ok


def test_min_length_rules():
    assert TextValidator.validate_min_length("", "Title").reason == "Title is required"
    assert TextValidator.validate_min_length(" A ", "Title").reason == "Title must be at least 2 characters long"
    assert TextValidator.validate_min_length("It", "Title").ok


@pytest.mark.parametrize("year, reason", [
    ("", "Year is required"),
    ("99", "Year must be exactly 4 digits"),
    ("19a5", "Year must be exactly 4 digits"),
    ("12345", "Year must be exactly 4 digits"),
    ("\u0661\u0669\u0662\u0665", "Year must be exactly 4 digits"),  # Arabic-Indic 1925
    ("3000", "Year must be between 1000 and 2099"),
    ("0999", "Year must be between 1000 and 2099"),
])
def test_year_rejections(year, reason):
    assert YearValidator.validate(year).reason == reason


@pytest.mark.parametrize("year", ["1000", "1925", "2099"])
def test_year_bounds_inclusive(year):
    assert YearValidator.validate(year).ok


def test_due_date_rules():
    assert LoanValidator.validate_due_date("", TODAY).reason == "Due date is required"
    assert LoanValidator.validate_due_date("01/05/2024", TODAY).reason == "Due date must be a valid date (YYYY-MM-DD)"
    assert LoanValidator.validate_due_date("2024-04-30", TODAY).reason == "Due date cannot be in the past"
    assert LoanValidator.validate_due_date("2024-05-01", TODAY).ok
    assert LoanValidator.validate_due_date("2024-04-30", TODAY, allow_past=True).ok


@pytest.mark.parametrize("due_date", ["20240515", "2024-W20-3", "2024-05-15T00:00", "\uff12\uff10\uff12\uff14-05-15"])
def test_due_date_must_be_extended_iso_date(due_date):
    assert LoanValidator.parse_due_date(due_date) is None
    assert LoanValidator.validate_due_date(due_date, TODAY).reason == "Due date must be a valid date (YYYY-MM-DD)"


def test_valid_book_has_no_errors():
    assert validate_book(valid_fields(), today=TODAY) == []


def test_all_failures_are_collected():
    errors = validate_book(valid_fields(title="", author="X", isbn="123", year="99", genre="Poetry",
                                        publisher=""), today=TODAY)
    assert errors == [
        "Title is required",
        "Author must be at least 2 characters long",
        ISBNValidator.FORMAT_MESSAGE,
        "Year must be exactly 4 digits",
        "Genre must be one of: Fiction, Science Fiction, Mystery, Romance, Thriller, "
        "Biography, History, Science, Technology, Fantasy",
        "Publisher is required",
    ]


def test_borrowed_requires_borrower_and_due_date():
    errors = validate_book(valid_fields(status="Borrowed"), today=TODAY)
    assert errors == ["Borrower name is required", "Due date is required"]


def test_borrower_rules_only_apply_when_borrowed():
    assert validate_book(valid_fields(borrower="X", due_date="garbage"), today=TODAY) == []


def test_unknown_status_rejected():
    assert validate_book(valid_fields(status="Lost"), today=TODAY) == ["Status must be Available or Borrowed"]


def test_unchanged_past_due_date_allowed_for_existing_loan():
    past = (TODAY - timedelta(days=3)).isoformat()
    previous = Book("The Great Gatsby", "F. Scott Fitzgerald", "9780743273565", "1925", "Fiction",
                    "Scribner", status="Borrowed", borrower="John Smith", due_date=past, id=1)
    fields = valid_fields(status="Borrowed", borrower="John Smith", due_date=past, title="Gatsby")
    assert validate_book(fields, [previous], book_id=1, today=TODAY, previous=previous) == []
    # a freshly borrowed book may not get a past due date
    assert validate_book(fields, today=TODAY) == ["Due date cannot be in the past"]


def test_validation_error_carries_all_messages():
    err = ValidationError(["Title is required", "Year is required"])
    assert err.errors == ["Title is required", "Year is required"]
    assert str(err) == "Title is required\nYear is required"
    assert isinstance(err, ValueError)
