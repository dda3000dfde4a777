import re
from datetime import date
from typing import Iterable, List, Mapping, NamedTuple, Optional

from book import GENRES, Book, BookStatus


class ValidationResult(NamedTuple):
    ok: bool
    reason: str = ""


PASS = ValidationResult(True)


def _fail(reason: str) -> ValidationResult:
    return ValidationResult(False, reason)


class ValidationError(ValueError):
    """One or more field rules failed. All violations are kept in ``errors``."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors: List[str] = list(errors)
        super().__init__("\n".join(self.errors))


class ISBNValidator:
    """ISBN-10 / ISBN-13 format checks on hyphen- and space-stripped input."""

    ISBN10_PATTERN = re.compile(r"^[0-9]{9}[0-9X]$")
    ISBN13_PATTERN = re.compile(r"^97[89][0-9]{10}$")
    FORMAT_MESSAGE = "ISBN must be 10 digits (last may be X) or 13 digits starting with 978 or 979"

    @staticmethod
    def normalize_isbn(raw: Optional[str]) -> str:
        if raw is None:
            return ""
        return re.sub(r"[-\s]", "", raw).upper()

    @staticmethod
    def is_valid_isbn(isbn: Optional[str]) -> bool:
        s = ISBNValidator.normalize_isbn(isbn)
        return bool(ISBNValidator.ISBN10_PATTERN.match(s) or ISBNValidator.ISBN13_PATTERN.match(s))

    @staticmethod
    def validate(isbn: Optional[str]) -> ValidationResult:
        if not (isbn or "").strip():
            return _fail("ISBN is required")
        if not ISBNValidator.is_valid_isbn(isbn):
            return _fail(ISBNValidator.FORMAT_MESSAGE)
        return PASS

    @staticmethod
    def validate_unique(isbn: str, books: Iterable[Book], book_id: Optional[int] = None) -> ValidationResult:
        key = ISBNValidator.normalize_isbn(isbn)
        for book in books:
            if book.id != book_id and ISBNValidator.normalize_isbn(book.isbn) == key:
                return _fail(f"A book with ISBN {isbn.strip()} already exists")
        return PASS


class TextValidator:
    @staticmethod
    def validate_required(value: Optional[str], label: str) -> ValidationResult:
        if value is None or not value.strip():
            return _fail(f"{label} is required")
        return PASS

    @staticmethod
    def validate_min_length(value: Optional[str], label: str, min_length: int = 2) -> ValidationResult:
        required = TextValidator.validate_required(value, label)
        if not required.ok:
            return required
        if len(value.strip()) < min_length:
            return _fail(f"{label} must be at least {min_length} characters long")
        return PASS


class YearValidator:
    MIN_YEAR = 1000
    MAX_YEAR = 2099

    @staticmethod
    def validate(year: Optional[str]) -> ValidationResult:
        if year is None or not year.strip():
            return _fail("Year is required")
        s = year.strip()
        if not re.fullmatch(r"[0-9]{4}", s):
            return _fail("Year must be exactly 4 digits")
        if not YearValidator.MIN_YEAR <= int(s) <= YearValidator.MAX_YEAR:
            return _fail(f"Year must be between {YearValidator.MIN_YEAR} and {YearValidator.MAX_YEAR}")
        return PASS


class ChoiceValidator:
    @staticmethod
    def validate_genre(genre: Optional[str]) -> ValidationResult:
        if genre is None or not genre.strip():
            return _fail("Genre is required")
        if genre.strip() not in GENRES:
            return _fail(f"Genre must be one of: {', '.join(GENRES)}")
        return PASS

    @staticmethod
    def validate_status(status: Optional[str]) -> ValidationResult:
        if status not in (BookStatus.AVAILABLE.value, BookStatus.BORROWED.value):
            return _fail("Status must be Available or Borrowed")
        return PASS


class LoanValidator:
    """Borrower and due-date rules, applied only to borrowed books."""

    DUE_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

    @staticmethod
    def parse_due_date(raw: Optional[str]) -> Optional[date]:
        s = (raw or "").strip()
        if not LoanValidator.DUE_DATE_PATTERN.match(s):
            return None
        try:
            return date.fromisoformat(s)
        except ValueError:
            return None

    @staticmethod
    def validate_borrower(borrower: Optional[str]) -> ValidationResult:
        return TextValidator.validate_min_length(borrower, "Borrower name")

    @staticmethod
    def validate_due_date(due_date: Optional[str], today: Optional[date] = None,
                          allow_past: bool = False) -> ValidationResult:
        if due_date is None or not due_date.strip():
            return _fail("Due date is required")
        parsed = LoanValidator.parse_due_date(due_date)
        if parsed is None:
            return _fail("Due date must be a valid date (YYYY-MM-DD)")
        if not allow_past and parsed < (today or date.today()):
            return _fail("Due date cannot be in the past")
        return PASS


def validate_book(values: Mapping[str, str], books: Iterable[Book] = (), book_id: Optional[int] = None,
                  today: Optional[date] = None, previous: Optional[Book] = None) -> List[str]:
    """Run every field rule over candidate values and return all failure messages.

    ``book_id`` excludes the record being edited from the ISBN uniqueness check.
    ``previous`` is the stored version of that record; an unchanged due date on a
    book that was already borrowed is not re-checked against today.
    """
    isbn = values.get("isbn")
    status = values.get("status") or BookStatus.AVAILABLE.value
    results = [
        TextValidator.validate_min_length(values.get("title"), "Title"),
        TextValidator.validate_min_length(values.get("author"), "Author"),
        ISBNValidator.validate(isbn),
        YearValidator.validate(values.get("year")),
        ChoiceValidator.validate_genre(values.get("genre")),
        TextValidator.validate_required(values.get("publisher"), "Publisher"),
        ChoiceValidator.validate_status(status),
    ]
    if results[2].ok:
        results.append(ISBNValidator.validate_unique(isbn, books, book_id))

    if status == BookStatus.BORROWED.value:
        due_date = values.get("due_date")
        unchanged = (
            previous is not None
            and previous.is_borrowed
            and (due_date or "").strip() == previous.due_date
        )
        results.append(LoanValidator.validate_borrower(values.get("borrower")))
        results.append(LoanValidator.validate_due_date(due_date, today, allow_past=unchanged))

    return [r.reason for r in results if not r.ok]
