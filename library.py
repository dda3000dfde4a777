import logging
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from book import EDITABLE_FIELDS, GENRES, Book, BookStatus
from config import settings
from storage import PersistenceError, load_records, save_records
from utils.validators import ISBNValidator, ValidationError, validate_book

logger = logging.getLogger(__name__)


class Library:
    """Owns the book collection and keeps the JSON file in sync with it."""

    def __init__(self, data_file: Optional[str] = None, seed_samples: Optional[bool] = None,
                 loan_days: Optional[int] = None, default_borrower: Optional[str] = None) -> None:
        self.data_file = data_file or settings.data_file
        self.seed_samples = settings.seed_sample_data if seed_samples is None else seed_samples
        self.loan_days = settings.loan_days if loan_days is None else loan_days
        self.default_borrower = default_borrower or settings.default_borrower
        self.books: List[Book] = []

    # ------------------------- Persistence ------------------------- #
    def load(self) -> List[Book]:
        """Load the collection from disk.

        A missing file is seeded with the sample books (when enabled) and saved
        right away. On any read failure the collection is emptied and
        PersistenceError is raised.
        """
        try:
            records = load_records(self.data_file)
            books = [Book.from_dict(record) for record in records or []]
        except (KeyError, TypeError, ValueError) as e:
            self.books = []
            logger.error("Malformed data file %s: %s", self.data_file, e)
            raise PersistenceError(f"Could not read {self.data_file}: malformed book record ({e})") from e
        except PersistenceError as e:
            self.books = []
            logger.error("%s", e)
            raise

        if records is None:
            self.books = self._sample_books() if self.seed_samples else []
            logger.info("No data file at %s, starting with %d books", self.data_file, len(self.books))
            if self.books:
                self.save()
            return self.list_books()

        self.books = books
        logger.info("Loaded %d books from %s", len(self.books), self.data_file)
        return self.list_books()

    def save(self) -> None:
        """Write the whole collection to disk. The in-memory list is never rolled back."""
        try:
            save_records(self.data_file, [book.to_dict() for book in self.books])
        except PersistenceError as e:
            logger.error("%s", e)
            raise

    def next_id(self) -> int:
        return max((book.id for book in self.books), default=0) + 1

    # ------------------------- Core operations ------------------------- #
    def list_books(self) -> List[Book]:
        return [book.copy() for book in self.books]

    def find_by_id(self, book_id: int) -> Optional[Book]:
        book = self._get(book_id)
        return book.copy() if book else None

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        key = ISBNValidator.normalize_isbn(isbn)
        for book in self.books:
            if ISBNValidator.normalize_isbn(book.isbn) == key:
                return book.copy()
        return None

    def add_book(self, book: Book, today: Optional[date] = None) -> Book:
        """Validate and store a new book. Its id is assigned here."""
        values = self._clean(self._values_of(book))
        self._validate(values, today=today)

        new_book = Book(**values, id=self.next_id())
        self.books.append(new_book)
        logger.info("Added book %d (%s)", new_book.id, new_book.title)
        self.save()
        return new_book.copy()

    def update_book(self, book_id: int, today: Optional[date] = None, **changes: Any) -> Optional[Book]:
        """Apply field changes to a book. Returns the updated book or None if not found."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown book fields: {', '.join(sorted(unknown))}")

        book = self._get(book_id)
        if not book:
            return None

        values = self._values_of(book)
        values.update({k: v for k, v in changes.items() if v is not None})
        values = self._clean(values)
        self._validate(values, book_id=book_id, today=today, previous=book)

        for name, value in values.items():
            setattr(book, name, value)
        logger.info("Updated book %d", book_id)
        self.save()
        return book.copy()

    def remove_book(self, book_id: int) -> bool:
        book = self._get(book_id)
        if not book:
            return False
        self.books = [b for b in self.books if b.id != book_id]
        logger.info("Removed book %d", book_id)
        self.save()
        return True

    # ------------------------- Borrow / Return ------------------------- #
    def borrow_book(self, book_id: int, borrower: Optional[str] = None,
                    due_date: Union[str, date, None] = None, from_form: bool = False,
                    today: Optional[date] = None) -> Optional[Book]:
        """Mark a book as borrowed.

        From the edit form the borrower and due date are taken as given and
        validated. From any other control missing values fall back to the
        default borrower and a due date ``loan_days`` from today.
        """
        if isinstance(due_date, date):
            due_date = due_date.isoformat()
        if not from_form:
            if not (borrower or "").strip():
                borrower = self.default_borrower
            if not (due_date or "").strip():
                due_date = ((today or date.today()) + timedelta(days=self.loan_days)).isoformat()
        return self.update_book(
            book_id,
            today=today,
            status=BookStatus.BORROWED.value,
            borrower=borrower or "",
            due_date=due_date or "",
        )

    def return_book(self, book_id: int) -> Optional[Book]:
        book = self._get(book_id)
        if not book:
            return None
        book.status = BookStatus.AVAILABLE.value
        book.borrower = ""
        book.due_date = ""
        logger.info("Returned book %d", book_id)
        self.save()
        return book.copy()

    def toggle_status(self, book_id: int, today: Optional[date] = None) -> Optional[Book]:
        book = self._get(book_id)
        if not book:
            return None
        if book.is_borrowed:
            return self.return_book(book_id)
        return self.borrow_book(book_id, today=today)

    # ------------------------- Queries ------------------------- #
    def get_statistics(self) -> Dict[str, Any]:
        borrowed = sum(1 for b in self.books if b.is_borrowed)
        return {
            "total_books": len(self.books),
            "available": len(self.books) - borrowed,
            "borrowed": borrowed,
            "unique_authors": len({b.author for b in self.books}),
        }

    @staticmethod
    def genres() -> List[str]:
        return list(GENRES)

    # ------------------------- Utilities ------------------------- #
    def _get(self, book_id: int) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def _validate(self, values: Dict[str, str], book_id: Optional[int] = None,
                  today: Optional[date] = None, previous: Optional[Book] = None) -> None:
        errors = validate_book(values, self.books, book_id=book_id, today=today, previous=previous)
        if errors:
            logger.warning("Rejected book %s: %s", book_id or "(new)", "; ".join(errors))
            raise ValidationError(errors)

    @staticmethod
    def _values_of(book: Book) -> Dict[str, Any]:
        return {name: getattr(book, name) for name in EDITABLE_FIELDS}

    @staticmethod
    def _clean(values: Dict[str, Any]) -> Dict[str, str]:
        cleaned = {}
        for name in EDITABLE_FIELDS:
            value = values.get(name)
            if isinstance(value, Enum):
                value = value.value
            cleaned[name] = "" if value is None else str(value).strip()
        if not cleaned["status"]:
            cleaned["status"] = BookStatus.AVAILABLE.value
        if cleaned["status"] == BookStatus.AVAILABLE.value:
            cleaned["borrower"] = ""
            cleaned["due_date"] = ""
        return cleaned

    def _sample_books(self) -> List[Book]:
        due = (date.today() + timedelta(days=self.loan_days)).isoformat()
        return [
            Book(title="The Great Gatsby", author="F. Scott Fitzgerald", isbn="9780743273565",
                 year="1925", genre="Fiction", publisher="Scribner", id=1),
            Book(title="To Kill a Mockingbird", author="Harper Lee", isbn="9780061120084",
                 year="1960", genre="Fiction", publisher="J. B. Lippincott & Co.",
                 status=BookStatus.BORROWED.value, borrower="John Smith", due_date=due, id=2),
        ]
