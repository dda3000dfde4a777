"""Form controller sitting between the presentation layer and the Library.

The presentation layer owns the widgets; it copies their values into a
``BookForm``, calls one of the ``FormController`` actions, and shows the
returned ``FormResult`` as a notification. Nothing here raises for ordinary
user mistakes or file problems.
"""
from dataclasses import dataclass, field, fields
from datetime import date
from typing import Callable, Dict, List, Optional

from book import EDITABLE_FIELDS, Book, BookStatus
from library import Library
from storage import PersistenceError
from utils.validators import ValidationError


@dataclass
class BookForm:
    """Field values of the data-entry form, exactly as typed or selected."""

    title: str = ""
    author: str = ""
    isbn: str = ""
    year: str = ""
    genre: str = ""
    publisher: str = ""
    status: str = BookStatus.AVAILABLE.value
    borrower: str = ""
    due_date: str = ""
    selected_id: Optional[int] = None

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)

    def load(self, book: Book) -> None:
        for name in EDITABLE_FIELDS:
            setattr(self, name, getattr(book, name))
        self.selected_id = book.id

    def values(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in EDITABLE_FIELDS}

    @classmethod
    def from_book(cls, book: Book) -> "BookForm":
        form = cls()
        form.load(book)
        return form


@dataclass
class FormResult:
    success: bool
    message: str
    errors: List[str] = field(default_factory=list)
    book: Optional[Book] = None


class FormController:
    def __init__(self, library: Library, form: Optional[BookForm] = None) -> None:
        self.library = library
        self.form = form or BookForm()
        self._subscribers: List[Callable[[List[Book]], None]] = []

    # ------------------------- Read side ------------------------- #
    def books(self) -> List[Book]:
        return self.library.list_books()

    def genres(self) -> List[str]:
        return self.library.genres()

    def statistics(self) -> Dict[str, int]:
        return self.library.get_statistics()

    def subscribe(self, callback: Callable[[List[Book]], None]) -> None:
        """Register a callback that receives the fresh book list after every change."""
        self._subscribers.append(callback)

    # ------------------------- Form state ------------------------- #
    def select(self, book_id: int) -> FormResult:
        book = self.library.find_by_id(book_id)
        if not book:
            return FormResult(False, f"Book with ID {book_id} not found")
        self.form.load(book)
        return FormResult(True, f"Selected '{book.title}'", book=book)

    def cancel(self) -> None:
        self.form.clear()

    # ------------------------- Actions ------------------------- #
    def submit_add(self, today: Optional[date] = None) -> FormResult:
        values = self.form.values()
        result = self._run(lambda: self.library.add_book(Book(**values), today=today),
                           "Book added successfully!")
        if result.success:
            self.form.clear()
        return result

    def submit_update(self, today: Optional[date] = None) -> FormResult:
        book_id = self.form.selected_id
        if book_id is None:
            return FormResult(False, "No book selected")
        values = self.form.values()
        result = self._run(lambda: self.library.update_book(book_id, today=today, **values),
                           "Book updated successfully!", book_id)
        if result.success:
            self.form.load(result.book)
        return result

    def delete(self, book_id: Optional[int] = None) -> FormResult:
        book_id = self.form.selected_id if book_id is None else book_id
        if book_id is None:
            return FormResult(False, "No book selected")
        try:
            removed = self.library.remove_book(book_id)
        except PersistenceError as e:
            if self.form.selected_id == book_id:
                self.form.clear()
            self._notify()
            return FormResult(False, str(e))
        if not removed:
            return FormResult(False, f"Book with ID {book_id} not found")
        if self.form.selected_id == book_id:
            self.form.clear()
        self._notify()
        return FormResult(True, "Book deleted successfully!")

    def borrow(self, book_id: Optional[int] = None, use_form: bool = False,
               today: Optional[date] = None, due_date: Optional[str] = None) -> FormResult:
        """Mark a book as borrowed.

        With ``use_form`` the borrower and due date come from the form and are
        validated; otherwise the library defaults fill whatever is not given.
        """
        book_id = self.form.selected_id if book_id is None else book_id
        if book_id is None:
            return FormResult(False, "No book selected")
        if use_form:
            action = lambda: self.library.borrow_book(book_id, self.form.borrower, self.form.due_date,
                                                      from_form=True, today=today)
        else:
            action = lambda: self.library.borrow_book(book_id, due_date=due_date, today=today)
        result = self._run(action, None, book_id)
        if result.success:
            result.message = (f"'{result.book.title}' borrowed by {result.book.borrower} "
                              f"until {result.book.due_date}")
            self._refresh_selection(result.book)
        return result

    def return_book(self, book_id: Optional[int] = None) -> FormResult:
        book_id = self.form.selected_id if book_id is None else book_id
        if book_id is None:
            return FormResult(False, "No book selected")
        result = self._run(lambda: self.library.return_book(book_id), None, book_id)
        if result.success:
            result.message = f"'{result.book.title}' returned"
            self._refresh_selection(result.book)
        return result

    def toggle_status(self, book_id: Optional[int] = None, use_form: bool = False,
                      today: Optional[date] = None) -> FormResult:
        """Flip a book between Available and Borrowed."""
        book_id = self.form.selected_id if book_id is None else book_id
        if book_id is None:
            return FormResult(False, "No book selected")
        current = self.library.find_by_id(book_id)
        if not current:
            return FormResult(False, f"Book with ID {book_id} not found")
        if current.is_borrowed:
            return self.return_book(book_id)
        return self.borrow(book_id, use_form=use_form, today=today)

    # ------------------------- Utilities ------------------------- #
    def _refresh_selection(self, book: Book) -> None:
        if self.form.selected_id == book.id:
            self.form.load(book)

    def _run(self, action: Callable[[], Optional[Book]], message: Optional[str],
             book_id: Optional[int] = None) -> FormResult:
        try:
            book = action()
        except ValidationError as e:
            return FormResult(False, "Validation failed", errors=e.errors)
        except PersistenceError as e:
            # The change is already applied in memory; keep the display in step with it.
            self._notify()
            return FormResult(False, str(e))
        if book is None:
            return FormResult(False, f"Book with ID {book_id} not found")
        self._notify()
        return FormResult(True, message or "", book=book)

    def _notify(self) -> None:
        books = self.library.list_books()
        for callback in self._subscribers:
            callback(books)
