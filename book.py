from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class BookStatus(str, Enum):
    AVAILABLE = "Available"
    BORROWED = "Borrowed"


GENRES = (
    "Fiction",
    "Science Fiction",
    "Mystery",
    "Romance",
    "Thriller",
    "Biography",
    "History",
    "Science",
    "Technology",
    "Fantasy",
)

# Python attribute -> JSON key; order is the on-disk field order.
_JSON_KEYS = {
    "id": "id",
    "title": "title",
    "author": "author",
    "isbn": "isbn",
    "year": "year",
    "genre": "genre",
    "publisher": "publisher",
    "status": "status",
    "borrower": "borrower",
    "due_date": "dueDate",
}

EDITABLE_FIELDS = tuple(name for name in _JSON_KEYS if name != "id")


@dataclass
class Book:
    """A single book in the inventory."""

    title: str
    author: str
    isbn: str
    year: str
    genre: str
    publisher: str
    status: str = BookStatus.AVAILABLE.value
    borrower: str = ""
    due_date: str = ""
    id: int = 0

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    @property
    def is_borrowed(self) -> bool:
        return self.status == BookStatus.BORROWED.value

    def copy(self) -> "Book":
        return replace(self)

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in _JSON_KEYS.items()}

    @staticmethod
    def from_dict(data: dict) -> "Book":
        """Build a Book from its JSON object. Raises KeyError/TypeError/ValueError on malformed input."""
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        values = {attr: data[key] for attr, key in _JSON_KEYS.items()}
        values["id"] = int(values["id"])
        for name in EDITABLE_FIELDS:
            value = values[name]
            if value is None:
                values[name] = ""
            elif not isinstance(value, str):
                raise TypeError(f"Field '{_JSON_KEYS[name]}' must be a string")
        return Book(**values)
