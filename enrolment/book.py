from __future__ import annotations

from datetime import datetime

from enrolment.timeutils import from_db


class Book:
    """A catalogue entry together with its copy counts."""

    def __init__(self, title: str, author: str, stock: int, available: int | None = None,
                 isbn: str | None = None, publisher: str | None = None,
                 publish_year: int | None = None, id: int | None = None,
                 created_at: datetime | None = None) -> None:
        self.id = id
        self.title = title.strip()
        self.author = author.strip()
        self.isbn = isbn.strip() if isbn else None
        self.publisher = publisher
        self.publish_year = publish_year
        self.stock = stock
        # A new book has every copy on the shelf
        self.available = stock if available is None else available
        self.created_at = created_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.available}/{self.stock} available)"

    @property
    def rented(self) -> int:
        return self.stock - self.available

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "publisher": self.publisher,
            "publish_year": self.publish_year,
            "stock": self.stock,
            "available": self.available,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_row(row) -> "Book":
        data = dict(row)
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            isbn=data.get("isbn"),
            publisher=data.get("publisher"),
            publish_year=data.get("publish_year"),
            stock=data["stock"],
            available=data["available"],
            created_at=from_db(data.get("created_at")),
        )
