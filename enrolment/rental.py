from __future__ import annotations

from datetime import datetime

from enrolment.timeutils import from_db


class Rental:
    """A book lent to a student; active while ``returned_at`` is None."""

    def __init__(self, student_id: int, book_id: int, rented_at: datetime | None = None,
                 returned_at: datetime | None = None, id: int | None = None) -> None:
        self.id = id
        self.student_id = student_id
        self.book_id = book_id
        self.rented_at = rented_at
        self.returned_at = returned_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        state = "active" if self.is_active else "returned"
        return f"Rental {self.id}: book {self.book_id} -> student {self.student_id} ({state})"

    @property
    def is_active(self) -> bool:
        return self.returned_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "book_id": self.book_id,
            "rented_at": self.rented_at,
            "returned_at": self.returned_at,
        }

    @staticmethod
    def from_row(row) -> "Rental":
        data = dict(row)
        return Rental(
            id=data["id"],
            student_id=data["student_id"],
            book_id=data["book_id"],
            rented_at=from_db(data.get("rented_at")),
            returned_at=from_db(data.get("returned_at")),
        )
