from __future__ import annotations

from datetime import datetime

from enrolment.timeutils import from_db


class Student:
    """A student row as stored in the ``students`` table."""

    def __init__(self, first_name: str, last_name: str, email: str, age: int,
                 id: int | None = None, created_at: datetime | None = None) -> None:
        self.id = id
        self.first_name = first_name.strip()
        self.last_name = last_name.strip()
        self.email = email.strip().lower()
        self.age = age
        self.created_at = created_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.first_name} {self.last_name} <{self.email}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "age": self.age,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_row(row) -> "Student":
        data = dict(row)
        return Student(
            id=data["id"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            email=data["email"],
            age=data["age"],
            created_at=from_db(data.get("created_at")),
        )


class StudentIdCard:
    """The one-to-one ID card issued to a student."""

    def __init__(self, card_number: str, student_id: int, id: int | None = None,
                 issued_at: datetime | None = None) -> None:
        self.id = id
        self.card_number = card_number.strip().upper()
        self.student_id = student_id
        self.issued_at = issued_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"Card {self.card_number} (student {self.student_id})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "card_number": self.card_number,
            "student_id": self.student_id,
            "issued_at": self.issued_at,
        }

    @staticmethod
    def from_row(row) -> "StudentIdCard":
        data = dict(row)
        return StudentIdCard(
            id=data["id"],
            card_number=data["card_number"],
            student_id=data["student_id"],
            issued_at=from_db(data.get("issued_at")),
        )
