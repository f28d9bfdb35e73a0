"""Service-boundary shapes, distinct from the stored entities and the wire models."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass
class BookDto:
    title: str
    author: str
    stock: int
    id: Optional[int] = None
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    publish_year: Optional[int] = None
    available: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class StudentIdCardDto:
    student_id: int
    card_number: Optional[str] = None
    id: Optional[int] = None
    issued_at: Optional[datetime] = None


@dataclass
class StudentDto:
    first_name: str
    last_name: str
    email: str
    age: int
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    id_card: Optional[StudentIdCardDto] = None
    books: List[BookDto] = field(default_factory=list)


@dataclass
class RentalDto:
    student_id: int
    book_id: int
    id: Optional[int] = None
    rented_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
