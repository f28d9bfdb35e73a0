"""Student Enrolment - Services Package

This package contains the business services:
- Student and student ID card service
- Book catalogue service
- Rental (stock bookkeeping) service

``build_services`` wires them to their repositories.
"""
from dataclasses import dataclass
from typing import Optional

from enrolment.config import settings
from enrolment.database import Database
from enrolment.repositories import BookRepository, RentalRepository, StudentIdCardRepository, StudentRepository
from enrolment.services.book_service import BookService
from enrolment.services.rental_service import RentalService
from enrolment.services.student_service import StudentIdCardService, StudentService


@dataclass
class Services:
    students: StudentService
    id_cards: StudentIdCardService
    books: BookService
    rentals: RentalService


def build_services(database: Database, id_card_prefix: Optional[str] = None) -> Services:
    students = StudentRepository()
    id_cards = StudentIdCardRepository()
    books = BookRepository()
    rentals = RentalRepository()
    return Services(
        students=StudentService(database, students, id_cards, books, rentals),
        id_cards=StudentIdCardService(database, students, id_cards, id_card_prefix or settings.id_card_prefix),
        books=BookService(database, books, rentals),
        rentals=RentalService(database, students, books, rentals),
    )


__all__ = [
    "BookService",
    "RentalService",
    "Services",
    "StudentIdCardService",
    "StudentService",
    "build_services",
]
