"""Field-by-field conversions between entities, DTOs, requests and responses.

All functions are pure: they never touch the database and never compute
anything beyond copying, renaming or dropping fields.
"""
from __future__ import annotations

from typing import Iterable, Optional

from enrolment.book import Book
from enrolment.dto import BookDto, RentalDto, StudentDto, StudentIdCardDto
from enrolment.rental import Rental
from enrolment.schemas import (
    BookRequest,
    BookResponse,
    RentalRequest,
    RentalResponse,
    StudentIdCardRequest,
    StudentIdCardResponse,
    StudentRequest,
    StudentResponse,
)
from enrolment.student import Student, StudentIdCard


# --- Book ---
def book_entity_to_dto(entity: Book) -> BookDto:
    return BookDto(
        id=entity.id,
        title=entity.title,
        author=entity.author,
        isbn=entity.isbn,
        publisher=entity.publisher,
        publish_year=entity.publish_year,
        stock=entity.stock,
        available=entity.available,
        created_at=entity.created_at,
    )


def book_dto_to_entity(dto: BookDto) -> Book:
    return Book(
        id=dto.id,
        title=dto.title,
        author=dto.author,
        isbn=dto.isbn,
        publisher=dto.publisher,
        publish_year=dto.publish_year,
        stock=dto.stock,
        available=dto.available,
        created_at=dto.created_at,
    )


def book_request_to_dto(request: BookRequest) -> BookDto:
    # identity and copy bookkeeping are never taken from the client
    return BookDto(
        id=None,
        title=request.title,
        author=request.author,
        isbn=request.isbn,
        publisher=request.publisher,
        publish_year=request.publish_year,
        stock=request.stock,
    )


def book_dto_to_response(dto: BookDto) -> BookResponse:
    return BookResponse(
        id=dto.id,
        title=dto.title,
        author=dto.author,
        isbn=dto.isbn,
        publisher=dto.publisher,
        publish_year=dto.publish_year,
        stock=dto.stock,
        available=dto.available if dto.available is not None else dto.stock,
    )


# --- Student ID card ---
def id_card_entity_to_dto(entity: StudentIdCard) -> StudentIdCardDto:
    return StudentIdCardDto(
        id=entity.id,
        card_number=entity.card_number,
        student_id=entity.student_id,
        issued_at=entity.issued_at,
    )


def id_card_dto_to_entity(dto: StudentIdCardDto) -> StudentIdCard:
    return StudentIdCard(
        id=dto.id,
        card_number=dto.card_number,
        student_id=dto.student_id,
        issued_at=dto.issued_at,
    )


def id_card_request_to_dto(request: StudentIdCardRequest) -> StudentIdCardDto:
    return StudentIdCardDto(id=None, student_id=request.student_id, card_number=request.card_number)


def id_card_dto_to_response(dto: StudentIdCardDto) -> StudentIdCardResponse:
    return StudentIdCardResponse(
        id=dto.id,
        card_number=dto.card_number,
        student_id=dto.student_id,
        issued_at=dto.issued_at,
    )


# --- Student ---
def student_entity_to_dto(entity: Student, id_card: Optional[StudentIdCard] = None,
                          books: Iterable[Book] = ()) -> StudentDto:
    return StudentDto(
        id=entity.id,
        first_name=entity.first_name,
        last_name=entity.last_name,
        email=entity.email,
        age=entity.age,
        created_at=entity.created_at,
        id_card=id_card_entity_to_dto(id_card) if id_card is not None else None,
        books=[book_entity_to_dto(b) for b in books],
    )


def student_dto_to_entity(dto: StudentDto) -> Student:
    return Student(
        id=dto.id,
        first_name=dto.first_name,
        last_name=dto.last_name,
        email=dto.email,
        age=dto.age,
        created_at=dto.created_at,
    )


def student_request_to_dto(request: StudentRequest) -> StudentDto:
    return StudentDto(
        id=None,
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        age=request.age,
    )


def student_dto_to_response(dto: StudentDto) -> StudentResponse:
    return StudentResponse(
        id=dto.id,
        first_name=dto.first_name,
        last_name=dto.last_name,
        email=dto.email,
        age=dto.age,
        student_id_card_response=id_card_dto_to_response(dto.id_card) if dto.id_card else None,
        book_response_list=[book_dto_to_response(b) for b in dto.books],
    )


# --- Rental ---
def rental_entity_to_dto(entity: Rental) -> RentalDto:
    return RentalDto(
        id=entity.id,
        student_id=entity.student_id,
        book_id=entity.book_id,
        rented_at=entity.rented_at,
        returned_at=entity.returned_at,
    )


def rental_dto_to_entity(dto: RentalDto) -> Rental:
    return Rental(
        id=dto.id,
        student_id=dto.student_id,
        book_id=dto.book_id,
        rented_at=dto.rented_at,
        returned_at=dto.returned_at,
    )


def rental_request_to_dto(request: RentalRequest) -> RentalDto:
    return RentalDto(id=None, student_id=request.student_id, book_id=request.book_id)


def rental_dto_to_response(dto: RentalDto) -> RentalResponse:
    return RentalResponse(
        id=dto.id,
        student_id=dto.student_id,
        book_id=dto.book_id,
        rented_at=dto.rented_at,
        returned_at=dto.returned_at,
    )
