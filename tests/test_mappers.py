from datetime import datetime, timezone

from enrolment import mappers
from enrolment.book import Book
from enrolment.dto import BookDto, StudentDto
from enrolment.rental import Rental
from enrolment.schemas import BookRequest, RentalRequest, StudentIdCardRequest, StudentRequest
from enrolment.student import Student, StudentIdCard

NOW = datetime(2024, 9, 1, 8, 30, tzinfo=timezone.utc)


def test_book_entity_round_trip_keeps_all_fields():
    book = Book(title="Dune", author="Frank Herbert", isbn="9780306406157", publisher="Chilton",
                publish_year=1965, stock=4, available=3, id=7, created_at=NOW)
    again = mappers.book_dto_to_entity(mappers.book_entity_to_dto(book))
    assert again.to_dict() == book.to_dict()


def test_student_entity_round_trip_keeps_all_fields():
    student = Student(first_name="John", last_name="Doe", email="john@example.com", age=21, id=3, created_at=NOW)
    again = mappers.student_dto_to_entity(mappers.student_entity_to_dto(student))
    assert again.to_dict() == student.to_dict()


def test_id_card_entity_round_trip_keeps_all_fields():
    card = StudentIdCard(card_number="STU0123456789AB", student_id=3, id=1, issued_at=NOW)
    again = mappers.id_card_dto_to_entity(mappers.id_card_entity_to_dto(card))
    assert again.to_dict() == card.to_dict()


def test_rental_entity_round_trip_keeps_all_fields():
    rental = Rental(student_id=3, book_id=7, rented_at=NOW, returned_at=None, id=11)
    again = mappers.rental_dto_to_entity(mappers.rental_entity_to_dto(rental))
    assert again.to_dict() == rental.to_dict()


def test_requests_never_carry_an_identity():
    # unknown "id" keys in the body are ignored by the request models
    student = StudentRequest.model_validate(
        {"id": 99, "firstName": "John", "lastName": "Doe", "email": "john@example.com", "age": 21}
    )
    book = BookRequest.model_validate({"id": 99, "title": "Dune", "author": "Frank Herbert", "stock": 2})
    rental = RentalRequest.model_validate({"id": 99, "studentId": 1, "bookId": 2})
    card = StudentIdCardRequest.model_validate({"id": 99, "studentId": 1})

    assert mappers.student_request_to_dto(student).id is None
    assert mappers.book_request_to_dto(book).id is None
    assert mappers.rental_request_to_dto(rental).id is None
    assert mappers.id_card_request_to_dto(card).id is None


def test_book_request_does_not_set_available():
    dto = mappers.book_request_to_dto(BookRequest(title="Dune", author="Frank Herbert", stock=5))
    assert dto.available is None
    assert dto.stock == 5


def test_id_card_dto_exposes_flat_student_id():
    card = StudentIdCard(card_number="stu-0001", student_id=42, id=5, issued_at=NOW)
    response = mappers.id_card_dto_to_response(mappers.id_card_entity_to_dto(card))
    assert response.model_dump(by_alias=True) == {
        "id": 5,
        "cardNumber": "STU-0001",
        "studentId": 42,
        "issuedAt": NOW,
    }


def test_student_response_without_card_or_rentals():
    dto = StudentDto(id=1, first_name="John", last_name="Doe", email="john@example.com", age=21)
    body = mappers.student_dto_to_response(dto).model_dump(by_alias=True)
    assert body["studentIdCardResponse"] is None
    assert body["bookResponseList"] == []
    assert body["firstName"] == "John"


def test_student_response_nests_card_and_books():
    student = Student(first_name="John", last_name="Doe", email="john@example.com", age=21, id=1)
    card = StudentIdCard(card_number="STU1", student_id=1, id=9)
    books = [Book(title="Dune", author="Frank Herbert", stock=2, available=1, id=4)]
    body = mappers.student_dto_to_response(mappers.student_entity_to_dto(student, card, books)).model_dump(
        by_alias=True
    )
    assert body["studentIdCardResponse"]["cardNumber"] == "STU1"
    assert body["studentIdCardResponse"]["studentId"] == 1
    assert [b["title"] for b in body["bookResponseList"]] == ["Dune"]
    assert body["bookResponseList"][0]["available"] == 1


def test_book_response_defaults_available_to_stock():
    response = mappers.book_dto_to_response(BookDto(id=1, title="Dune", author="Frank Herbert", stock=3))
    assert response.available == 3
