import pytest

from enrolment.dto import BookDto, RentalDto, StudentDto, StudentIdCardDto
from enrolment.errors import (
    CardNumberTakenError,
    EmailAlreadyTakenError,
    StudentHasActiveRentalsError,
    StudentIdCardAlreadyIssuedError,
    StudentIdCardNotFoundError,
    StudentNotFoundError,
)


def _john(**overrides):
    fields = {"first_name": "John", "last_name": "Doe", "email": "john@example.com", "age": 21}
    fields.update(overrides)
    return StudentDto(**fields)


def test_create_student_starts_without_card_or_rentals(services):
    created = services.students.create_student(_john())
    assert created.id is not None
    assert created.created_at is not None
    assert created.id_card is None
    assert created.books == []

    fetched = services.students.get_student(created.id)
    assert fetched.email == "john@example.com"
    assert fetched.age == 21


def test_duplicate_email_is_rejected_case_insensitively(services):
    services.students.create_student(_john())
    with pytest.raises(EmailAlreadyTakenError):
        services.students.create_student(_john(first_name="Johnny", email="JOHN@example.com"))
    assert services.students.list_students(1, 10).total == 1


def test_get_missing_student(services):
    with pytest.raises(StudentNotFoundError):
        services.students.get_student(404)


def test_update_student_replaces_fields(services):
    created = services.students.create_student(_john())
    updated = services.students.update_student(
        created.id, _john(first_name="Jane", email="jane@example.com", age=22)
    )
    assert updated.first_name == "Jane"
    assert updated.email == "jane@example.com"
    assert updated.created_at == created.created_at

    # keeping one's own email is not a conflict
    services.students.update_student(created.id, _john(first_name="Janet", email="jane@example.com", age=22))


def test_update_student_to_taken_email(services):
    services.students.create_student(_john())
    other = services.students.create_student(_john(email="mary@example.com", first_name="Mary"))
    with pytest.raises(EmailAlreadyTakenError):
        services.students.update_student(other.id, _john(email="john@example.com"))


def test_update_missing_student(services):
    with pytest.raises(StudentNotFoundError):
        services.students.update_student(12, _john())


def test_patch_student_changes_only_given_fields(services):
    created = services.students.create_student(_john())
    patched = services.students.patch_student(created.id, {"age": 30})
    assert patched.age == 30
    assert patched.first_name == "John"
    assert patched.email == "john@example.com"

    patched = services.students.patch_student(created.id, {"last_name": "Smith", "email": None})
    assert patched.last_name == "Smith"
    assert patched.email == "john@example.com"


def test_patch_student_email_conflict(services):
    services.students.create_student(_john())
    other = services.students.create_student(_john(email="mary@example.com"))
    with pytest.raises(EmailAlreadyTakenError):
        services.students.patch_student(other.id, {"email": "john@example.com"})


def test_list_students_is_paginated(services):
    for i in range(5):
        services.students.create_student(_john(email=f"student{i}@example.com"))
    first = services.students.list_students(page=1, page_size=2)
    last = services.students.list_students(page=3, page_size=2)
    assert first.total == 5
    assert first.total_pages == 3
    assert [s.email for s in first.items] == ["student0@example.com", "student1@example.com"]
    assert [s.email for s in last.items] == ["student4@example.com"]


def test_student_view_lists_active_rentals(services):
    student = services.students.create_student(_john())
    book = services.books.create_book(BookDto(title="Dune", author="Frank Herbert", stock=2))
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))

    view = services.students.get_student(student.id)
    assert [b.title for b in view.books] == ["Dune"]

    services.rentals.return_rental(rental.id)
    assert services.students.get_student(student.id).books == []


def test_delete_student(services):
    created = services.students.create_student(_john())
    services.students.delete_student(created.id)
    with pytest.raises(StudentNotFoundError):
        services.students.get_student(created.id)
    with pytest.raises(StudentNotFoundError):
        services.students.delete_student(created.id)


def test_delete_student_with_active_rental_is_refused(services):
    student = services.students.create_student(_john())
    book = services.books.create_book(BookDto(title="Dune", author="Frank Herbert", stock=1))
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))

    with pytest.raises(StudentHasActiveRentalsError):
        services.students.delete_student(student.id)

    services.rentals.return_rental(rental.id)
    services.students.delete_student(student.id)
    assert services.rentals.list_rentals(1, 10).total == 0


# --- ID cards ---
def test_issue_card_generates_number(services):
    student = services.students.create_student(_john())
    card = services.id_cards.issue_card(StudentIdCardDto(student_id=student.id))
    assert card.id is not None
    assert card.student_id == student.id
    assert card.card_number.startswith("STU")
    assert len(card.card_number) == len("STU") + 12
    assert services.students.get_student(student.id).id_card.card_number == card.card_number


def test_issue_card_with_given_number(services):
    student = services.students.create_student(_john())
    card = services.id_cards.issue_card(StudentIdCardDto(student_id=student.id, card_number="abc-123"))
    assert card.card_number == "ABC-123"
    assert services.id_cards.get_card(card.id).card_number == "ABC-123"


def test_second_card_for_student_is_refused(services):
    student = services.students.create_student(_john())
    services.id_cards.issue_card(StudentIdCardDto(student_id=student.id))
    with pytest.raises(StudentIdCardAlreadyIssuedError):
        services.id_cards.issue_card(StudentIdCardDto(student_id=student.id))


def test_card_number_must_be_unique(services):
    john = services.students.create_student(_john())
    mary = services.students.create_student(_john(email="mary@example.com"))
    services.id_cards.issue_card(StudentIdCardDto(student_id=john.id, card_number="CARD-1"))
    with pytest.raises(CardNumberTakenError):
        services.id_cards.issue_card(StudentIdCardDto(student_id=mary.id, card_number="card-1"))


def test_card_for_unknown_student(services):
    with pytest.raises(StudentNotFoundError):
        services.id_cards.issue_card(StudentIdCardDto(student_id=77))


def test_card_is_removed_with_student(services):
    student = services.students.create_student(_john())
    card = services.id_cards.issue_card(StudentIdCardDto(student_id=student.id))
    services.students.delete_student(student.id)
    with pytest.raises(StudentIdCardNotFoundError):
        services.id_cards.get_card(card.id)
