import random

import pytest

from enrolment.dto import BookDto, RentalDto, StudentDto
from enrolment.errors import BookNotFoundError, OutOfStockError, RentalNotFoundError, StudentNotFoundError


@pytest.fixture
def student(services):
    return services.students.create_student(
        StudentDto(first_name="John", last_name="Doe", email="john@example.com", age=21)
    )


def _book(services, stock=1):
    return services.books.create_book(BookDto(title="Dune", author="Frank Herbert", stock=stock))


def test_rent_takes_one_copy(services, student):
    book = _book(services, stock=2)
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    assert rental.id is not None
    assert rental.rented_at is not None
    assert rental.returned_at is None
    assert services.books.get_book(book.id).available == 1


def test_rent_out_of_stock_changes_nothing(services, student):
    book = _book(services, stock=1)
    services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))

    with pytest.raises(OutOfStockError):
        services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))

    assert services.books.get_book(book.id).available == 0
    assert services.rentals.list_rentals(1, 10).total == 1


def test_rent_book_with_no_stock_at_all(services, student):
    book = _book(services, stock=0)
    with pytest.raises(OutOfStockError):
        services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))


def test_rent_requires_existing_student_and_book(services, student):
    book = _book(services)
    with pytest.raises(StudentNotFoundError):
        services.rentals.rent_book(RentalDto(student_id=999, book_id=book.id))
    with pytest.raises(BookNotFoundError):
        services.rentals.rent_book(RentalDto(student_id=student.id, book_id=999))
    assert services.books.get_book(book.id).available == 1


def test_return_gives_copy_back(services, student):
    book = _book(services)
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    returned = services.rentals.return_rental(rental.id)
    assert returned.returned_at is not None
    assert returned.returned_at >= returned.rented_at
    assert services.books.get_book(book.id).available == 1


def test_return_twice_is_not_found_and_changes_nothing(services, student):
    book = _book(services, stock=2)
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    first = services.rentals.return_rental(rental.id)

    with pytest.raises(RentalNotFoundError):
        services.rentals.return_rental(rental.id)

    assert services.books.get_book(book.id).available == 1
    assert services.rentals.get_rental(rental.id).returned_at == first.returned_at


def test_return_unknown_rental(services):
    with pytest.raises(RentalNotFoundError):
        services.rentals.return_rental(123)


def test_return_never_exceeds_stock(services, student, database):
    book = _book(services, stock=1)
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    # copy put back on the shelf behind the service's back
    with database.transaction() as conn:
        conn.execute("UPDATE books SET available = stock WHERE id = ?", (book.id,))

    services.rentals.return_rental(rental.id)
    assert services.books.get_book(book.id).available == 1


def test_failed_rental_insert_rolls_back_stock(services, student, monkeypatch):
    book = _book(services, stock=1)

    def broken_insert(conn, rental):
        raise RuntimeError("disk full")

    monkeypatch.setattr(services.rentals.rentals, "insert", broken_insert)
    with pytest.raises(RuntimeError):
        services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    assert services.books.get_book(book.id).available == 1


def test_stock_stays_within_bounds_for_any_sequence(services, student):
    rng = random.Random(20240901)
    book = _book(services, stock=3)
    active = []
    for _ in range(60):
        if active and rng.random() < 0.5:
            rental_id = active.pop(rng.randrange(len(active)))
            services.rentals.return_rental(rental_id)
        else:
            try:
                active.append(services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id)).id)
            except OutOfStockError:
                assert len(active) == 3
        current = services.books.get_book(book.id)
        assert 0 <= current.available <= current.stock
        assert current.available == current.stock - len(active)


def test_list_rentals_filters(services, student):
    book = _book(services, stock=3)
    other = services.students.create_student(
        StudentDto(first_name="Mary", last_name="Major", email="mary@example.com", age=19)
    )
    first = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    services.rentals.rent_book(RentalDto(student_id=other.id, book_id=book.id))
    services.rentals.return_rental(first.id)

    assert services.rentals.list_rentals(1, 10).total == 3
    assert services.rentals.list_rentals(1, 10, student_id=student.id).total == 2
    assert services.rentals.list_rentals(1, 10, active=True).total == 2
    returned = services.rentals.list_rentals(1, 10, active=False)
    assert [r.id for r in returned.items] == [first.id]


def test_delete_active_rental_restores_stock(services, student):
    book = _book(services, stock=1)
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    services.rentals.delete_rental(rental.id)
    assert services.books.get_book(book.id).available == 1
    with pytest.raises(RentalNotFoundError):
        services.rentals.get_rental(rental.id)


def test_delete_returned_rental_keeps_stock(services, student):
    book = _book(services, stock=1)
    rental = services.rentals.rent_book(RentalDto(student_id=student.id, book_id=book.id))
    services.rentals.return_rental(rental.id)
    services.rentals.delete_rental(rental.id)
    assert services.books.get_book(book.id).available == 1
    with pytest.raises(RentalNotFoundError):
        services.rentals.delete_rental(rental.id)
