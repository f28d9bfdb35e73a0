import logging
from typing import Optional

from enrolment.database import Database
from enrolment.dto import Page, RentalDto
from enrolment.errors import BookNotFoundError, OutOfStockError, RentalNotFoundError, StudentNotFoundError
from enrolment.mappers import rental_entity_to_dto
from enrolment.rental import Rental
from enrolment.repositories import BookRepository, RentalRepository, StudentRepository
from enrolment.timeutils import utcnow

logger = logging.getLogger(__name__)


class RentalService:
    """Lends books to students and keeps ``Book.available`` in step.

    Every write runs in one database transaction: the rental row and the stock
    change are committed together or not at all.
    """

    def __init__(self, database: Database, students: StudentRepository, books: BookRepository,
                 rentals: RentalRepository) -> None:
        self.database = database
        self.students = students
        self.books = books
        self.rentals = rentals

    def rent_book(self, dto: RentalDto) -> RentalDto:
        with self.database.transaction() as conn:
            if not self.students.exists(conn, dto.student_id):
                raise StudentNotFoundError(dto.student_id)
            book = self.books.find_by_id(conn, dto.book_id)
            if book is None:
                raise BookNotFoundError(dto.book_id)
            if not self.books.take_copy(conn, book.id):
                logger.warning(f"Book {book.id} is out of stock, rental for student {dto.student_id} refused")
                raise OutOfStockError(book.id)
            rental = self.rentals.insert(conn, Rental(student_id=dto.student_id, book_id=book.id, rented_at=utcnow()))
        logger.info(f"Rental {rental.id}: book {rental.book_id} rented by student {rental.student_id}")
        return rental_entity_to_dto(rental)

    def return_rental(self, rental_id: int) -> RentalDto:
        with self.database.transaction() as conn:
            rental = self.rentals.find_by_id(conn, rental_id)
            if rental is None:
                raise RentalNotFoundError(rental_id)
            if not rental.is_active:
                raise RentalNotFoundError(rental_id, returned=True)
            rental.returned_at = utcnow()
            if not self.rentals.mark_returned(conn, rental):
                raise RentalNotFoundError(rental_id, returned=True)
            self.books.give_back_copy(conn, rental.book_id)
        logger.info(f"Rental {rental_id}: book {rental.book_id} returned by student {rental.student_id}")
        return rental_entity_to_dto(rental)

    def get_rental(self, rental_id: int) -> RentalDto:
        with self.database.session() as conn:
            rental = self.rentals.find_by_id(conn, rental_id)
        if rental is None:
            raise RentalNotFoundError(rental_id)
        return rental_entity_to_dto(rental)

    def list_rentals(self, page: int, page_size: int, student_id: Optional[int] = None,
                     active: Optional[bool] = None) -> Page[RentalDto]:
        with self.database.session() as conn:
            total = self.rentals.count(conn, student_id=student_id, active=active)
            result: Page[RentalDto] = Page(items=[], total=total, page=page, page_size=page_size)
            rentals = self.rentals.find_all(conn, page_size, result.offset, student_id=student_id, active=active)
        result.items = [rental_entity_to_dto(r) for r in rentals]
        return result

    def delete_rental(self, rental_id: int) -> None:
        """Remove a rental record; an active one first gives its copy back."""
        with self.database.transaction() as conn:
            rental = self.rentals.find_by_id(conn, rental_id)
            if rental is None:
                raise RentalNotFoundError(rental_id)
            if rental.is_active:
                self.books.give_back_copy(conn, rental.book_id)
            self.rentals.delete(conn, rental_id)
        logger.info(f"Deleted rental {rental_id}")
