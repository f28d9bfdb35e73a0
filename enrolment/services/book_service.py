import logging
import sqlite3

from enrolment.database import Database
from enrolment.dto import BookDto, Page
from enrolment.errors import BookHasActiveRentalsError, BookNotFoundError, IsbnAlreadyExistsError, StockBelowRentedError
from enrolment.mappers import book_dto_to_entity, book_entity_to_dto
from enrolment.repositories import BookRepository, RentalRepository
from enrolment.timeutils import utcnow

logger = logging.getLogger(__name__)


class BookService:
    """Catalogue CRUD. Copy counts are only changed here through ``stock``."""

    def __init__(self, database: Database, books: BookRepository, rentals: RentalRepository) -> None:
        self.database = database
        self.books = books
        self.rentals = rentals

    def _ensure_isbn_free(self, conn: sqlite3.Connection, isbn: str | None, book_id: int | None = None) -> None:
        if not isbn:
            return
        owner = self.books.find_by_isbn(conn, isbn)
        if owner is not None and owner.id != book_id:
            logger.warning(f"Rejected duplicate ISBN {isbn}")
            raise IsbnAlreadyExistsError(isbn)

    def list_books(self, page: int, page_size: int) -> Page[BookDto]:
        with self.database.session() as conn:
            total = self.books.count(conn)
            result: Page[BookDto] = Page(items=[], total=total, page=page, page_size=page_size)
            result.items = [book_entity_to_dto(b) for b in self.books.find_all(conn, page_size, result.offset)]
        return result

    def get_book(self, book_id: int) -> BookDto:
        with self.database.session() as conn:
            book = self.books.find_by_id(conn, book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        return book_entity_to_dto(book)

    def create_book(self, dto: BookDto) -> BookDto:
        entity = book_dto_to_entity(dto)
        entity.id = None
        entity.available = entity.stock
        entity.created_at = utcnow()
        with self.database.transaction() as conn:
            self._ensure_isbn_free(conn, entity.isbn)
            try:
                self.books.insert(conn, entity)
            except sqlite3.IntegrityError as e:
                raise IsbnAlreadyExistsError(entity.isbn) from e
        logger.info(f"Created book {entity.id} '{entity.title}' with {entity.stock} copies")
        return book_entity_to_dto(entity)

    def update_book(self, book_id: int, dto: BookDto) -> BookDto:
        """Replace a book's fields (PUT).

        Rented copies stay rented: ``available`` moves by the same amount as
        ``stock``, and the stock may not drop below the rented count.
        """
        with self.database.transaction() as conn:
            current = self.books.find_by_id(conn, book_id)
            if current is None:
                raise BookNotFoundError(book_id)
            rented = current.rented
            if dto.stock < rented:
                logger.warning(f"Refused stock {dto.stock} for book {book_id}: {rented} copies rented")
                raise StockBelowRentedError(book_id, dto.stock, rented)

            replacement = book_dto_to_entity(dto)
            replacement.id = book_id
            replacement.available = dto.stock - rented
            replacement.created_at = current.created_at
            self._ensure_isbn_free(conn, replacement.isbn, book_id)
            try:
                self.books.update(conn, replacement)
            except sqlite3.IntegrityError as e:
                raise IsbnAlreadyExistsError(replacement.isbn) from e
        logger.info(f"Updated book {book_id} (stock {replacement.stock}, available {replacement.available})")
        return book_entity_to_dto(replacement)

    def delete_book(self, book_id: int) -> None:
        with self.database.transaction() as conn:
            if self.books.find_by_id(conn, book_id) is None:
                raise BookNotFoundError(book_id)
            active = self.rentals.count_active_for_book(conn, book_id)
            if active:
                logger.warning(f"Refused to delete book {book_id} with {active} active rental(s)")
                raise BookHasActiveRentalsError(book_id, active)
            self.rentals.delete_for_book(conn, book_id)
            self.books.delete(conn, book_id)
        logger.info(f"Deleted book {book_id}")
