"""Domain failures raised by the services.

Every failure belongs to one kind (not found, conflict, validation) and one
domain (student, ID card, book, rental). The HTTP layer picks the status code
from the kind and the handler from the domain.
"""


class EnrolmentError(Exception):
    """Base class for all domain failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# --- Kinds ---
class NotFoundError(EnrolmentError):
    pass


class ConflictError(EnrolmentError):
    pass


class ValidationError(EnrolmentError):
    pass


# --- Domains ---
class StudentError(EnrolmentError):
    domain = "student"


class StudentIdCardError(EnrolmentError):
    domain = "student_id_card"


class BookError(EnrolmentError):
    domain = "book"


class RentalError(EnrolmentError):
    domain = "rental"


# --- Student ---
class StudentNotFoundError(StudentError, NotFoundError):
    def __init__(self, student_id: int) -> None:
        super().__init__(f"Student with id {student_id} not found.")
        self.student_id = student_id


class EmailAlreadyTakenError(StudentError, ValidationError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email {email} is already taken.")
        self.email = email


class StudentHasActiveRentalsError(StudentError, ConflictError):
    def __init__(self, student_id: int, active: int) -> None:
        super().__init__(f"Student with id {student_id} still has {active} active rental(s).")
        self.student_id = student_id


# --- Student ID card ---
class StudentIdCardNotFoundError(StudentIdCardError, NotFoundError):
    def __init__(self, card_id: int) -> None:
        super().__init__(f"Student ID card with id {card_id} not found.")


class StudentIdCardAlreadyIssuedError(StudentIdCardError, ConflictError):
    def __init__(self, student_id: int) -> None:
        super().__init__(f"Student with id {student_id} already has an ID card.")


class CardNumberTakenError(StudentIdCardError, ValidationError):
    def __init__(self, card_number: str) -> None:
        super().__init__(f"Card number {card_number} is already in use.")


# --- Book ---
class BookNotFoundError(BookError, NotFoundError):
    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with id {book_id} not found.")
        self.book_id = book_id


class IsbnAlreadyExistsError(BookError, ValidationError):
    def __init__(self, isbn: str) -> None:
        super().__init__(f"Book with ISBN {isbn} already exists.")


class StockBelowRentedError(BookError, ConflictError):
    def __init__(self, book_id: int, stock: int, rented: int) -> None:
        super().__init__(
            f"Cannot set stock of book {book_id} to {stock}: {rented} copies are currently rented."
        )


class BookHasActiveRentalsError(BookError, ConflictError):
    def __init__(self, book_id: int, active: int) -> None:
        super().__init__(f"Book with id {book_id} still has {active} active rental(s).")


# --- Rental ---
class RentalNotFoundError(RentalError, NotFoundError):
    def __init__(self, rental_id: int, returned: bool = False) -> None:
        if returned:
            message = f"Active rental with id {rental_id} not found; it was already returned."
        else:
            message = f"Rental with id {rental_id} not found."
        super().__init__(message)
        self.rental_id = rental_id


class OutOfStockError(RentalError, ConflictError):
    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with id {book_id} is out of stock.")
        self.book_id = book_id
