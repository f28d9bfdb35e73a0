import logging
import secrets
import sqlite3
from typing import Any, Dict

from enrolment.database import Database
from enrolment.dto import Page, StudentDto, StudentIdCardDto
from enrolment.errors import (
    CardNumberTakenError,
    EmailAlreadyTakenError,
    StudentHasActiveRentalsError,
    StudentIdCardAlreadyIssuedError,
    StudentIdCardNotFoundError,
    StudentNotFoundError,
)
from enrolment.mappers import id_card_dto_to_entity, id_card_entity_to_dto, student_dto_to_entity, student_entity_to_dto
from enrolment.repositories import BookRepository, RentalRepository, StudentIdCardRepository, StudentRepository
from enrolment.student import Student
from enrolment.timeutils import utcnow

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("first_name", "last_name", "email", "age")


class StudentService:
    """CRUD for students; a student's view includes its ID card and rented books."""

    def __init__(self, database: Database, students: StudentRepository, id_cards: StudentIdCardRepository,
                 books: BookRepository, rentals: RentalRepository) -> None:
        self.database = database
        self.students = students
        self.id_cards = id_cards
        self.books = books
        self.rentals = rentals

    def _to_dto(self, conn: sqlite3.Connection, student: Student) -> StudentDto:
        card = self.id_cards.find_by_student_id(conn, student.id)
        books = self.books.find_rented_by_student(conn, student.id)
        return student_entity_to_dto(student, card, books)

    def _ensure_email_free(self, conn: sqlite3.Connection, email: str, student_id: int | None = None) -> None:
        owner = self.students.find_by_email(conn, email)
        if owner is not None and owner.id != student_id:
            logger.warning(f"Rejected duplicate email {email}")
            raise EmailAlreadyTakenError(email)

    def list_students(self, page: int, page_size: int) -> Page[StudentDto]:
        with self.database.session() as conn:
            total = self.students.count(conn)
            result: Page[StudentDto] = Page(items=[], total=total, page=page, page_size=page_size)
            for student in self.students.find_all(conn, limit=page_size, offset=result.offset):
                result.items.append(self._to_dto(conn, student))
            return result

    def get_student(self, student_id: int) -> StudentDto:
        with self.database.session() as conn:
            student = self.students.find_by_id(conn, student_id)
            if student is None:
                raise StudentNotFoundError(student_id)
            return self._to_dto(conn, student)

    def create_student(self, dto: StudentDto) -> StudentDto:
        entity = student_dto_to_entity(dto)
        entity.id = None
        entity.created_at = utcnow()
        with self.database.transaction() as conn:
            self._ensure_email_free(conn, entity.email)
            try:
                self.students.insert(conn, entity)
            except sqlite3.IntegrityError as e:
                # lost a race against a concurrent insert of the same email
                raise EmailAlreadyTakenError(entity.email) from e
            created = self._to_dto(conn, entity)
        logger.info(f"Created student {created.id} ({created.email})")
        return created

    def update_student(self, student_id: int, dto: StudentDto) -> StudentDto:
        """Replace every editable field of a student (PUT)."""
        with self.database.transaction() as conn:
            current = self.students.find_by_id(conn, student_id)
            if current is None:
                raise StudentNotFoundError(student_id)
            replacement = student_dto_to_entity(dto)
            replacement.id = student_id
            replacement.created_at = current.created_at
            self._ensure_email_free(conn, replacement.email, student_id)
            try:
                self.students.update(conn, replacement)
            except sqlite3.IntegrityError as e:
                raise EmailAlreadyTakenError(replacement.email) from e
            updated = self._to_dto(conn, replacement)
        logger.info(f"Updated student {student_id}")
        return updated

    def patch_student(self, student_id: int, changes: Dict[str, Any]) -> StudentDto:
        """Change only the supplied fields of a student (PATCH)."""
        with self.database.transaction() as conn:
            current = self.students.find_by_id(conn, student_id)
            if current is None:
                raise StudentNotFoundError(student_id)
            values = current.to_dict()
            values.update({k: changes[k] for k in PATCHABLE_FIELDS if changes.get(k) is not None})
            patched = Student(**values)
            if patched.email != current.email:
                self._ensure_email_free(conn, patched.email, student_id)
            try:
                self.students.update(conn, patched)
            except sqlite3.IntegrityError as e:
                raise EmailAlreadyTakenError(patched.email) from e
            updated = self._to_dto(conn, patched)
        logger.info(f"Patched student {student_id}: {', '.join(sorted(k for k in changes if k in PATCHABLE_FIELDS))}")
        return updated

    def delete_student(self, student_id: int) -> None:
        with self.database.transaction() as conn:
            if not self.students.exists(conn, student_id):
                raise StudentNotFoundError(student_id)
            active = self.rentals.count_active_for_student(conn, student_id)
            if active:
                logger.warning(f"Refused to delete student {student_id} with {active} active rental(s)")
                raise StudentHasActiveRentalsError(student_id, active)
            self.rentals.delete_for_student(conn, student_id)
            # the ID card goes with the student (ON DELETE CASCADE)
            self.students.delete(conn, student_id)
        logger.info(f"Deleted student {student_id}")


class StudentIdCardService:
    """Issues the single ID card a student may own."""

    def __init__(self, database: Database, students: StudentRepository, id_cards: StudentIdCardRepository,
                 prefix: str = "STU") -> None:
        self.database = database
        self.students = students
        self.id_cards = id_cards
        self.prefix = prefix

    def generate_card_number(self) -> str:
        return f"{self.prefix}{secrets.token_hex(6).upper()}"

    def issue_card(self, dto: StudentIdCardDto) -> StudentIdCardDto:
        with self.database.transaction() as conn:
            if not self.students.exists(conn, dto.student_id):
                raise StudentNotFoundError(dto.student_id)
            if self.id_cards.find_by_student_id(conn, dto.student_id) is not None:
                raise StudentIdCardAlreadyIssuedError(dto.student_id)

            card_number = dto.card_number.strip().upper() if dto.card_number else None
            if card_number is None:
                card_number = self.generate_card_number()
                while self.id_cards.find_by_card_number(conn, card_number) is not None:
                    card_number = self.generate_card_number()
            elif self.id_cards.find_by_card_number(conn, card_number) is not None:
                raise CardNumberTakenError(card_number)

            entity = id_card_dto_to_entity(
                StudentIdCardDto(student_id=dto.student_id, card_number=card_number, issued_at=utcnow())
            )
            try:
                self.id_cards.insert(conn, entity)
            except sqlite3.IntegrityError as e:
                raise CardNumberTakenError(card_number) from e
        logger.info(f"Issued ID card {entity.card_number} to student {entity.student_id}")
        return id_card_entity_to_dto(entity)

    def get_card(self, card_id: int) -> StudentIdCardDto:
        with self.database.session() as conn:
            card = self.id_cards.find_by_id(conn, card_id)
        if card is None:
            raise StudentIdCardNotFoundError(card_id)
        return id_card_entity_to_dto(card)
