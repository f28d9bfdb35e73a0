"""Persistence gateways, one per table.

Repositories hold no connection of their own: every method takes the
connection of the caller's transaction so that a service can combine several
writes (e.g. a rental insert and a stock decrement) atomically.
"""
from __future__ import annotations

import sqlite3
from typing import List, Optional

from enrolment.book import Book
from enrolment.rental import Rental
from enrolment.student import Student, StudentIdCard
from enrolment.timeutils import to_db


class StudentRepository:
    COLUMNS = "id, first_name, last_name, email, age, created_at"

    def find_all(self, conn: sqlite3.Connection, limit: int, offset: int) -> List[Student]:
        rows = conn.execute(
            f"SELECT {self.COLUMNS} FROM students ORDER BY id LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        return [Student.from_row(row) for row in rows]

    def count(self, conn: sqlite3.Connection) -> int:
        return conn.execute("SELECT COUNT(*) FROM students").fetchone()[0]

    def find_by_id(self, conn: sqlite3.Connection, student_id: int) -> Optional[Student]:
        row = conn.execute(f"SELECT {self.COLUMNS} FROM students WHERE id = ?", (student_id,)).fetchone()
        return Student.from_row(row) if row else None

    def find_by_email(self, conn: sqlite3.Connection, email: str) -> Optional[Student]:
        row = conn.execute(f"SELECT {self.COLUMNS} FROM students WHERE email = ?", (email,)).fetchone()
        return Student.from_row(row) if row else None

    def exists(self, conn: sqlite3.Connection, student_id: int) -> bool:
        return conn.execute("SELECT 1 FROM students WHERE id = ?", (student_id,)).fetchone() is not None

    def insert(self, conn: sqlite3.Connection, student: Student) -> Student:
        cursor = conn.execute(
            "INSERT INTO students (first_name, last_name, email, age, created_at) VALUES (?, ?, ?, ?, ?)",
            (student.first_name, student.last_name, student.email, student.age, to_db(student.created_at)),
        )
        student.id = cursor.lastrowid
        return student

    def update(self, conn: sqlite3.Connection, student: Student) -> Student:
        conn.execute(
            "UPDATE students SET first_name = ?, last_name = ?, email = ?, age = ? WHERE id = ?",
            (student.first_name, student.last_name, student.email, student.age, student.id),
        )
        return student

    def delete(self, conn: sqlite3.Connection, student_id: int) -> bool:
        cursor = conn.execute("DELETE FROM students WHERE id = ?", (student_id,))
        return cursor.rowcount > 0


class StudentIdCardRepository:
    COLUMNS = "id, card_number, student_id, issued_at"

    def find_by_id(self, conn: sqlite3.Connection, card_id: int) -> Optional[StudentIdCard]:
        row = conn.execute(f"SELECT {self.COLUMNS} FROM student_id_cards WHERE id = ?", (card_id,)).fetchone()
        return StudentIdCard.from_row(row) if row else None

    def find_by_student_id(self, conn: sqlite3.Connection, student_id: int) -> Optional[StudentIdCard]:
        row = conn.execute(
            f"SELECT {self.COLUMNS} FROM student_id_cards WHERE student_id = ?", (student_id,)
        ).fetchone()
        return StudentIdCard.from_row(row) if row else None

    def find_by_card_number(self, conn: sqlite3.Connection, card_number: str) -> Optional[StudentIdCard]:
        row = conn.execute(
            f"SELECT {self.COLUMNS} FROM student_id_cards WHERE card_number = ?", (card_number,)
        ).fetchone()
        return StudentIdCard.from_row(row) if row else None

    def insert(self, conn: sqlite3.Connection, card: StudentIdCard) -> StudentIdCard:
        cursor = conn.execute(
            "INSERT INTO student_id_cards (card_number, student_id, issued_at) VALUES (?, ?, ?)",
            (card.card_number, card.student_id, to_db(card.issued_at)),
        )
        card.id = cursor.lastrowid
        return card


class BookRepository:
    COLUMNS = "id, title, author, isbn, publisher, publish_year, stock, available, created_at"

    def find_all(self, conn: sqlite3.Connection, limit: int, offset: int) -> List[Book]:
        rows = conn.execute(
            f"SELECT {self.COLUMNS} FROM books ORDER BY id LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        return [Book.from_row(row) for row in rows]

    def count(self, conn: sqlite3.Connection) -> int:
        return conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]

    def find_by_id(self, conn: sqlite3.Connection, book_id: int) -> Optional[Book]:
        row = conn.execute(f"SELECT {self.COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
        return Book.from_row(row) if row else None

    def find_by_isbn(self, conn: sqlite3.Connection, isbn: str) -> Optional[Book]:
        row = conn.execute(f"SELECT {self.COLUMNS} FROM books WHERE isbn = ?", (isbn,)).fetchone()
        return Book.from_row(row) if row else None

    def find_rented_by_student(self, conn: sqlite3.Connection, student_id: int) -> List[Book]:
        """Books of the student's active rentals, one entry per rental."""
        rows = conn.execute(
            """
            SELECT b.id, b.title, b.author, b.isbn, b.publisher, b.publish_year,
                   b.stock, b.available, b.created_at
            FROM rentals r
            JOIN books b ON b.id = r.book_id
            WHERE r.student_id = ? AND r.returned_at IS NULL
            ORDER BY r.rented_at, r.id
            """,
            (student_id,),
        ).fetchall()
        return [Book.from_row(row) for row in rows]

    def insert(self, conn: sqlite3.Connection, book: Book) -> Book:
        cursor = conn.execute(
            """
            INSERT INTO books (title, author, isbn, publisher, publish_year, stock, available, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (book.title, book.author, book.isbn, book.publisher, book.publish_year,
             book.stock, book.available, to_db(book.created_at)),
        )
        book.id = cursor.lastrowid
        return book

    def update(self, conn: sqlite3.Connection, book: Book) -> Book:
        conn.execute(
            """
            UPDATE books SET title = ?, author = ?, isbn = ?, publisher = ?, publish_year = ?,
                             stock = ?, available = ?
            WHERE id = ?
            """,
            (book.title, book.author, book.isbn, book.publisher, book.publish_year,
             book.stock, book.available, book.id),
        )
        return book

    def delete(self, conn: sqlite3.Connection, book_id: int) -> bool:
        cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        return cursor.rowcount > 0

    def take_copy(self, conn: sqlite3.Connection, book_id: int) -> bool:
        """Decrement ``available``; False when no copy is left."""
        cursor = conn.execute(
            "UPDATE books SET available = available - 1 WHERE id = ? AND available > 0",
            (book_id,),
        )
        return cursor.rowcount > 0

    def give_back_copy(self, conn: sqlite3.Connection, book_id: int) -> bool:
        """Increment ``available``, never past ``stock``."""
        cursor = conn.execute(
            "UPDATE books SET available = MIN(available + 1, stock) WHERE id = ?",
            (book_id,),
        )
        return cursor.rowcount > 0


class RentalRepository:
    COLUMNS = "id, student_id, book_id, rented_at, returned_at"

    @staticmethod
    def _filters(student_id: Optional[int], active: Optional[bool]):
        clauses, params = [], []
        if student_id is not None:
            clauses.append("student_id = ?")
            params.append(student_id)
        if active is True:
            clauses.append("returned_at IS NULL")
        elif active is False:
            clauses.append("returned_at IS NOT NULL")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def find_all(self, conn: sqlite3.Connection, limit: int, offset: int,
                 student_id: Optional[int] = None, active: Optional[bool] = None) -> List[Rental]:
        where, params = self._filters(student_id, active)
        rows = conn.execute(
            f"SELECT {self.COLUMNS} FROM rentals {where} ORDER BY id LIMIT ? OFFSET ?",
            (*params, limit, offset),
        ).fetchall()
        return [Rental.from_row(row) for row in rows]

    def count(self, conn: sqlite3.Connection, student_id: Optional[int] = None,
              active: Optional[bool] = None) -> int:
        where, params = self._filters(student_id, active)
        return conn.execute(f"SELECT COUNT(*) FROM rentals {where}", params).fetchone()[0]

    def find_by_id(self, conn: sqlite3.Connection, rental_id: int) -> Optional[Rental]:
        row = conn.execute(f"SELECT {self.COLUMNS} FROM rentals WHERE id = ?", (rental_id,)).fetchone()
        return Rental.from_row(row) if row else None

    def count_active_for_student(self, conn: sqlite3.Connection, student_id: int) -> int:
        return conn.execute(
            "SELECT COUNT(*) FROM rentals WHERE student_id = ? AND returned_at IS NULL", (student_id,)
        ).fetchone()[0]

    def count_active_for_book(self, conn: sqlite3.Connection, book_id: int) -> int:
        return conn.execute(
            "SELECT COUNT(*) FROM rentals WHERE book_id = ? AND returned_at IS NULL", (book_id,)
        ).fetchone()[0]

    def insert(self, conn: sqlite3.Connection, rental: Rental) -> Rental:
        cursor = conn.execute(
            "INSERT INTO rentals (student_id, book_id, rented_at, returned_at) VALUES (?, ?, ?, ?)",
            (rental.student_id, rental.book_id, to_db(rental.rented_at), to_db(rental.returned_at)),
        )
        rental.id = cursor.lastrowid
        return rental

    def mark_returned(self, conn: sqlite3.Connection, rental: Rental) -> bool:
        """Set ``returned_at`` only if the rental is still active."""
        cursor = conn.execute(
            "UPDATE rentals SET returned_at = ? WHERE id = ? AND returned_at IS NULL",
            (to_db(rental.returned_at), rental.id),
        )
        return cursor.rowcount > 0

    def delete(self, conn: sqlite3.Connection, rental_id: int) -> bool:
        cursor = conn.execute("DELETE FROM rentals WHERE id = ?", (rental_id,))
        return cursor.rowcount > 0

    def delete_for_student(self, conn: sqlite3.Connection, student_id: int) -> int:
        """Remove the returned-rental history of a student."""
        cursor = conn.execute(
            "DELETE FROM rentals WHERE student_id = ? AND returned_at IS NOT NULL", (student_id,)
        )
        return cursor.rowcount

    def delete_for_book(self, conn: sqlite3.Connection, book_id: int) -> int:
        cursor = conn.execute(
            "DELETE FROM rentals WHERE book_id = ? AND returned_at IS NOT NULL", (book_id,)
        )
        return cursor.rowcount
