import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from enrolment.config import settings

logger = logging.getLogger(__name__)


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS students (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        age INTEGER NOT NULL CHECK(age > 0),
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS student_id_cards (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        card_number TEXT NOT NULL UNIQUE,
        student_id INTEGER NOT NULL UNIQUE,
        issued_at TIMESTAMP NOT NULL,
        FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS books (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        author TEXT NOT NULL,
        isbn TEXT UNIQUE,
        publisher TEXT,
        publish_year INTEGER,
        stock INTEGER NOT NULL CHECK(stock >= 0),
        available INTEGER NOT NULL CHECK(available >= 0 AND available <= stock),
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS rentals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        student_id INTEGER NOT NULL,
        book_id INTEGER NOT NULL,
        rented_at TIMESTAMP NOT NULL,
        returned_at TIMESTAMP,
        FOREIGN KEY (student_id) REFERENCES students(id),
        FOREIGN KEY (book_id) REFERENCES books(id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_students_last_name ON students(last_name)",
    "CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)",
    "CREATE INDEX IF NOT EXISTS idx_rentals_student_id ON rentals(student_id)",
    "CREATE INDEX IF NOT EXISTS idx_rentals_book_id ON rentals(book_id)",
    "CREATE INDEX IF NOT EXISTS idx_rentals_active ON rentals(book_id) WHERE returned_at IS NULL",
)


class Database:
    """Opens SQLite connections and scopes them to a single transaction."""

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file or settings.database_file

    def connect(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly in transaction()
        conn = sqlite3.connect(self.db_file, isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("PRAGMA busy_timeout = 5000;")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside ``BEGIN IMMEDIATE``; commit on success, roll back on error.

        ``IMMEDIATE`` takes the write lock up front, so two concurrent rentals of
        the same book are serialised by the database.
        """
        conn = self.connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        """Read-only connection in autocommit mode."""
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    def create_tables(self) -> None:
        """Create the tables and indexes if they do not exist yet."""
        directory = os.path.dirname(os.path.abspath(self.db_file))
        os.makedirs(directory, exist_ok=True)
        with self.transaction() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        logger.info(f"Database schema ready at {self.db_file}")

    def ping(self) -> bool:
        try:
            with self.session() as conn:
                conn.execute("SELECT 1")
            return True
        except sqlite3.Error as e:
            logger.error(f"Database ping failed: {e}")
            return False
