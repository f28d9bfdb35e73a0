from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from enrolment.validators import CatalogueValidator, IsbnValidator, StudentValidator

# largest value an SQLite INTEGER column holds
MAX_ID = 2**63 - 1


class CamelModel(BaseModel):
    """Wire models use camelCase JSON while Python code keeps snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Student ---
class StudentRequest(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=254)
    age: int = Field(..., ge=1, le=150)

    @field_validator("first_name", "last_name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not StudentValidator.is_valid_name(value):
            raise ValueError("name must contain at least one letter")
        return StudentValidator.sanitize_text(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not StudentValidator.is_valid_email(value):
            raise ValueError("invalid email address")
        return StudentValidator.normalize_email(value)


class StudentPatchRequest(CamelModel):
    """PATCH body: only the supplied fields are changed."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=254)
    age: Optional[int] = Field(default=None, ge=1, le=150)

    @field_validator("first_name", "last_name")
    @classmethod
    def _check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not StudentValidator.is_valid_name(value):
            raise ValueError("name must contain at least one letter")
        return StudentValidator.sanitize_text(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not StudentValidator.is_valid_email(value):
            raise ValueError("invalid email address")
        return StudentValidator.normalize_email(value)


class StudentIdCardRequest(CamelModel):
    student_id: int = Field(..., ge=1, le=MAX_ID)
    card_number: Optional[str] = Field(default=None, min_length=4, max_length=32, pattern=r"^[A-Za-z0-9-]+$")


class StudentIdCardResponse(CamelModel):
    id: int
    card_number: str
    student_id: int
    issued_at: Optional[datetime] = None


# --- Book ---
class BookRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    author: str = Field(..., min_length=1, max_length=200)
    isbn: Optional[str] = Field(default=None, description="ISBN-10 or ISBN-13")
    publisher: Optional[str] = Field(default=None, max_length=200)
    publish_year: Optional[int] = Field(default=None, ge=0, le=9999)
    stock: int = Field(default=1, ge=0, le=MAX_ID, description="Total number of copies")

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        value = StudentValidator.sanitize_text(value)
        if not CatalogueValidator.is_valid_title(value):
            raise ValueError("title must not be blank")
        return value

    @field_validator("author")
    @classmethod
    def _check_author(cls, value: str) -> str:
        value = StudentValidator.sanitize_text(value)
        if not CatalogueValidator.is_valid_author(value):
            raise ValueError("author must not be blank or digits only")
        return value

    @field_validator("isbn")
    @classmethod
    def _check_isbn(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        if not IsbnValidator.is_valid(value):
            raise ValueError("invalid ISBN")
        return IsbnValidator.normalize(value)


class BookResponse(CamelModel):
    id: int
    title: str
    author: str
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    publish_year: Optional[int] = None
    stock: int
    available: int


class StudentResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    age: int
    student_id_card_response: Optional[StudentIdCardResponse] = None
    book_response_list: List[BookResponse] = Field(default_factory=list)


# --- Rental ---
class RentalRequest(CamelModel):
    student_id: int = Field(..., ge=1, le=MAX_ID)
    book_id: int = Field(..., ge=1, le=MAX_ID)


class RentalResponse(CamelModel):
    id: int
    student_id: int
    book_id: int
    rented_at: datetime
    returned_at: Optional[datetime] = None


# --- Pagination ---
class StudentPage(CamelModel):
    items: List[StudentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class BookPage(CamelModel):
    items: List[BookResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class RentalPage(CamelModel):
    items: List[RentalResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# --- Errors ---
class ErrorResponse(BaseModel):
    status: int
    error: str
    message: str
    domain: Optional[str] = None
    path: str
    timestamp: str
    details: Optional[list] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    database: bool
