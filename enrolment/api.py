import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from enrolment.config import settings
from enrolment.database import Database
from enrolment.dto import Page
from enrolment.exception_handlers import register_exception_handlers
from enrolment.mappers import (
    book_dto_to_response,
    book_request_to_dto,
    id_card_dto_to_response,
    id_card_request_to_dto,
    rental_dto_to_response,
    rental_request_to_dto,
    student_dto_to_response,
    student_request_to_dto,
)
from enrolment.schemas import (
    MAX_ID,
    BookPage,
    BookRequest,
    BookResponse,
    HealthResponse,
    RentalPage,
    RentalRequest,
    RentalResponse,
    StudentIdCardRequest,
    StudentIdCardResponse,
    StudentPage,
    StudentPatchRequest,
    StudentRequest,
    StudentResponse,
)
from enrolment.services import Services, build_services

logger = logging.getLogger(__name__)

# keeps (page - 1) * page_size inside a 64-bit OFFSET
MAX_PAGE = MAX_ID // settings.max_page_size


# --- Dependencies ---
def get_services(request: Request) -> Services:
    return request.app.state.services


def page_params(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
) -> tuple[int, int]:
    return page, page_size


def _page_fields(result: Page) -> dict:
    return {
        "total": result.total,
        "page": result.page,
        "page_size": result.page_size,
        "total_pages": result.total_pages,
    }


# --- Students ---
students_router = APIRouter(prefix="/students", tags=["students"])


@students_router.get("", response_model=StudentPage)
def list_students(paging: tuple[int, int] = Depends(page_params), services: Services = Depends(get_services)):
    """List students, one page at a time."""
    result = services.students.list_students(*paging)
    return StudentPage(items=[student_dto_to_response(s) for s in result.items], **_page_fields(result))


@students_router.get("/{student_id}", response_model=StudentResponse)
def get_student(student_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    return student_dto_to_response(services.students.get_student(student_id))


@students_router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentRequest, services: Services = Depends(get_services)):
    created = services.students.create_student(student_request_to_dto(payload))
    return student_dto_to_response(created)


@students_router.put("/{student_id}", response_model=StudentResponse)
def update_student(
    payload: StudentRequest,
    student_id: int = Path(..., ge=1, le=MAX_ID),
    services: Services = Depends(get_services),
):
    updated = services.students.update_student(student_id, student_request_to_dto(payload))
    return student_dto_to_response(updated)


@students_router.patch("/{student_id}", response_model=StudentResponse)
def patch_student(
    payload: StudentPatchRequest,
    student_id: int = Path(..., ge=1, le=MAX_ID),
    services: Services = Depends(get_services),
):
    """Change only the fields present in the body."""
    patched = services.students.patch_student(student_id, payload.model_dump(exclude_unset=True))
    return student_dto_to_response(patched)


@students_router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(student_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    services.students.delete_student(student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Student ID cards ---
id_cards_router = APIRouter(prefix="/id-cards", tags=["id-cards"])


@id_cards_router.post("", response_model=StudentIdCardResponse, status_code=status.HTTP_201_CREATED)
def issue_id_card(payload: StudentIdCardRequest, services: Services = Depends(get_services)):
    """Issue the ID card of a student; a card number is generated when none is given."""
    return id_card_dto_to_response(services.id_cards.issue_card(id_card_request_to_dto(payload)))


@id_cards_router.get("/{card_id}", response_model=StudentIdCardResponse)
def get_id_card(card_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    return id_card_dto_to_response(services.id_cards.get_card(card_id))


# --- Books ---
books_router = APIRouter(prefix="/books", tags=["books"])


@books_router.get("", response_model=BookPage)
def list_books(paging: tuple[int, int] = Depends(page_params), services: Services = Depends(get_services)):
    result = services.books.list_books(*paging)
    return BookPage(items=[book_dto_to_response(b) for b in result.items], **_page_fields(result))


@books_router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    return book_dto_to_response(services.books.get_book(book_id))


@books_router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def create_book(payload: BookRequest, services: Services = Depends(get_services)):
    return book_dto_to_response(services.books.create_book(book_request_to_dto(payload)))


@books_router.put("/{book_id}", response_model=BookResponse)
def update_book(
    payload: BookRequest,
    book_id: int = Path(..., ge=1, le=MAX_ID),
    services: Services = Depends(get_services),
):
    """Replace a book; changing ``stock`` keeps rented copies rented."""
    return book_dto_to_response(services.books.update_book(book_id, book_request_to_dto(payload)))


@books_router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(book_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    services.books.delete_book(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Rentals ---
rentals_router = APIRouter(prefix="/rentals", tags=["rentals"])


@rentals_router.get("", response_model=RentalPage)
def list_rentals(
    paging: tuple[int, int] = Depends(page_params),
    student_id: Optional[int] = Query(None, ge=1, le=MAX_ID, description="Only rentals of this student"),
    active: Optional[bool] = Query(None, description="true: not yet returned, false: returned"),
    services: Services = Depends(get_services),
):
    result = services.rentals.list_rentals(*paging, student_id=student_id, active=active)
    return RentalPage(items=[rental_dto_to_response(r) for r in result.items], **_page_fields(result))


@rentals_router.get("/{rental_id}", response_model=RentalResponse)
def get_rental(rental_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    return rental_dto_to_response(services.rentals.get_rental(rental_id))


@rentals_router.post("", response_model=RentalResponse, status_code=status.HTTP_201_CREATED)
def rent_book(payload: RentalRequest, services: Services = Depends(get_services)):
    """Rent one copy of a book to a student."""
    return rental_dto_to_response(services.rentals.rent_book(rental_request_to_dto(payload)))


@rentals_router.put("/{rental_id}", response_model=RentalResponse)
def return_rental(rental_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    """Return a rented copy to stock."""
    return rental_dto_to_response(services.rentals.return_rental(rental_id))


@rentals_router.delete("/{rental_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rental(rental_id: int = Path(..., ge=1, le=MAX_ID), services: Services = Depends(get_services)):
    services.rentals.delete_rental(rental_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Health ---
health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
def health(request: Request):
    """Lightweight health endpoint for container checks."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=request.app.state.database.ping(),
    )


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Compose database, repositories, services and routes into one application."""
    logging.basicConfig(level=settings.log_level)
    database = database or Database(settings.database_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.create_tables()
        logger.info(f"{settings.app_name} {settings.app_version} started ({settings.environment})")
        yield
        logger.info(f"{settings.app_name} stopped")

    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug, lifespan=lifespan)
    app.state.database = database
    app.state.services = build_services(database)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    for router in (students_router, id_cards_router, books_router, rentals_router, health_router):
        app.include_router(router)
    return app


app = create_app()
