import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from enrolment import errors
from enrolment.schemas import ErrorResponse

logger = logging.getLogger(__name__)

# Status code per failure kind, checked in order
STATUS_BY_KIND = (
    (errors.NotFoundError, HTTPStatus.NOT_FOUND),
    (errors.ConflictError, HTTPStatus.CONFLICT),
    (errors.ValidationError, HTTPStatus.BAD_REQUEST),
)

# One handler per domain base class
DOMAIN_ERRORS = (
    errors.StudentError,
    errors.StudentIdCardError,
    errors.BookError,
    errors.RentalError,
)


def _error_response(request: Request, status: HTTPStatus, message: str,
                    domain: Optional[str] = None, details: Optional[list] = None) -> JSONResponse:
    body = ErrorResponse(
        status=status.value,
        error=status.phrase,
        message=message,
        domain=domain,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc).isoformat(),
        details=details,
    )
    return JSONResponse(status_code=status.value, content=body.model_dump(exclude_none=True))


def status_for(exc: errors.EnrolmentError) -> HTTPStatus:
    for kind, status in STATUS_BY_KIND:
        if isinstance(exc, kind):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


async def domain_error_handler(request: Request, exc: errors.EnrolmentError) -> JSONResponse:
    status = status_for(exc)
    logger.warning(f"{request.method} {request.url.path} -> {status.value}: {exc.message}")
    return _error_response(request, status, exc.message, getattr(exc, "domain", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return _error_response(request, HTTPStatus.BAD_REQUEST, "Request validation failed.", details=details)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _error_response(request, HTTPStatus.INTERNAL_SERVER_ERROR, "An unexpected error occurred.")


def register_exception_handlers(app: FastAPI) -> None:
    for domain_error in DOMAIN_ERRORS:
        app.add_exception_handler(domain_error, domain_error_handler)
    # failures not tied to a domain still get their kind's status
    app.add_exception_handler(errors.EnrolmentError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
