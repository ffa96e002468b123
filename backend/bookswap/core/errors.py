from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an API error response."""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error."

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        body = {"message": self.message, "code": self.code}
        body.update(self.extra)
        return {"error": body}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request."


class AuthenticationError(AppError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Invalid credentials."


class PaymentDeclinedError(AppError):
    status_code = 402
    code = "PAYMENT_DECLINED"
    default_message = "Payment was declined."


class NotAuthorizedError(AppError):
    status_code = 403
    code = "NOT_AUTHORIZED"
    default_message = "You are not allowed to perform this action."


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found."


class InvalidStateError(AppError):
    status_code = 409
    code = "INVALID_STATE"
    default_message = "Operation not allowed in the current state."


class InsufficientFundsError(AppError):
    status_code = 409
    code = "INSUFFICIENT_FUNDS"
    default_message = "Insufficient points."


class DuplicateError(AppError):
    status_code = 409
    code = "DUPLICATE"
    default_message = "Resource already exists."


class DuplicateIsbnError(DuplicateError):
    code = "ISBN_EXISTS"
    default_message = "A book with this ISBN already exists."

    def __init__(self, book_id: str, message: str | None = None) -> None:
        super().__init__(message, bookId=book_id)
        self.book_id = book_id


class DuplicateEmailError(DuplicateError):
    code = "EMAIL_EXISTS"
    default_message = "Email is already registered."


class ListingConflictError(DuplicateError):
    code = "LISTING_EXISTS"
    default_message = "This book already has an active listing."


class DuplicateRequestError(DuplicateError):
    code = "DUPLICATE_REQUEST"
    default_message = "You already have a pending request for this book."


class DuplicateDisputeError(DuplicateError):
    code = "DUPLICATE_DISPUTE"
    default_message = "This exchange already has an active dispute."


class SelfExchangeError(ValidationError):
    code = "SELF_EXCHANGE"
    default_message = "You cannot request your own book."


class AbusiveContentError(ValidationError):
    code = "ABUSIVE_CONTENT"
    default_message = "ABUSIVE_CONTENT: message contains language that is not allowed."


class DatabaseUnavailableError(AppError):
    status_code = 503
    code = "DATABASE_UNAVAILABLE"
    default_message = "Database unavailable."


def _error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"message": message, "code": code}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = {401: "UNAUTHENTICATED", 403: "NOT_AUTHORIZED", 404: "NOT_FOUND"}.get(
            exc.status_code, "HTTP_ERROR"
        )
        return _error_response(exc.status_code, str(exc.detail), code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request.")
        if location:
            message = f"{location}: {message}"
        return _error_response(400, message, ValidationError.code)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return _error_response(409, "Conflicting record.", DuplicateError.code)

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def handle_database_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Database unavailable on {request.url.path}: {exc}")
        error = DatabaseUnavailableError()
        return JSONResponse(status_code=error.status_code, content=error.to_payload())
