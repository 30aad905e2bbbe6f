"""
Error taxonomy and the single boundary that turns failures into responses.

Service functions return either their value or a ``Failure``; routers pass
the result through ``respond``.  Errors that the framework raises itself
(request validation, ``HTTPException`` from the route-level auth
gate, unknown routes) and SQLAlchemy errors escaping a service are mapped by
the handlers registered in ``install_error_handlers``.  Every error body has
the shape ``{"error": <message>, "details": <optional>}``.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERSISTENCE = "persistence"
    INTERNAL = "internal"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PERSISTENCE: 500,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class Failure:
    """The failure branch of a service result."""

    kind: ErrorKind
    message: str
    details: Any = None

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_response(self) -> JSONResponse:
        return error_response(self.status_code, self.message, self.details)


def not_found(message: str) -> Failure:
    return Failure(ErrorKind.NOT_FOUND, message)


def conflict(message: str = "Resource already exists") -> Failure:
    return Failure(ErrorKind.CONFLICT, message)


def error_response(status_code: int, message: str, details: Any = None) -> JSONResponse:
    body: dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=body)


def respond(result):
    """Return *result* unchanged, or its JSON error response if it is a ``Failure``."""
    if isinstance(result, Failure):
        return result.to_response()
    return result


# ---------------------------------------------------------------------------
# Framework-raised errors
# ---------------------------------------------------------------------------

async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Validation error on %s %s", request.method, request.url.path)
    return Failure(ErrorKind.VALIDATION, "Validation error", exc.errors()).to_response()


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    failure = conflict()
    return failure.to_response()


async def _handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return error_response(STATUS_CODES[ErrorKind.PERSISTENCE], "Database error")


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(STATUS_CODES[ErrorKind.INTERNAL], "Internal server error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(IntegrityError, _handle_integrity_error)
    app.add_exception_handler(SQLAlchemyError, _handle_database_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
