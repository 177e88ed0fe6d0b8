"""
    Centralized exception handling for the FastAPI application.
"""
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    kind = "api_error"

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class ConflictException(APIException):
    """Exception for a resource that already exists."""
    kind = "conflict"

    def __init__(self, detail: str):
        super().__init__(status_code=409, detail=detail)

class AuthenticationException(APIException):
    """Exception for bad credentials or an invalid session token."""
    kind = "authentication_failure"

    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(status_code=401, detail=detail)

class ValidationException(APIException):
    """Exception for requests rejected before reaching business logic."""
    kind = "validation_failure"

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class InvalidImageException(ValidationException):
    """Exception for invalid image files."""

class UpstreamException(APIException):
    """Exception for media gateway failures."""
    kind = "upstream_failure"

    def __init__(self, detail: str):
        super().__init__(status_code=502, detail=detail)

class DatabaseException(APIException):
    """Exception for database failures."""
    kind = "database_failure"

    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    log.error(f"API Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "detail": exc.detail},
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles request validation errors raised by FastAPI."""
    log.warning(f"Validation Exception: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"kind": ValidationException.kind, "detail": jsonable_encoder(exc.errors())},
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": "http_error", "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"kind": "internal_error", "detail": "An unexpected error occurred."},
    )

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
