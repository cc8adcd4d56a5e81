"""
Centralized error handling and user-friendly error messages.

Services raise `AppError` subclasses; `register_exception_handlers` turns them
into the `{"success": false, "error": ...}` envelope at the HTTP edge.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Rejected input (upload size/type/content-type, empty request)."""
    def __init__(self, message: str, details: dict | None = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)


class PayloadTooLargeError(ValidationError):
    """Upload exceeds the configured size limit."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, details=details, status_code=413)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class UnauthorizedError(AppError):
    """Missing or invalid credentials."""
    def __init__(self, message: str = "Unauthorized access", details: dict | None = None):
        super().__init__(message, status_code=401, details=details)


class AuthorizationError(AppError):
    """Caller is authenticated but does not own the resource."""
    def __init__(self, message: str = "Access forbidden", details: dict | None = None):
        super().__init__(message, status_code=403, details=details)


class DomainError(AppError):
    """Request is well-formed but violates a business rule."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=422, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # File uploads
    "file_empty": "The uploaded file is empty.",
    "file_too_large": "File is too large. Maximum size is 10MB.",
    "invalid_file_type": "Invalid file type. Please upload a PDF, DOC, DOCX or TXT file.",
    "invalid_content_type": "The file's content type does not match its extension.",
    "file_missing": "File no longer available on server.",

    # Screening
    "no_applicants": "Select at least one applicant to screen.",
    "applicants_not_in_job": "Some applicants don't belong to this job post.",
    "job_not_found": "Job posting not found or has been removed.",
    "job_forbidden": "You don't have access to this job post.",
    "applicant_not_found": "Applicant not found.",
    "document_not_found": "CV document not found.",
    "result_not_found": "Screening result not found.",
    "no_usable_document": "No usable document: applicant has no processed CV with extracted text.",

    # General
    "unauthorized": "Please login to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope on an app (used by main.py and the test app)."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("AppError %s on %s: %s", exc.status_code, request.url.path, exc.message)
        else:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details or None)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return create_error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        logger.exception("Database OperationalError: %s", exc)
        return create_error_response(503, get_error_message("database_error"))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))
