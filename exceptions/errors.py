"""
Custom exception classes for the application.

Every error carries a machine code, a human message and an HTTP status.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.
    
    All custom exceptions inherit from this.
    
    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """
    
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)
    
    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class DatabaseError(AppError):
    """Database operation failed (500)."""
    
    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


class AuthenticationError(AppError):
    """Caller could not be authenticated (401)."""

    def __init__(
        self,
        message: str = "Authentication required",
        code: str = "AUTHENTICATION_REQUIRED",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=401,
            details=details
        )


class BadRequestError(AppError):
    """Malformed request (400)."""

    def __init__(
        self,
        message: str,
        code: str = "BAD_REQUEST",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details
        )


# ===================
# UPLOAD ERRORS
# ===================

class NoFileProvidedError(BadRequestError):
    """Multipart request carried no file."""

    def __init__(self):
        super().__init__(
            code="NO_FILE_PROVIDED",
            message="No file provided"
        )


class FileTooLargeError(BadRequestError):
    """Uploaded file is over the size ceiling."""

    def __init__(self, size: int, max_bytes: int):
        super().__init__(
            code="FILE_TOO_LARGE",
            message=f"File exceeds maximum size of {max_bytes // (1024 * 1024)}MB",
            details={"size": size, "max_bytes": max_bytes}
        )


class UnsupportedFileTypeError(BadRequestError):
    """Uploaded file is neither CSV nor XLSX."""

    def __init__(self, content_type: Optional[str]):
        super().__init__(
            code="UNSUPPORTED_FILE_TYPE",
            message="Unsupported file type. Please upload CSV or Excel file.",
            details={"content_type": content_type}
        )


class SpreadsheetParseError(BadRequestError):
    """File bytes could not be read as a spreadsheet."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="SPREADSHEET_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# IMPORT BATCH ERRORS
# ===================

class EmptyImportError(BadRequestError):
    """Parsed file has no data rows."""

    def __init__(self):
        super().__init__(
            code="IMPORT_EMPTY",
            message="No data found in the imported file"
        )


class TooManyRowsError(BadRequestError):
    """Parsed file has more rows than a batch allows."""

    def __init__(self, row_count: int, max_rows: int):
        super().__init__(
            code="IMPORT_TOO_MANY_ROWS",
            message=f"File exceeds the maximum limit of {max_rows} rows",
            details={"row_count": row_count, "max_rows": max_rows}
        )


class InvalidImportRequestError(BadRequestError):
    """Commit body is missing rows or selection."""

    def __init__(self, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_IMPORT_REQUEST",
            message="Invalid request data",
            details=details
        )


class RateLimitExceededError(AppError):
    """Too many imports inside the rate window (429)."""

    def __init__(self, user_id: str, limit: int, window_minutes: int):
        super().__init__(
            code="RATE_LIMIT_EXCEEDED",
            message="Rate limit exceeded. Please try again later.",
            status_code=429,
            details={"user_id": user_id, "limit": limit, "window_minutes": window_minutes}
        )


class SubscriptionLimitExceededError(AppError):
    """Import would push the catalog over the plan allowance (403)."""

    def __init__(self, current_count: int, incoming: int, limit: int):
        super().__init__(
            code="SUBSCRIPTION_LIMIT_EXCEEDED",
            message=(
                f"Importing {incoming} reptiles would exceed your subscription limit "
                f"of {limit} (currently {current_count})"
            ),
            status_code=403,
            details={"current_count": current_count, "incoming": incoming, "limit": limit}
        )


class TaxonomyReconciliationError(AppError):
    """Species or morph creation failed before any reptile was written (500)."""

    def __init__(self, entity: str, message: str):
        super().__init__(
            code="TAXONOMY_RECONCILIATION_FAILED",
            message=f"Import failed: could not create {entity}: {message}",
            status_code=500,
            details={"entity": entity}
        )
