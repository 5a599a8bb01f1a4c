"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    DatabaseError,
    AuthenticationError,
    BadRequestError,

    # Upload
    NoFileProvidedError,
    FileTooLargeError,
    UnsupportedFileTypeError,
    SpreadsheetParseError,

    # Import batch
    EmptyImportError,
    TooManyRowsError,
    InvalidImportRequestError,
    RateLimitExceededError,
    SubscriptionLimitExceededError,
    TaxonomyReconciliationError,
)

__all__ = [
    # Base
    "AppError",
    "DatabaseError",
    "AuthenticationError",
    "BadRequestError",

    # Upload
    "NoFileProvidedError",
    "FileTooLargeError",
    "UnsupportedFileTypeError",
    "SpreadsheetParseError",

    # Import batch
    "EmptyImportError",
    "TooManyRowsError",
    "InvalidImportRequestError",
    "RateLimitExceededError",
    "SubscriptionLimitExceededError",
    "TaxonomyReconciliationError",
]
