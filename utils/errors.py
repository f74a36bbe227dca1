from enum import Enum

class ErrorKind(str, Enum):
    """
    Classification of upload failures.

    FORMAT, MISSING_HEADERS and PERSISTENCE abort the whole upload.
    VALIDATION and PROCESSING are scoped to a single row: the row is
    skipped and recorded, the rest of the file is still processed.
    """
    FORMAT = "format"
    MISSING_HEADERS = "missing_headers"
    VALIDATION = "validation"
    PROCESSING = "processing"
    PERSISTENCE = "persistence"
    INTERNAL = "internal"

class ExcelUploadError(Exception):
    """Base class for errors raised by the upload pipeline."""
    kind = ErrorKind.INTERNAL

class FieldValidationError(ExcelUploadError):
    """A field value was rejected. Maps to 400 Bad Request."""
    kind = ErrorKind.VALIDATION

class MaliciousContentError(FieldValidationError):
    """Raised by the sanitizer when a value contains an injection pattern."""

    def __init__(self, message: str = "Malicious content detected. Input contains potentially dangerous script patterns."):
        super().__init__(message)

class PersistenceError(ExcelUploadError):
    """The record store rejected a read or a batch write."""
    kind = ErrorKind.PERSISTENCE
