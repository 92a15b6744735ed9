"""Domain errors for the import/export pipeline.

Only file-level and precondition failures are raised. Row-level problems
are collected as FieldError data on the ImportResult and never thrown.
"""
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INVALID_FILE = "INVALID_FILE"
    UNKNOWN_IMPORT_KIND = "UNKNOWN_IMPORT_KIND"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    IMPORT_JOB_NOT_FOUND = "IMPORT_JOB_NOT_FOUND"
    SCHEDULING_API_ERROR = "SCHEDULING_API_ERROR"


class ImportExportError(Exception):
    """Base class; carries the HTTP status the API layer should answer with."""

    status_code: int = 400
    error_code: ErrorCode = ErrorCode.INVALID_FILE

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidFileError(ImportExportError):
    """Wrong file type, unreadable bytes, or a structurally broken CSV."""

    status_code = 400
    error_code = ErrorCode.INVALID_FILE


class UnknownImportKind(ImportExportError):
    status_code = 404
    error_code = ErrorCode.UNKNOWN_IMPORT_KIND

    def __init__(self, kind: str):
        super().__init__(f"Unknown import kind: '{kind}'", {"kind": kind})
        self.kind = kind


class InvalidDateRangeError(ImportExportError):
    status_code = 422
    error_code = ErrorCode.INVALID_DATE_RANGE


class ImportJobNotFound(ImportExportError):
    status_code = 404
    error_code = ErrorCode.IMPORT_JOB_NOT_FOUND

    def __init__(self, job_id: str):
        super().__init__(f"Import job '{job_id}' not found", {"job_id": job_id})
        self.job_id = job_id


class SchedulingApiError(ImportExportError):
    """The scheduling API could not be reached or answered with an error."""

    status_code = 502
    error_code = ErrorCode.SCHEDULING_API_ERROR
