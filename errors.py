"""
Error taxonomy for the submission pipeline.

Every failure is raised with an explicit ``ErrorKind`` at the point where it
happens; the HTTP layer only reads ``status_code``, ``message`` and ``errors``.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    MISSING_FILE = "missing_file"
    INVALID_FILE_TYPE = "invalid_file_type"
    FILE_TOO_LARGE = "file_too_large"
    PERSISTENCE = "persistence"
    DUPLICATE = "duplicate"
    DELIVERY = "delivery"
    UNEXPECTED = "unexpected"


FieldError = Dict[str, str]


class IntakeError(Exception):
    kind: ErrorKind = ErrorKind.UNEXPECTED
    status_code: int = 500

    def __init__(self, message: str, errors: Optional[List[FieldError]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(IntakeError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class FileError(IntakeError):
    status_code = 400
    field_name = "resumeFile"

    def __init__(self, message: str, field_name: Optional[str] = None):
        self.field_name = field_name or self.field_name
        super().__init__(message, [{"field": self.field_name, "message": message}])


class MissingFile(FileError):
    kind = ErrorKind.MISSING_FILE


class InvalidFileType(FileError):
    kind = ErrorKind.INVALID_FILE_TYPE


class FileTooLarge(FileError):
    kind = ErrorKind.FILE_TOO_LARGE


class PersistenceError(IntakeError):
    """Storage write or lookup failed.

    ``data_shape`` marks refusals caused by the document itself (document
    validation, unique constraint); those are the caller's problem and map to
    400. Anything else is a storage failure and maps to 500.
    """

    kind = ErrorKind.PERSISTENCE

    def __init__(self, message: str, data_shape: bool = False, errors: Optional[List[FieldError]] = None):
        super().__init__(message, errors)
        self.data_shape = data_shape
        self.status_code = 400 if data_shape else 500


class DuplicateRecord(PersistenceError):
    kind = ErrorKind.DUPLICATE

    def __init__(self, message: str = "This email is already subscribed."):
        super().__init__(message, data_shape=True)


class DeliveryError(IntakeError):
    kind = ErrorKind.DELIVERY
    status_code = 502

    def __init__(self, message: str, recipient: Optional[str] = None):
        super().__init__(message)
        self.recipient = recipient
