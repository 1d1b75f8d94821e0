"""
Exceptions raised by the metadata engine.

Lower-level database errors are translated into these before they leave
the db package, so callers never see driver-specific error types.
"""

from dataclasses import dataclass
from typing import List, Optional


class MetadataError(Exception):
    """Base exception for metadata operations."""
    pass


class PhotoNotFound(MetadataError):
    """Raised when a photo id does not exist."""

    def __init__(self, photo_id: str):
        super().__init__(f"Photo with ID '{photo_id}' not found")
        self.photo_id = photo_id


@dataclass
class FieldError:
    """A single rejected request field."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"validation error for field '{self.field}': {self.message}"


class ValidationRejected(MetadataError):
    """Raised when caller-supplied fields fail validation."""

    def __init__(self, errors: List[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)

    @property
    def details(self) -> List[str]:
        return [str(error) for error in self.errors]


class StorageFailure(MetadataError):
    """Raised when a query or statement against the store fails."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(f"Storage failure during {operation}")
        self.operation = operation
        self.cause = cause


class StorageTimeout(StorageFailure):
    """Raised when a statement or pool checkout exceeds its time budget."""
    pass


class PartialUpdateInconsistency(StorageFailure):
    """Raised when an update failed and its rollback failed as well."""
    pass
