"""Custom exception classes for the application."""

from __future__ import annotations


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self):
        """Serialize the error for a JSON response."""
        return {"error": self.message}


class ValidationError(AppError):
    """Raised when an input breaks a scoring, roster or lifecycle rule."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ConflictError(AppError):
    """Raised when a versioned write was based on a stale read."""

    def __init__(
        self,
        collection: str,
        expected_version: str | None,
        current_version: str | None,
        message: str | None = None,
    ):
        """Initialize the error."""
        super().__init__(
            message
            or f"'{collection}' has been updated by another user since you loaded it.",
            409,
        )
        self.collection = collection
        self.expected_version = expected_version
        self.current_version = current_version

    def to_dict(self):
        """Serialize the conflict along with the available remediations."""
        return {
            "error": self.message,
            "conflict": True,
            "collection": self.collection,
            "expectedVersion": self.expected_version,
            "currentVersion": self.current_version,
            "options": ["reload", "overwrite"],
        }


class StorageError(AppError):
    """Raised when the storage backend fails."""

    def __init__(self, message="A storage error occurred. Please try again later."):
        """Initialize the error."""
        super().__init__(message, 503)
