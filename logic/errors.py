"""Error taxonomy shared by the stores, the selector and the HTTP layer.

Every error carries the HTTP status it maps to and a message that is safe to
show a client. The original exception text stays in the server logs.
"""

from __future__ import annotations


class StylistError(Exception):
    """Base class for all handled failures."""

    status_code = 500
    public_message = "Internal server error"


class InputValidationError(StylistError):
    """Raised when required request input is missing or invalid."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.public_message = message


class InsufficientItemsError(StylistError):
    """Raised when a user has fewer than three items to style."""

    status_code = 400
    public_message = "Please upload at least 3 items first!"


class MissingAssetsError(StylistError):
    """Raised when too few item images exist on disk to attach."""

    status_code = 400
    public_message = "Not enough item images are available to style an outfit."


class StorageError(StylistError):
    """Raised when an uploaded image cannot be written."""

    public_message = "Upload failed"


class PersistenceError(StylistError):
    """Raised on database connectivity or constraint failures."""

    public_message = "Database operation failed"


class ExternalServiceError(StylistError):
    """Raised when the generative model call fails."""

    public_message = "AI stylist failed"


class MalformedAIResponseError(StylistError):
    """Raised when the model answer cannot be turned into an outfit."""

    public_message = "AI produced invalid JSON"


__all__ = [
    "StylistError",
    "InputValidationError",
    "InsufficientItemsError",
    "MissingAssetsError",
    "StorageError",
    "PersistenceError",
    "ExternalServiceError",
    "MalformedAIResponseError",
]
