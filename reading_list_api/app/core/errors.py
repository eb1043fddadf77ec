"""
Error taxonomy shared by services and storage backends.

Services raise these exceptions; ``main.create_app`` registers
handlers that render them as ``{"error": <message>}`` with the
status code carried by the exception class.
"""

from fastapi import status


class LibraryError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LibraryError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthError(LibraryError):
    """Bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid username or password"


class NotFoundError(LibraryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(LibraryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists"


class StorageError(LibraryError):
    """The storage backend is unavailable or a query failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage unavailable"
