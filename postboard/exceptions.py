"""Domain exceptions raised by the service layer.

Routers translate these into HTTP status codes; each class carries the
status it maps to so the translation lives in one place.
"""
from fastapi import status


class PostboardError(Exception):
    """Base exception for application errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PostNotFound(PostboardError):
    """Raised when no post exists with the requested id."""

    status_code = status.HTTP_404_NOT_FOUND


class PostPermissionDenied(PostboardError):
    """Raised when the actor is anonymous or not the post's owner."""

    status_code = status.HTTP_403_FORBIDDEN


class PostValidationFailed(PostboardError):
    """Raised when post fields break the domain rules at the service layer."""


class PostCreationFailed(PostboardError):
    """Raised when the store rejects a new post."""


class UserAlreadyExists(PostboardError):
    """Raised when signing up with an email that is already registered."""
