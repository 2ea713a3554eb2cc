from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested session is not found."""

    def __init__(self, message: str = "Session not found") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a session cannot be accessed with the given code and key.

    The message must not reveal whether the code exists.
    """

    def __init__(self, message: str = "Session not found or key invalid") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class ResourceExhaustedError(Exception):
    """Raised when no free device code could be allocated."""


class DecryptError(Exception):
    """Raised when stored content cannot be decrypted with the session key."""
