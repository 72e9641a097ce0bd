"""Exceptions raised by the short link registry."""

from typing import Optional


class ShortLinkError(Exception):
    """Base class for all short link errors."""


class CreationError(ShortLinkError, ValueError):
    """A link could not be created."""


class InvalidUrlError(CreationError):
    """Destination is malformed or does not use http/https."""


class InvalidDurationError(CreationError):
    """Validity window is not a positive number of minutes."""


class CustomCodesDisabledError(CreationError):
    """A custom code was requested while custom codes are turned off."""


class CollisionError(CreationError):
    """Requested short code is already taken."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Short code '{code}' already exists")


class ExhaustedError(CreationError):
    """No free short code was found within the retry bound."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Unable to generate unique short code after {attempts} attempts"
        )


class NotFoundError(ShortLinkError, LookupError):
    """Operation targets a short code that does not exist."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or f"Short code '{code}' not found")
