"""
Custom exceptions for the bot service.
"""

from typing import Any


class PostBotError(Exception):
    """Base exception for the bot service."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# === Storage Exceptions ===

class StoreUnavailableError(PostBotError):
    """Raised when the document store cannot be reached or a query fails."""
    pass


class AccountExistsError(PostBotError):
    """Raised when creating an account for an identity that already has one."""

    def __init__(self, chat_identity: int):
        super().__init__(
            message=f"Account already exists: {chat_identity}",
            details={"chat_identity": chat_identity}
        )


# === External API Exceptions ===

class PostingApiError(PostBotError):
    """Raised when the X API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            details={"status_code": status_code}
        )
        self.status_code = status_code


class TextTransformError(PostBotError):
    """Raised when the generative-text API call fails."""

    def __init__(self, message: str, transient: bool = False):
        super().__init__(
            message=message,
            details={"transient": transient}
        )
        # True when the API could not be reached at all
        self.transient = transient


# === OAuth Exceptions ===

class AuthorizationError(PostBotError):
    """Raised when an OAuth2 callback cannot be completed."""
    pass


class AuthorizationSessionNotFoundError(AuthorizationError):
    """Raised when the callback state does not match a pending handshake."""

    def __init__(self):
        super().__init__("Authorization session not found")


class HandleUnavailableError(AuthorizationError):
    """Raised when the linked account's handle cannot be read."""

    def __init__(self):
        super().__init__("Could not read X handle")
