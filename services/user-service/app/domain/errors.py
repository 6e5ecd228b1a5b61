"""Error taxonomy raised by the account workflows."""

from __future__ import annotations


class AccountError(Exception):
    """Base class for errors the HTTP layer maps to a client-facing status."""

    message = "account error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class AlreadyExistsError(AccountError):
    message = "User already exists"


class InvalidCredentialsError(AccountError):
    message = "Invalid credentials"


class InactiveAccountError(AccountError):
    message = "User is inactive"


class InvalidTokenError(AccountError):
    """A bearer token failed verification.

    ``reason`` is ``"expired"`` or ``"malformed"``; callers see the same rejection
    either way, the reason only feeds logs and metrics.
    """

    message = "Invalid or expired token"

    def __init__(self, reason: str = "malformed", message: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason


class DependencyUnavailableError(Exception):
    """An optional dependency (cache, broker, wallet) could not be reached."""

    def __init__(self, dependency: str, detail: str) -> None:
        super().__init__(f"{dependency} unavailable: {detail}")
        self.dependency = dependency
        self.detail = detail
