"""Error types raised by the service layer.

Each error carries the HTTP status it maps to, a user-facing message and an
optional ``details`` dict that is merged into the JSON body.
"""

from __future__ import annotations


class WalletbookError(Exception):
    """Base exception for all walletbook errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(WalletbookError):
    """Input rejected before any store call was made."""

    status_code = 400


class AuthenticationError(WalletbookError):
    """Login failed. The message never says whether the account exists."""

    status_code = 401


class SessionRequiredError(WalletbookError):
    """No live session; the client should navigate to the login route."""

    status_code = 401


class PermissionDeniedError(WalletbookError):
    status_code = 403


class NotFoundError(WalletbookError):
    status_code = 404


class OverdraftConfirmationRequired(WalletbookError):
    """Expense exceeds the derived balance and was not confirmed."""

    status_code = 409


class StoreError(WalletbookError):
    """The database rejected or failed a store call."""

    status_code = 502
