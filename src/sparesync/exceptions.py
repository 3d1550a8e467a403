"""Exceptions raised while syncing bank transactions into the ledger.

Every error is fatal for the current run. The only recovery path is the
single refresh-and-retry that BankClient performs on a first 401.
"""

from typing import Any


class SyncError(Exception):
    """Base class for all sparesync errors."""


class ConfigError(SyncError):
    """Raised when required configuration is missing or inconsistent."""


class AuthExchangeError(SyncError):
    """Raised when the authorization-code exchange fails.

    The user must run the bank authorization flow again.
    """


class RefreshError(SyncError):
    """Raised when the bank rejects the refresh token.

    Refresh tokens are single-use; once rejected the user has to re-authorize.
    """


class BankApiError(SyncError):
    """Raised when a bank API request fails."""

    def __init__(self, status: int | None, body: Any, url: str | None = None) -> None:
        self.status = status
        self.body = body
        self.url = url
        target = f" for {url}" if url else ""
        super().__init__(f"Bank API request failed{target}: status {status}")


class TransferPayeeNotFoundError(SyncError):
    """Raised when a mapped counterparty account has no transfer payee."""

    def __init__(self, remote_account_number: str, actual_id: str) -> None:
        self.remote_account_number = remote_account_number
        self.actual_id = actual_id
        super().__init__(
            f"No transfer payee for ledger account {actual_id} "
            f"(bank account {remote_account_number})"
        )


class LedgerApiError(SyncError):
    """Raised when a ledger backend request fails."""

    def __init__(self, message: str, status: int | None = None, body: Any = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message)
