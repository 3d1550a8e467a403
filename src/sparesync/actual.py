"""Actual Budget client, talking to an actual-http-api server."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import requests

from sparesync.exceptions import LedgerApiError
from sparesync.models import LedgerTransaction, Payee

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


@dataclass
class ImportResult:
    """Result of importing transactions into one ledger account."""

    added: int
    updated: int

    @property
    def total(self) -> int:
        """Total transactions the ledger accepted."""
        return self.added + self.updated


class ActualClient:
    """Client for the ledger's accounts, payees and transaction import."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        budget_id: str,
        encryption_password: str | None = None,
    ) -> None:
        """Initialize client for one budget file."""
        self.base_url = base_url.rstrip("/")
        self.budget_id = budget_id
        self._session = requests.Session()
        self._session.headers.update({
            "x-api-key": api_key,
            "Accept": "application/json",
        })
        if encryption_password:
            self._session.headers["budget-encryption-password"] = encryption_password

    def _request(
        self,
        method: str,
        endpoint: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make an API request against the budget and return its ``data``."""
        url = f"{self.base_url}/v1/budgets/{self.budget_id}/{endpoint}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, json=json, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise LedgerApiError(f"Ledger request {method} {endpoint} failed: {e}") from e

        if not response.ok:
            raise LedgerApiError(
                f"Ledger request {method} {endpoint} failed: status {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise LedgerApiError(
                f"Ledger returned invalid JSON for {method} {endpoint}",
                status=response.status_code,
                body=response.text,
            ) from e
        return result.get("data")

    def list_accounts(self) -> list[dict[str, Any]]:
        """Get all accounts in the budget."""
        return self._request("GET", "accounts") or []

    def list_payees(self) -> list[Payee]:
        """Get all payees in the budget, including transfer payees."""
        return [Payee.from_api(p) for p in self._request("GET", "payees") or []]

    def import_transactions(
        self,
        account_id: str,
        entries: Sequence[LedgerTransaction],
    ) -> ImportResult:
        """Import transactions into a ledger account.

        The ledger deduplicates, so importing the same window twice is safe.

        Raises:
            LedgerApiError: If the request fails or the ledger reports errors
        """
        data = self._request(
            "POST",
            f"accounts/{account_id}/transactions/import",
            json={"transactions": [entry.to_payload() for entry in entries]},
        ) or {}

        if errors := data.get("errors"):
            raise LedgerApiError(
                f"Ledger rejected import into account {account_id}: {errors}",
                body=errors,
            )

        return ImportResult(
            added=len(data.get("added", [])),
            updated=len(data.get("updated", [])),
        )
