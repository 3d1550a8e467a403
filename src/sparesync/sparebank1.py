"""SpareBank 1 personal banking API client."""

import logging
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, auto
from typing import Any

import requests

from sparesync.auth import BASE_URL, REQUEST_TIMEOUT, TokenManager
from sparesync.exceptions import BankApiError
from sparesync.models import AccountMapping, BankTransaction

logger = logging.getLogger(__name__)

ACCOUNTS_URL = f"{BASE_URL}/personal/banking/accounts"
TRANSACTIONS_URL = f"{BASE_URL}/personal/banking/transactions"
ACCEPT = "application/vnd.sparebank1.v1+json; charset=utf-8"


class RequestState(Enum):
    """Steps of a single authenticated GET.

    SEND -> REFRESHING -> RETRY is the only path that refreshes. RETRY never
    leads back to REFRESHING, so a call refreshes at most once.
    """

    SEND = auto()
    REFRESHING = auto()
    RETRY = auto()


def format_api_date(value: date | datetime) -> str:
    """Format the calendar date of an instant as YYYY-MM-DD."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


class BankClient:
    """Client for the SpareBank 1 REST API."""

    def __init__(self, token_manager: TokenManager) -> None:
        """Initialize client with the token manager that owns the tokens."""
        self.token_manager = token_manager
        self._session = requests.Session()
        self._session.headers.update({"Accept": ACCEPT})

    def get(self, url: str, params: dict[str, str] | None = None) -> Any:
        """GET a resource, refreshing the access token once on a 401.

        Raises:
            BankApiError: On any failure other than a first-attempt 401
            RefreshError: If the token refresh is rejected
        """
        state = RequestState.SEND
        while True:
            if state is RequestState.REFRESHING:
                logger.info("Access token rejected, refreshing")
                self.token_manager.refresh()
                state = RequestState.RETRY
                continue

            response = self._send(url, params)
            if response.ok:
                return self._parse(response, url)

            if response.status_code == 401 and state is RequestState.SEND:
                state = RequestState.REFRESHING
                continue

            raise BankApiError(response.status_code, _error_body(response), url)

    def _send(self, url: str, params: dict[str, str] | None) -> requests.Response:
        """Issue the GET with the current bearer token."""
        logger.debug("GET %s %s", url, params or "")
        headers = {"Authorization": f"Bearer {self.token_manager.store.access_token or ''}"}
        try:
            response = self._session.get(
                url, params=params, headers=headers, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            raise BankApiError(None, str(e), url) from e
        logger.debug("Response %s", response.status_code)
        return response

    @staticmethod
    def _parse(response: requests.Response, url: str) -> Any:
        """Parse a JSON body, keeping amounts exact."""
        try:
            return response.json(parse_float=Decimal)
        except ValueError as e:
            raise BankApiError(response.status_code, response.text, url) from e

    def list_accounts(self) -> list[dict[str, Any]]:
        """Get all accounts visible to the authorized user."""
        result = self.get(ACCOUNTS_URL)
        return result.get("accounts", [])  # type: ignore[no-any-return]

    def list_transactions(
        self,
        account: AccountMapping,
        start: date | datetime,
        end: date | datetime,
    ) -> dict[str, Any]:
        """Get the raw transaction listing for one account.

        Args:
            account: Account to fetch
            start: First day of the window (only the calendar date is used)
            end: Last day of the window (only the calendar date is used)

        Returns:
            Response body with a ``transactions`` list
        """
        params = {
            "accountKey": account.bank_key,
            "fromDate": format_api_date(start),
            "toDate": format_api_date(end),
            "source": "ALL",
        }
        result = self.get(TRANSACTIONS_URL, params=params)
        result.setdefault("transactions", [])
        return result  # type: ignore[no-any-return]


def parse_transactions(records: Iterable[dict[str, Any]]) -> list[BankTransaction]:
    """Parse raw transaction records into BankTransaction objects.

    Raises:
        BankApiError: If a record lacks a usable date or amount
    """
    try:
        return [BankTransaction.from_api(record) for record in records]
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        body = f"Malformed transaction record: {e!r}"
        raise BankApiError(200, body, TRANSACTIONS_URL) from e


def _error_body(response: requests.Response) -> Any:
    """Best-effort decode of an error response body."""
    try:
        return response.json()
    except ValueError:
        return response.text
