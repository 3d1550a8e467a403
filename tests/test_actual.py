"""Tests for the Actual Budget client."""

from collections.abc import Callable
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
import requests

from sparesync.actual import ActualClient, ImportResult
from sparesync.exceptions import LedgerApiError
from sparesync.models import LedgerTransaction, Payee


def make_client() -> ActualClient:
    return ActualClient("http://actual.test/", "test_key", "budget-1")


class TestActualClientInit:
    """Tests for ActualClient construction."""

    def test_init(self) -> None:
        """Test client initialization."""
        client = make_client()
        assert client.base_url == "http://actual.test"
        assert client._session.headers["x-api-key"] == "test_key"
        assert "budget-encryption-password" not in client._session.headers

    def test_encryption_password_header(self) -> None:
        """Test the budget encryption password is sent when configured."""
        client = ActualClient("http://actual.test", "k", "b", encryption_password="secret")
        assert client._session.headers["budget-encryption-password"] == "secret"


@patch("sparesync.actual.requests.Session")
class TestActualClient:
    """Tests for ActualClient requests."""

    def test_list_accounts(
        self, mock_session_class: MagicMock, make_response: Callable[..., MagicMock]
    ) -> None:
        """Test fetching accounts."""
        mock_session = mock_session_class.return_value
        mock_session.request.return_value = make_response(
            200, {"data": [{"id": "A1", "name": "Brukskonto"}]}
        )

        accounts = make_client().list_accounts()

        assert accounts == [{"id": "A1", "name": "Brukskonto"}]
        method, url = mock_session.request.call_args.args
        assert method == "GET"
        assert url == "http://actual.test/v1/budgets/budget-1/accounts"

    def test_list_payees(
        self, mock_session_class: MagicMock, make_response: Callable[..., MagicMock]
    ) -> None:
        """Test fetching payees."""
        mock_session_class.return_value.request.return_value = make_response(
            200,
            {
                "data": [
                    {"id": "P0", "name": "Rema 1000", "transfer_acct": None},
                    {"id": "P1", "name": "", "transfer_acct": "A2"},
                ]
            },
        )

        payees = make_client().list_payees()

        assert payees == [
            Payee(id="P0", name="Rema 1000"),
            Payee(id="P1", name="", transfer_acct="A2"),
        ]

    def test_import_transactions(
        self, mock_session_class: MagicMock, make_response: Callable[..., MagicMock]
    ) -> None:
        """Test importing sends payloads and counts the result."""
        mock_session = mock_session_class.return_value
        mock_session.request.return_value = make_response(
            200, {"data": {"added": ["t1", "t2"], "updated": ["t3"]}}
        )
        entries = [
            LedgerTransaction(account="A1", date=date(2024, 3, 1), amount=-1250, payee="P1"),
            LedgerTransaction(
                account="A1",
                date=date(2024, 3, 2),
                amount=-4500,
                payee_name="Rema 1000",
                imported_payee="REMA 1000 OSLO",
            ),
        ]

        result = make_client().import_transactions("A1", entries)

        assert result == ImportResult(added=2, updated=1)
        call = mock_session.request.call_args
        assert call.args == (
            "POST",
            "http://actual.test/v1/budgets/budget-1/accounts/A1/transactions/import",
        )
        sent = call.kwargs["json"]["transactions"]
        assert sent[0]["payee"] == "P1"
        assert sent[1]["payee_name"] == "Rema 1000"
        assert sent[1]["amount"] == -4500

    def test_import_reports_errors(
        self, mock_session_class: MagicMock, make_response: Callable[..., MagicMock]
    ) -> None:
        """Test errors in the import result raise LedgerApiError."""
        mock_session_class.return_value.request.return_value = make_response(
            200, {"data": {"added": [], "updated": [], "errors": ["bad date"]}}
        )

        with pytest.raises(LedgerApiError):
            make_client().import_transactions("A1", [])

    def test_http_error(
        self, mock_session_class: MagicMock, make_response: Callable[..., MagicMock]
    ) -> None:
        """Test non-2xx responses raise LedgerApiError."""
        mock_session_class.return_value.request.return_value = make_response(
            500, {"error": "boom"}
        )

        with pytest.raises(LedgerApiError) as exc_info:
            make_client().import_transactions("A1", [])

        assert exc_info.value.status == 500

    def test_transport_error(self, mock_session_class: MagicMock) -> None:
        """Test connection failures raise LedgerApiError."""
        mock_session_class.return_value.request.side_effect = requests.ConnectionError("down")

        with pytest.raises(LedgerApiError):
            make_client().list_payees()


class TestImportResult:
    """Tests for ImportResult dataclass."""

    def test_total_property(self) -> None:
        """Test total property calculation."""
        assert ImportResult(added=10, updated=5).total == 15
