"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock

import pytest

from sparesync.models import AccountMapping, BankTransaction, Payee

# Fake account numbers and ledger ids used across tests
TEST_ENV = {
    "SPAREBANK1_CLIENT_ID": "test-client-id",
    "SPAREBANK1_CLIENT_SECRET": "test-client-secret",
    "ACTUAL_URL": "http://actual.test",
    "ACTUAL_API_KEY": "test-api-key",
    "ACTUAL_BUDGET_ID": "budget-1",
}


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set up credentials and keep the user's config out of tests."""
    for name, value in TEST_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    monkeypatch.delenv("ACTUAL_ENCRYPTION_PASSWORD", raising=False)


@pytest.fixture
def checking() -> AccountMapping:
    """Return the checking account mapping."""
    return AccountMapping(name="Brukskonto", bank_key="KEY-CHECKING", actual_id="A1")


@pytest.fixture
def savings() -> AccountMapping:
    """Return the savings account mapping."""
    return AccountMapping(name="Sparekonto", bank_key="KEY-SAVINGS", actual_id="A2")


@pytest.fixture
def account_mapping(
    checking: AccountMapping, savings: AccountMapping
) -> dict[str, AccountMapping]:
    """Return mappings keyed by bank account number."""
    return {"12345678901": checking, "999": savings}


@pytest.fixture
def payees() -> list[Payee]:
    """Return ledger payees including transfer payees for both accounts."""
    return [
        Payee(id="P0", name="Rema 1000"),
        Payee(id="P1", name="Sparekonto", transfer_acct="A2"),
        Payee(id="P2", name="Brukskonto", transfer_acct="A1"),
    ]


@pytest.fixture
def make_bank_tx() -> Callable[..., BankTransaction]:
    """Return a factory for bank transactions."""

    def factory(**overrides: Any) -> BankTransaction:
        values: dict[str, Any] = {
            "date": date(2024, 3, 15),
            "amount": Decimal("-12.5"),
            "remote_account_number": "111",
            "description": "COFFEE SHOP OSLO 4521",
            "cleaned_description": "Coffee Shop",
            "booking_status": "BOOKED",
        }
        values.update(overrides)
        return BankTransaction(**values)

    return factory


@pytest.fixture
def make_bank_record() -> Callable[..., dict[str, Any]]:
    """Return a factory for raw bank transaction records."""

    def factory(**overrides: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "date": "2024-03-15",
            "amount": Decimal("-12.5"),
            "remoteAccountNumber": "111",
            "description": "COFFEE SHOP OSLO 4521",
            "cleanedDescription": "Coffee Shop",
            "bookingStatus": "BOOKED",
        }
        record.update(overrides)
        return record

    return factory


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Return a factory for fake requests responses."""

    def factory(status_code: int = 200, body: Any = None) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.json.return_value = {} if body is None else body
        response.text = json.dumps(body, default=str)
        return response

    return factory
