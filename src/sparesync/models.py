"""Data models for bank and ledger transactions."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

BOOKED = "BOOKED"


def parse_bank_date(value: Any) -> date:
    """Read a bank transaction date as a local calendar date.

    ISO strings are taken as-is (only the leading YYYY-MM-DD is used, no
    timezone conversion). Epoch milliseconds are converted in local time.
    """
    if isinstance(value, (int, Decimal)):
        return datetime.fromtimestamp(int(value) / 1000).date()
    return date.fromisoformat(str(value).strip()[:10])


@dataclass(frozen=True)
class AccountMapping:
    """Links a bank account to its ledger account."""

    name: str
    bank_key: str
    actual_id: str

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> "AccountMapping":
        """Build from a config file entry."""
        return cls(name=data["name"], bank_key=data["bankKey"], actual_id=data["actualId"])

    def to_config(self) -> dict[str, str]:
        """Convert back to the config file representation."""
        return {"name": self.name, "bankKey": self.bank_key, "actualId": self.actual_id}


@dataclass(frozen=True)
class TokenState:
    """OAuth2 token pair issued by the bank."""

    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class BankTransaction:
    """A transaction record as returned by the bank API."""

    date: date
    amount: Decimal
    remote_account_number: str | None
    description: str
    cleaned_description: str | None
    booking_status: str
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BankTransaction":
        """Parse a raw transaction record."""
        amount = data["amount"]
        description = data.get("description") or ""
        return cls(
            date=parse_bank_date(data["date"]),
            amount=amount if isinstance(amount, Decimal) else Decimal(str(amount)),
            remote_account_number=data.get("remoteAccountNumber"),
            description=description,
            cleaned_description=data.get("cleanedDescription"),
            booking_status=data.get("bookingStatus", ""),
            raw_data=data,
        )


@dataclass(frozen=True)
class LedgerTransaction:
    """A transaction in the shape the ledger's import expects.

    Either ``payee`` (an internal transfer) or ``payee_name`` and
    ``imported_payee`` (an external payment) are set, never both.
    """

    account: str
    date: date
    amount: int
    payee: str | None = None
    payee_name: str | None = None
    imported_payee: str | None = None

    def __post_init__(self) -> None:
        """Validate payee fields."""
        is_transfer = self.payee is not None
        is_external = self.payee_name is not None or self.imported_payee is not None
        if is_transfer == is_external:
            raise ValueError("Exactly one of payee or payee_name/imported_payee must be set")

    @property
    def is_transfer(self) -> bool:
        """Return True if this moves money between the user's own accounts."""
        return self.payee is not None

    def to_payload(self) -> dict[str, Any]:
        """Convert to the ledger import payload."""
        payload: dict[str, Any] = {
            "account": self.account,
            "date": self.date.isoformat(),
            "amount": self.amount,
        }
        if self.is_transfer:
            payload["payee"] = self.payee
        else:
            # Unset payee_name is left out so the ledger does not create a payee.
            if self.payee_name is not None:
                payload["payee_name"] = self.payee_name
            payload["imported_payee"] = self.imported_payee
        return payload


@dataclass(frozen=True)
class Payee:
    """A ledger payee. Transfer payees point at a ledger account."""

    id: str
    name: str = ""
    transfer_acct: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Payee":
        """Parse a payee returned by the ledger."""
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            transfer_acct=data.get("transfer_acct"),
        )


@dataclass(frozen=True)
class DateRange:
    """Inclusive window of transactions to fetch, as UTC instants."""

    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()
