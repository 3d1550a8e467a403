"""Convert bank transactions into ledger transactions."""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sparesync.exceptions import TransferPayeeNotFoundError
from sparesync.models import (
    BOOKED,
    AccountMapping,
    BankTransaction,
    LedgerTransaction,
    Payee,
)

WHOLE = Decimal("1")


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to integer minor units (øre).

    Ties round half away from zero: 0.005 -> 1, -0.005 -> -1.
    """
    return int((Decimal(amount) * 100).quantize(WHOLE, rounding=ROUND_HALF_UP))


def is_settled(record: Mapping[str, Any]) -> bool:
    """Return True if a raw bank record is BOOKED and safe to import.

    Checked before parsing; pending records may still be incomplete.
    """
    return record.get("bookingStatus") == BOOKED


def find_transfer_payee(payees: Iterable[Payee], actual_id: str) -> Payee | None:
    """Find the ledger's "transfer to account" payee for a ledger account."""
    for payee in payees:
        if payee.transfer_acct == actual_id:
            return payee
    return None


def map_transaction(
    bank_tx: BankTransaction,
    account_mapping: Mapping[str, AccountMapping],
    payees: Iterable[Payee],
    account: AccountMapping,
) -> LedgerTransaction:
    """
    Map a bank transaction to a ledger transaction for ``account``.

    A counterparty that is one of the mapped accounts makes this a transfer,
    booked against the ledger's transfer payee for that account. Anything
    else is an external payment named after the bank's cleaned description,
    with the raw description kept as the imported payee.

    Args:
        bank_tx: Transaction from the bank
        account_mapping: All mapped accounts, keyed by bank account number
        payees: Ledger payees
        account: The account being synced

    Returns:
        LedgerTransaction

    Raises:
        TransferPayeeNotFoundError: If a mapped counterparty has no transfer payee
    """
    date = bank_tx.date
    amount = to_minor_units(bank_tx.amount)

    remote_number = bank_tx.remote_account_number
    remote_account = account_mapping.get(remote_number) if remote_number else None

    if remote_account is not None:
        transfer_payee = find_transfer_payee(payees, remote_account.actual_id)
        if transfer_payee is None:
            raise TransferPayeeNotFoundError(remote_number or "", remote_account.actual_id)
        return LedgerTransaction(
            account=account.actual_id,
            date=date,
            amount=amount,
            payee=transfer_payee.id,
        )

    return LedgerTransaction(
        account=account.actual_id,
        date=date,
        amount=amount,
        payee_name=bank_tx.cleaned_description,
        imported_payee=bank_tx.description,
    )
