"""Sync bank transactions into the ledger, one account at a time."""

import calendar
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from sparesync.actual import ImportResult
from sparesync.exceptions import ConfigError
from sparesync.mapper import is_settled, map_transaction
from sparesync.models import AccountMapping, DateRange, LedgerTransaction, Payee
from sparesync.sparebank1 import BankClient, parse_transactions

logger = logging.getLogger(__name__)


class LedgerBackend(Protocol):
    """What the sync needs from the ledger."""

    def list_accounts(self) -> list[dict[str, Any]]: ...

    def list_payees(self) -> list[Payee]: ...

    def import_transactions(
        self, account_id: str, entries: Sequence[LedgerTransaction]
    ) -> ImportResult: ...


def resolve_date_range(
    days: int | None = None,
    month: str | None = None,
    now: datetime | None = None,
) -> DateRange:
    """
    Work out which window of transactions to fetch.

    Either the last ``days`` days ending now, or the first through last
    calendar day of ``month`` (YYYY-MM) at UTC midnight. Without either, the
    current month is used.

    Raises:
        ConfigError: If both or an invalid value are given
    """
    if days is not None and month is not None:
        raise ConfigError("Use either a number of days or a month, not both")

    if now is None:
        now = datetime.now(timezone.utc)

    if days is not None:
        if days < 0:
            raise ConfigError(f"Days must not be negative: {days}")
        return DateRange(start=now - timedelta(days=days), end=now)

    if month is None:
        month = now.strftime("%Y-%m")

    try:
        first = datetime.strptime(month, "%Y-%m").replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ConfigError(f"Invalid month {month!r}, expected YYYY-MM") from e

    last_day = calendar.monthrange(first.year, first.month)[1]
    return DateRange(start=first, end=first.replace(day=last_day))


@dataclass
class SyncResult:
    """Outcome of syncing one account."""

    account: str
    fetched: int
    skipped_pending: int
    imported: int
    added: int = 0
    updated: int = 0


class Syncer:
    """
    Fetches, maps and imports transactions for mapped accounts.

    Usage:
        syncer = Syncer(bank, ledger, account_mapping)
        results = syncer.sync(None, resolve_date_range(month="2024-03"))
    """

    def __init__(
        self,
        bank: BankClient,
        ledger: LedgerBackend,
        account_mapping: Mapping[str, AccountMapping],
    ) -> None:
        self.bank = bank
        self.ledger = ledger
        self.account_mapping = account_mapping

    def sync(
        self,
        accounts: AccountMapping | Iterable[AccountMapping] | None,
        date_range: DateRange,
    ) -> list[SyncResult]:
        """
        Sync each account in turn.

        Payees are fetched once and shared by all accounts. The first error
        stops the run; accounts already imported stay imported.

        Args:
            accounts: One account, several, or None for every mapped account
            date_range: Window to fetch

        Returns:
            One SyncResult per account, in order
        """
        if accounts is None:
            targets = list(self.account_mapping.values())
        elif isinstance(accounts, AccountMapping):
            targets = [accounts]
        else:
            targets = list(accounts)

        logger.debug(
            "Syncing %d account(s) from %s to %s",
            len(targets),
            date_range.start_date,
            date_range.end_date,
        )
        payees = self.ledger.list_payees()

        results: list[SyncResult] = []
        for account in targets:
            results.append(self.sync_account(account, date_range, payees))
        return results

    def sync_account(
        self,
        account: AccountMapping,
        date_range: DateRange,
        payees: Sequence[Payee],
    ) -> SyncResult:
        """Fetch, filter, map and import one account's transactions."""
        logger.info("Importing from %s", account.name)

        listing = self.bank.list_transactions(account, date_range.start, date_range.end)
        records = listing["transactions"]
        booked = parse_transactions(record for record in records if is_settled(record))
        entries = [
            map_transaction(tx, self.account_mapping, payees, account) for tx in booked
        ]

        result = self.ledger.import_transactions(account.actual_id, entries)
        skipped = len(records) - len(booked)
        logger.info(
            "  %d transactions, %d added, %d updated, %d pending skipped",
            len(entries),
            result.added,
            result.updated,
            skipped,
        )

        return SyncResult(
            account=account.name,
            fetched=len(records),
            skipped_pending=skipped,
            imported=len(entries),
            added=result.added,
            updated=result.updated,
        )
