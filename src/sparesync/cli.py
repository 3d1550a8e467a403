#!/usr/bin/env python3
"""Command-line interface for sparesync."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from decimal import Decimal
from pathlib import Path
from typing import Any

from sparesync.actual import ActualClient
from sparesync.auth import TokenManager
from sparesync.config import (
    Settings,
    TokenStore,
    config_token_persister,
    create_default_config,
    find_config_file,
    get_account,
    get_account_mappings,
    get_config_path,
    get_token_state,
    load_json_config,
)
from sparesync.exceptions import SyncError
from sparesync.sparebank1 import BankClient
from sparesync.sync import Syncer, resolve_date_range

logger = logging.getLogger("sparesync")

COMMANDS = [
    "budget-accounts",
    "budget-payees",
    "import",
    "bank-auth",
    "bank-accounts",
    "bank-transactions",
]


def setup_logging(verbose: bool = False) -> None:
    """Log to stderr; stdout is reserved for command output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(name)s: %(message)s" if verbose else "%(message)s",
        stream=sys.stderr,
    )


class JSONEncoder(json.JSONEncoder):
    """Encode bank amounts as JSON numbers and anything else unknown as text."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return float(o)
        return str(o)


def print_json(data: Any) -> None:
    """Print data as indented JSON."""
    print(json.dumps(data, indent=2, cls=JSONEncoder))


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sparesync",
        description="Sync SpareBank 1 transactions into Actual Budget",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sparesync bank-auth
  sparesync bank-accounts
  sparesync import --month 2024-03
  sparesync import --days 7 --account 12345678901
  sparesync bank-transactions --account 12345678901 --days 30

Environment:
  SPAREBANK1_CLIENT_ID, SPAREBANK1_CLIENT_SECRET,
  ACTUAL_URL, ACTUAL_API_KEY, ACTUAL_BUDGET_ID (required)
  ACTUAL_ENCRYPTION_PASSWORD, CONFIG_PATH (optional)
        """,
    )

    parser.add_argument(
        "command",
        nargs="?",
        choices=COMMANDS,
        default="budget-accounts",
        help="Command to run (default: budget-accounts)",
    )
    window = parser.add_mutually_exclusive_group()
    window.add_argument(
        "--days",
        type=int,
        help="Fetch the last N days",
    )
    window.add_argument(
        "--month",
        help="Fetch a calendar month, YYYY-MM (default: current month)",
    )
    parser.add_argument(
        "--account",
        help="Bank account number to limit import to",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.json file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return run(args)
    except SyncError as e:
        logger.error("Error: %s", e)
        return 1


def run(args: argparse.Namespace) -> int:
    """Run the selected command."""
    config_path: Path | None = args.config or find_config_file()
    if config_path is not None and config_path.exists():
        config = load_json_config(config_path)
    else:
        config = create_default_config()
    if config_path is None:
        config_path = get_config_path()

    settings = Settings.from_env()
    mappings = get_account_mappings(config)
    account = get_account(mappings, args.account) if args.account else None
    date_range = resolve_date_range(args.days, args.month)

    store = TokenStore(get_token_state(config), config_token_persister(config, config_path))
    token_manager = TokenManager(
        settings.client_id,
        settings.client_secret,
        store,
        redirect_uri=settings.redirect_uri,
        fin_inst=settings.fin_inst,
    )
    bank = BankClient(token_manager)
    ledger = ActualClient(
        settings.actual_url,
        settings.actual_api_key,
        settings.actual_budget_id,
        encryption_password=settings.actual_encryption_password,
    )

    if args.command == "budget-accounts":
        print_json(ledger.list_accounts())

    elif args.command == "budget-payees":
        print_json([asdict(p) for p in ledger.list_payees()])

    elif args.command == "import":
        results = Syncer(bank, ledger, mappings).sync(account, date_range)
        imported = sum(r.imported for r in results)
        logger.info("Imported %d transactions from %d account(s)", imported, len(results))

    elif args.command == "bank-auth":
        print("Go here:", token_manager.authorize_url())
        code = input("Code: ")
        token_manager.exchange_authorization_code(code)
        logger.info("Saved tokens to %s", config_path)

    elif args.command == "bank-accounts":
        print_json(bank.list_accounts())

    elif args.command == "bank-transactions":
        if account is None:
            logger.error("No account specified")
            return 1
        print_json(bank.list_transactions(account, date_range.start, date_range.end))

    return 0


if __name__ == "__main__":
    sys.exit(main())
