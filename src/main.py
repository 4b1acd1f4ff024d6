from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from config import AppSettings, config
from domain.accounts import Accounts
from domain.errors import LedgerError
from domain.money import Currency
from domain.pricing import PriceLookup
from importers.holdings_importer import HoldingsImporter
from services.price_lookup import build_default_lookup
from services.snapshot_store import JsonSnapshotStore
from utils.accounts_summary import compute_accounts_summary, render_accounts_summary

logger = logging.getLogger(__name__)


def open_ledger(store: JsonSnapshotStore, *, create: bool) -> Accounts:
    if create or not store.path.exists():
        return store.create()
    return store.load()


def run(
    path: Path,
    *,
    now: datetime,
    create: bool = False,
    project_months: int | None = None,
    price_lookup: PriceLookup | None = None,
    holdings_path: Path | None = None,
    settings: AppSettings | None = None,
) -> Accounts:
    settings = settings or config()
    store = JsonSnapshotStore(path=path)
    accounts = open_ledger(store, create=create)

    # Recurring transactions must be in place before any balance is shown.
    appended = accounts.materialize(now)
    if appended:
        logger.info("Added %d recurring transactions", appended)

    if holdings_path is not None:
        result = HoldingsImporter(holdings_path).import_into(accounts, now=now)
        print(f"Imported {len(result.adjusted)} holdings ({len(result.created)} new accounts)")

    if price_lookup is not None:
        errors = accounts.refresh_all_valuations(price_lookup, now)
        for error in errors:
            print(f"Price lookup failed: {error}")

    store.save(accounts)

    summary = compute_accounts_summary(
        accounts,
        now=now,
        project_months=project_months,
        fiat=Currency.fiat(settings.default_fiat),
    )
    render_accounts_summary(summary)
    return accounts


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    parser = argparse.ArgumentParser(description="Track account balances and recurring monthly transactions.")
    files = parser.add_mutually_exclusive_group()
    files.add_argument("--load", type=Path, metavar="FILE", help="Load the ledger FILE")
    files.add_argument("--new", type=Path, metavar="FILE", help="Create a new ledger FILE")
    parser.add_argument("--project", type=int, metavar="MONTHS", help="Project balances MONTHS ahead")
    parser.add_argument("--import-holdings", type=Path, metavar="FILE", help="Reconcile holdings from a CSV export")
    parser.add_argument("--refresh-prices", action="store_true", help="Value non-fiat accounts at market prices")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    path = args.new or args.load or settings.ledger_file
    price_lookup = build_default_lookup(settings) if args.refresh_prices else None
    try:
        run(
            path,
            now=datetime.now(timezone.utc),
            create=args.new is not None,
            project_months=args.project,
            price_lookup=price_lookup,
            holdings_path=args.import_holdings,
            settings=settings,
        )
    except LedgerError as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
