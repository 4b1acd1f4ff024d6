"""Monthly materialization of recurring transaction templates.

The watermark records the last time materialization ran. A run appends one
transaction per template, dated the first of the current month, only when
that first-of-month falls in ``[watermark, now)``. Months between an old
watermark and ``now`` are skipped, not backfilled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .account import Account
from .periods import ensure_utc, first_of_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterializationResult:
    watermark: datetime
    appended: int
    day_1: datetime


def is_due(watermark: datetime, now: datetime) -> bool:
    day_1 = first_of_month(now)
    return ensure_utc(watermark) <= day_1 < ensure_utc(now)


def materialize_account(account: Account, day_1: datetime) -> int:
    for template in account.recurring:
        tx = template.to_transaction(date=day_1, previous_balance=account.balance())
        account.primary.append(tx)
    return len(account.recurring)


def materialize_monthly(accounts: Iterable[Account], watermark: datetime, now: datetime) -> MaterializationResult:
    """Run one materialization pass; the returned watermark is always ``now``."""
    now = ensure_utc(now)
    day_1 = first_of_month(now)
    appended = 0

    # The guard uses the previous watermark, before it is moved to now.
    if is_due(watermark, now):
        for account in accounts:
            appended += materialize_account(account, day_1)
        logger.info("Materialized %d recurring transactions dated %s", appended, day_1.date().isoformat())
    else:
        logger.debug("Recurring transactions for %s already materialized (watermark=%s)", day_1.date(), watermark)

    return MaterializationResult(watermark=now, appended=appended, day_1=day_1)


__all__ = ["MaterializationResult", "is_due", "materialize_account", "materialize_monthly"]
