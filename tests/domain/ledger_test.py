from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.errors import IndexOutOfRange, InvalidCurrencyCombination
from domain.ledger import SecondaryLedger, TransactionLedger
from domain.transaction import Transaction
from tests.constants import ETH, USD


def _tx(amount: str, balance: str, day: int, comment: str = "") -> Transaction:
    return Transaction(
        amount=Decimal(amount),
        balance=Decimal(balance),
        comment=comment,
        date=datetime(2024, 3, day, tzinfo=timezone.utc),
    )


def test_empty_ledger_has_zero_balance() -> None:
    ledger = TransactionLedger()

    assert ledger.balance() == Decimal(0)
    assert ledger.min_balance() is None
    assert ledger.first_date() is None


def test_append_keeps_date_order_and_latest_balance() -> None:
    ledger = TransactionLedger()
    ledger.append(_tx("10", "10", 5))
    ledger.append(_tx("5", "15", 20))
    ledger.append(_tx("-3", "12", 1, "back-dated"))

    assert [tx.date.day for tx in ledger.transactions] == [1, 5, 20]
    assert ledger.balance() == Decimal("15")


def test_same_day_entries_keep_submission_order() -> None:
    ledger = TransactionLedger()
    ledger.append(_tx("1", "1", 7, "first"))
    ledger.append(_tx("2", "3", 7, "second"))

    assert [tx.comment for tx in ledger.transactions] == ["first", "second"]


def test_loaded_transactions_are_sorted() -> None:
    ledger = TransactionLedger(transactions=[_tx("2", "3", 9), _tx("1", "1", 2)])

    assert [tx.date.day for tx in ledger.transactions] == [2, 9]


def test_delete_removes_only_that_entry() -> None:
    ledger = TransactionLedger()
    first, second, third = _tx("1", "1", 1), _tx("2", "3", 2), _tx("3", "6", 3)
    for tx in (first, second, third):
        ledger.append(tx)

    removed = ledger.delete(2)

    assert removed == third
    assert ledger.transactions == [first, second]


@pytest.mark.parametrize("index", [3, 5, -1])
def test_delete_out_of_range(index: int) -> None:
    ledger = TransactionLedger(transactions=[_tx("1", "1", 1), _tx("2", "3", 2), _tx("3", "6", 3)])

    with pytest.raises(IndexOutOfRange) as excinfo:
        ledger.delete(index)

    assert excinfo.value.length == 3
    assert len(ledger) == 3


def test_sum_in_window_is_half_open() -> None:
    ledger = TransactionLedger(transactions=[_tx("1", "1", 1), _tx("2", "3", 10), _tx("4", "7", 20)])

    start = datetime(2024, 3, 1, tzinfo=timezone.utc)
    end = datetime(2024, 3, 20, tzinfo=timezone.utc)
    assert ledger.sum_in_window(start, end) == Decimal("3")


def test_chart_statistics() -> None:
    ledger = TransactionLedger(transactions=[_tx("10", "10", 1), _tx("-15", "-5", 2), _tx("30", "25", 3)])

    assert ledger.min_balance() == Decimal("-5")
    assert ledger.max_balance() == Decimal("25")
    assert ledger.first_date() == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert ledger.last_date() == datetime(2024, 3, 3, tzinfo=timezone.utc)


def test_secondary_ledger_tracks_units() -> None:
    ledger = SecondaryLedger(currency=ETH, transactions=[_tx("1.5", "1.5", 1), _tx("-0.5", "1.0", 2)])

    assert ledger.units_held() == Decimal("1.0")


def test_secondary_ledger_rejects_fiat() -> None:
    with pytest.raises(InvalidCurrencyCombination):
        SecondaryLedger(currency=USD)
