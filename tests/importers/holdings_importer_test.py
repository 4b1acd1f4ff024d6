from __future__ import annotations

from csv import DictWriter
from decimal import Decimal
from pathlib import Path

import pytest

from domain.accounts import Accounts
from domain.money import Currency
from importers.holdings_importer import HoldingsImporter, HoldingsImportError
from tests.constants import NOW, USD

FIELDNAMES = ["Description", "Symbol", "Quantity", "Price ($)", "Value ($)", "Assets (%)"]
VTI = Currency.stock("VTI")


def write_csv(path: Path, rows: list[dict[str, str]], fieldnames: list[str] = FIELDNAMES) -> Path:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
    return path


def holding_row(*, description: str, symbol: str, quantity: str, price: str) -> dict[str, str]:
    return {
        "Description": description,
        "Symbol": symbol,
        "Quantity": quantity,
        "Price ($)": price,
        "Value ($)": "",
        "Assets (%)": "",
    }


def test_import_creates_cash_and_security_accounts(tmp_path: Path, accounts: Accounts) -> None:
    source = write_csv(
        tmp_path / "holdings.csv",
        [
            holding_row(description="Cash & Equivalents", symbol="", quantity="", price=""),
            holding_row(description="Money market", symbol="SPAXX", quantity="1,250.40", price="1.00"),
            holding_row(description="Vanguard Total Stock", symbol="VTI", quantity="12.5", price="250.10"),
            holding_row(description="Total", symbol="", quantity="", price=""),
        ],
    )

    result = HoldingsImporter(source).import_into(accounts, now=NOW)

    assert result.created == ["Investor 360: SPAXX", "Investor 360: VTI"]
    assert result.adjusted == result.created
    cash = accounts[accounts.index_of("Investor 360: SPAXX")]
    assert cash.currency == USD
    assert cash.balance() == Decimal("1250.40")
    assert cash.primary.transactions[0].comment == "Money market"
    assert cash.primary.transactions[0].date == NOW
    stock = accounts[accounts.index_of("Investor 360: VTI")]
    assert stock.currency == VTI
    assert stock.secondary_balance() == Decimal("12.5")
    assert len(stock.primary) == 0
    assert len(accounts) == 4


def test_import_reconciles_existing_holdings(tmp_path: Path) -> None:
    accounts = Accounts()
    existing = accounts.add_account("Investor 360: VTI", VTI)
    existing.submit_secondary_transaction("10", "2024-01-02", "bought", NOW)
    source = write_csv(
        tmp_path / "holdings.csv",
        [holding_row(description="Vanguard Total Stock", symbol="VTI", quantity="12", price="250")],
    )

    result = HoldingsImporter(source).import_into(accounts, now=NOW)

    assert result.created == []
    assert result.adjusted == ["Investor 360: VTI"]
    adjustment = existing.secondary.transactions[-1]
    assert adjustment.amount == Decimal("2")
    assert existing.secondary_balance() == Decimal("12")


def test_import_keeps_small_quantities_exact(tmp_path: Path) -> None:
    accounts = Accounts()
    source = write_csv(
        tmp_path / "holdings.csv",
        [holding_row(description="Fraction", symbol="VTI", quantity="0.00000001", price="250")],
    )

    HoldingsImporter(source).import_into(accounts, now=NOW)

    assert accounts[0].secondary_balance() == Decimal("0.00000001")


def test_invalid_row_aborts_whole_import(tmp_path: Path, accounts: Accounts) -> None:
    source = write_csv(
        tmp_path / "holdings.csv",
        [
            holding_row(description="Money market", symbol="SPAXX", quantity="100", price="1"),
            holding_row(description="Vanguard Total Stock", symbol="VTI", quantity="lots", price="250"),
        ],
    )

    with pytest.raises(HoldingsImportError) as excinfo:
        HoldingsImporter(source).import_into(accounts, now=NOW)

    assert excinfo.value.line == 3
    assert "quantity" in str(excinfo.value)
    assert len(accounts) == 2


def test_existing_account_in_other_currency_is_rejected(tmp_path: Path) -> None:
    accounts = Accounts()
    accounts.add_account("Investor 360: VTI", USD)
    source = write_csv(
        tmp_path / "holdings.csv",
        [holding_row(description="Vanguard Total Stock", symbol="VTI", quantity="3", price="250")],
    )

    with pytest.raises(HoldingsImportError) as excinfo:
        HoldingsImporter(source).import_into(accounts, now=NOW)

    assert excinfo.value.line == 2
    assert len(accounts[0].primary) == 0


def test_missing_columns_are_reported(tmp_path: Path) -> None:
    source = write_csv(
        tmp_path / "holdings.csv",
        [{"Symbol": "VTI", "Quantity": "1"}],
        fieldnames=["Symbol", "Quantity"],
    )

    with pytest.raises(HoldingsImportError, match="Description, Price"):
        HoldingsImporter(source).load_holdings()


def test_missing_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(HoldingsImportError) as excinfo:
        HoldingsImporter(tmp_path / "absent.csv").load_holdings()

    assert excinfo.value.path == tmp_path / "absent.csv"
