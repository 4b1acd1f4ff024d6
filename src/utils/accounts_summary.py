from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from domain.accounts import Accounts
from domain.money import Currency
from domain.periods import last_week_window, last_year_window

from .formatting import format_currency, format_units


@dataclass
class AccountSummaryRow:
    name: str
    currency: Currency
    last_week: Decimal
    current_month: Decimal
    last_month: Decimal
    current_year: Decimal
    last_year: Decimal
    balance: Decimal
    units: Decimal | None = None


@dataclass
class FiatTotals:
    currency: Currency
    last_week: Decimal
    current_month: Decimal
    last_month: Decimal
    current_year: Decimal
    last_year: Decimal
    balance: Decimal


@dataclass
class GroupSummaryRow:
    name: str
    last_week: Decimal
    last_year: Decimal
    balance: Decimal


@dataclass
class AccountsSummary:
    as_of: datetime
    accounts: list[AccountSummaryRow] = field(default_factory=list)
    totals: list[FiatTotals] = field(default_factory=list)
    groups: list[GroupSummaryRow] = field(default_factory=list)
    projection: Decimal | None = None
    projection_months: int | None = None


def compute_accounts_summary(
    accounts: Accounts,
    *,
    now: datetime,
    project_months: int | None = None,
    fiat: Currency | None = None,
) -> AccountsSummary:
    rows = [
        AccountSummaryRow(
            name=account.name,
            currency=account.currency,
            last_week=account.sum_last_week(now),
            current_month=account.sum_current_month(now),
            last_month=account.sum_last_month(now),
            current_year=account.sum_current_year(now),
            last_year=account.sum_last_year(now),
            balance=account.balance(),
            units=account.secondary_balance(),
        )
        for account in accounts.accounts
    ]

    fiats: list[Currency] = []
    for account in accounts.accounts:
        primary = account.currency.primary_currency
        if primary not in fiats:
            fiats.append(primary)
    totals = [
        FiatTotals(
            currency=primary,
            last_week=accounts.total_for_last_week(now, primary),
            current_month=accounts.total_for_current_month(now, primary),
            last_month=accounts.total_for_last_month(now, primary),
            current_year=accounts.total_for_current_year(now, primary),
            last_year=accounts.total_for_last_year(now, primary),
            balance=accounts.balance_in(primary),
        )
        for primary in sorted(fiats, key=lambda currency: currency.symbol)
    ]

    groups = [
        GroupSummaryRow(
            name=group.name,
            last_week=accounts.group_sum_in_window(index, *last_week_window(now)),
            last_year=accounts.group_sum_in_window(index, *last_year_window(now)),
            balance=accounts.group_balance(index),
        )
        for index, group in enumerate(accounts.groups)
    ]

    summary = AccountsSummary(as_of=now, accounts=rows, totals=totals, groups=groups)
    if project_months is not None:
        projection_fiat = fiat or Currency.fiat("USD")
        summary.projection = accounts.project(project_months, projection_fiat)
        summary.projection_months = project_months
    return summary


def render_accounts_summary(summary: AccountsSummary) -> None:
    print(f"Accounts as of {summary.as_of.date().isoformat()}:")
    if not summary.accounts:
        print("  (empty)")
        return

    headers = ("Account", "Last Week", "Month", "Last Month", "Year", "Last Year", "Balance", "Units")
    rows: list[tuple[str, ...]] = []
    for row in summary.accounts:
        units_text = "" if row.units is None else f"{format_units(row.units)} {row.currency.symbol}"
        rows.append(
            (
                row.name,
                format_currency(row.last_week),
                format_currency(row.current_month),
                format_currency(row.last_month),
                format_currency(row.current_year),
                format_currency(row.last_year),
                f"{format_currency(row.balance)} {row.currency.primary_currency.symbol}",
                units_text,
            )
        )
    for totals in summary.totals:
        rows.append(
            (
                f"Total {totals.currency.symbol}",
                format_currency(totals.last_week),
                format_currency(totals.current_month),
                format_currency(totals.last_month),
                format_currency(totals.current_year),
                format_currency(totals.last_year),
                f"{format_currency(totals.balance)} {totals.currency.symbol}",
                "",
            )
        )

    widths = [max(len(header), *(len(row[i]) for row in rows)) for i, header in enumerate(headers)]

    def _line(cells: tuple[str, ...]) -> str:
        # Names left-aligned, numbers right-aligned.
        return " ".join(
            f"{cell:<{widths[i]}}" if i == 0 else f"{cell:>{widths[i]}}" for i, cell in enumerate(cells)
        )

    header_line = _line(headers)
    lines = [header_line, "-" * len(header_line)]
    lines.extend(_line(row) for row in rows)
    lines.append("-" * len(header_line))

    for group in summary.groups:
        lines.append(
            f"Group {group.name}: last week {format_currency(group.last_week)}, "
            f"last year {format_currency(group.last_year)}, balance {format_currency(group.balance)}"
        )
    if summary.projection is not None:
        lines.append(f"Projected in {summary.projection_months} months: {format_currency(summary.projection)}")

    print("\n".join(lines))


__all__ = [
    "AccountSummaryRow",
    "AccountsSummary",
    "FiatTotals",
    "GroupSummaryRow",
    "compute_accounts_summary",
    "render_accounts_summary",
]
