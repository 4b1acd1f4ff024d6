from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from domain.account import Account
from domain.accounts import AccountGroup, Accounts
from domain.errors import LedgerError
from domain.ledger import SecondaryLedger, TransactionLedger
from domain.money import Currency
from domain.periods import EPOCH
from domain.transaction import RecurringTransactionTemplate, Transaction

logger = logging.getLogger(__name__)


class SnapshotError(LedgerError):
    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        super().__init__(f"{message} ({path})" if path is not None else message)


class SnapshotStore(Protocol):
    def load(self) -> Accounts: ...

    def save(self, accounts: Accounts) -> None: ...


def encode_transaction(tx: Transaction) -> dict[str, Any]:
    return {
        "amount": str(tx.amount),
        "balance": str(tx.balance),
        "comment": tx.comment,
        "date": int(tx.date.timestamp()),
    }


def encode_currency(currency: Currency) -> dict[str, Any]:
    return {"kind": currency.kind.value, "symbol": currency.symbol, "quote": currency.quote}


def encode_account(account: Account) -> dict[str, Any]:
    secondary = None
    if account.secondary is not None:
        secondary = {
            "currency": encode_currency(account.secondary.currency),
            "transactions": [encode_transaction(tx) for tx in account.secondary.transactions],
        }
    return {
        "name": account.name,
        "currency": encode_currency(account.currency),
        "transactions": [encode_transaction(tx) for tx in account.primary.transactions],
        "transactions_secondary": secondary,
        "transactions_monthly": [
            {"amount": str(template.amount), "comment": template.comment} for template in account.recurring
        ],
    }


def encode_accounts(accounts: Accounts) -> dict[str, Any]:
    """Snapshot payload; transient state such as month filters is left out."""
    return {
        "checked_up_to": accounts.checked_up_to.isoformat(),
        "accounts": [encode_account(account) for account in accounts.accounts],
        "groups": [{"name": group.name, "members": list(group.members)} for group in accounts.groups],
    }


def _decimal(raw: Any) -> Decimal:
    try:
        return Decimal(str(raw))
    except InvalidOperation as exc:
        msg = f"invalid decimal value {raw!r}"
        raise ValueError(msg) from exc


def decode_transaction(record: dict[str, Any]) -> Transaction:
    return Transaction(
        amount=_decimal(record["amount"]),
        balance=_decimal(record["balance"]),
        comment=record.get("comment", ""),
        date=datetime.fromtimestamp(int(record["date"]), tz=timezone.utc),
    )


def decode_account(record: dict[str, Any]) -> Account:
    currency = Currency.model_validate(record["currency"])
    secondary_raw = record.get("transactions_secondary")
    secondary = None
    if secondary_raw is not None:
        secondary = SecondaryLedger(
            currency=Currency.model_validate(secondary_raw["currency"]),
            transactions=[decode_transaction(tx) for tx in secondary_raw.get("transactions", [])],
        )
    return Account(
        name=record["name"],
        currency=currency,
        primary=TransactionLedger(transactions=[decode_transaction(tx) for tx in record.get("transactions", [])]),
        secondary=secondary,
        recurring=[
            RecurringTransactionTemplate(amount=_decimal(item["amount"]), comment=item.get("comment", ""))
            for item in record.get("transactions_monthly", [])
        ],
    )


def decode_accounts(payload: Any) -> Accounts:
    if not isinstance(payload, dict):
        msg = "Snapshot must contain a JSON object."
        raise ValueError(msg)
    accounts_raw = payload.get("accounts", [])
    if not isinstance(accounts_raw, list):
        msg = "Snapshot 'accounts' must be a list."
        raise ValueError(msg)
    watermark_raw = payload.get("checked_up_to")
    watermark = datetime.fromisoformat(watermark_raw) if watermark_raw else EPOCH
    return Accounts(
        accounts=[decode_account(record) for record in accounts_raw],
        checked_up_to=watermark,
        groups=[AccountGroup.model_validate(group) for group in payload.get("groups", [])],
    )


class JsonSnapshotStore(SnapshotStore):
    def __init__(self, *, path: Path) -> None:
        self.path = path

    def load(self) -> Accounts:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise SnapshotError(f"Cannot read snapshot: {exc}", path=self.path) from exc
        except json.JSONDecodeError as exc:
            raise SnapshotError(f"Snapshot is not valid JSON: {exc}", path=self.path) from exc
        try:
            accounts = decode_accounts(payload)
        except (KeyError, TypeError, ValueError, ValidationError, LedgerError) as exc:
            raise SnapshotError(f"Malformed snapshot: {exc}", path=self.path) from exc
        logger.info("Loaded %d accounts from %s", len(accounts), self.path)
        return accounts

    def save(self, accounts: Accounts) -> None:
        text = json.dumps(encode_accounts(accounts), indent=2)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise SnapshotError(f"Cannot write snapshot: {exc}", path=self.path) from exc
        logger.debug("Saved %d accounts to %s", len(accounts), self.path)

    def create(self, accounts: Accounts | None = None) -> Accounts:
        """Start a new snapshot file; refuses to overwrite an existing one."""
        if accounts is None:
            accounts = Accounts()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("x", encoding="utf-8") as handle:
                handle.write(json.dumps(encode_accounts(accounts), indent=2))
        except FileExistsError as exc:
            raise SnapshotError("Snapshot already exists", path=self.path) from exc
        except OSError as exc:
            raise SnapshotError(f"Cannot create snapshot: {exc}", path=self.path) from exc
        logger.info("Created new snapshot %s", self.path)
        return accounts


__all__ = [
    "JsonSnapshotStore",
    "SnapshotError",
    "SnapshotStore",
    "decode_accounts",
    "encode_accounts",
]
