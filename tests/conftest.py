from datetime import datetime

import pytest

from domain.account import Account
from domain.accounts import Accounts
from tests.constants import ETH, NOW
from tests.helpers.builders import make_account


@pytest.fixture(scope="function")
def now() -> datetime:
    return NOW


@pytest.fixture(scope="function")
def checking() -> Account:
    return make_account("Checking", entries=[("100.00", "2024-01-05"), ("-20.50", "2024-03-10")])


@pytest.fixture(scope="function")
def eth_wallet() -> Account:
    account = Account.new("ETH wallet", ETH)
    account.submit_secondary_transaction("1.5", "2024-01-10", "bought", NOW)
    account.submit_secondary_transaction("0.25", "2024-02-10", "bought", NOW)
    return account


@pytest.fixture(scope="function")
def accounts(checking: Account, eth_wallet: Account) -> Accounts:
    ledger = Accounts()
    ledger.accounts.extend([checking, eth_wallet])
    return ledger
