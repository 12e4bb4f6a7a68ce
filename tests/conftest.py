"""
Shared fixtures for donation stats tests.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from donation_stats.db import Database
from donation_stats.models.transaction import (
    Transaction,
    TransactionStatus,
    coerce_amount,
    ensure_utc,
)
from donation_stats.models.validation import ValidationLimits
from donation_stats.services.ledger import JsonFileLedger, LedgerReader, SqlLedger, new_transaction
from donation_stats.validator import DonationValidator


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_tx(
        tx_id: str,
        amount: Any,
        timestamp: datetime,
        donor: Optional[str] = "Alice",
        recipient: Optional[str] = "Red Cross",
        status: TransactionStatus = TransactionStatus.COMPLETED
) -> Transaction:
    return Transaction(
        id=tx_id,
        amount=coerce_amount(amount),
        donor=donor,
        recipient=recipient,
        timestamp=timestamp,
        status=status
    )


class InMemoryLedger(LedgerReader):
    """Ledger over a plain list, for service tests"""

    def __init__(self, transactions: Optional[List[Transaction]] = None):
        self.transactions = list(transactions or [])

    def get_all(self) -> List[Transaction]:
        return list(self.transactions)

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return next((tx for tx in self.transactions if tx.id == transaction_id), None)

    def get_by_date_range(self, start: datetime, end: datetime) -> List[Transaction]:
        start, end = ensure_utc(start), ensure_utc(end)
        return [tx for tx in self.transactions if start <= tx.timestamp <= end]

    def create(self, data: Dict[str, Any]) -> Transaction:
        transaction = new_transaction(data)
        self.transactions.append(transaction)
        return transaction


@pytest.fixture
def limits() -> ValidationLimits:
    return ValidationLimits(
        min_amount=Decimal("0.01"),
        max_amount=Decimal("10000"),
        max_daily_per_donor=Decimal("5000")
    )


@pytest.fixture
def validator(limits) -> DonationValidator:
    return DonationValidator(limits)


@pytest.fixture
def json_ledger(tmp_path) -> JsonFileLedger:
    return JsonFileLedger(tmp_path / "data" / "donations.json")


@pytest.fixture
def database(tmp_path):
    database = Database()
    database.init(f"sqlite:///{tmp_path / 'donations.db'}")
    yield database
    database.dispose()


@pytest.fixture
def sql_ledger(database):
    session = database.get_session()
    yield SqlLedger(session)
    session.close()


@pytest.fixture(params=["json", "sql"])
def ledger(request):
    """Each ledger backend in turn"""
    return request.getfixturevalue(f"{request.param}_ledger")


@pytest.fixture
def sample_transactions() -> List[Transaction]:
    """Four donations over two ISO weeks, deliberately out of order"""
    return [
        make_tx("t1", "100", utc(2024, 2, 13, 10, 0), donor="Alice", recipient="Red Cross"),
        make_tx("t2", "50", utc(2024, 2, 12, 23, 59, 59), donor="Bob", recipient="Red Cross"),
        make_tx("t3", "25.5", utc(2024, 2, 19, 0, 0), donor="Alice", recipient="Unicef"),
        make_tx("t4", "75", utc(2024, 2, 12, 8, 0), donor="Carol", recipient="Unicef"),
    ]
