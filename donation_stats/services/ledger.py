"""Transaction ledger backends: flat-file JSON and relational (SQLAlchemy)"""
import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Union

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from donation_stats.models.db import DonationRecord
from donation_stats.models.transaction import (
    DEFAULT_DONOR,
    Transaction,
    TransactionStatus,
    coerce_amount,
    ensure_utc,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

class LedgerError(Exception):
    """The transaction store could not be read or written"""
    pass

class LedgerUnavailableError(Exception):
    """Raised by services when the ledger fails, as opposed to a rejected request"""
    pass

def _naive_utc(value: datetime) -> datetime:
    return ensure_utc(value).replace(tzinfo=None)

def utc_day_bounds(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """First and last instant of the UTC calendar day containing now"""
    now = ensure_utc(now or datetime.now(timezone.utc))
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)

def new_transaction(data: Dict[str, Any]) -> Transaction:
    """
    Build a transaction from intake data.

    Assigns an id and a UTC timestamp, defaults the donor to "Anonymous" and
    the status to completed. Values supplied in data take precedence.
    """
    known = {'id', 'amount', 'donor', 'recipient', 'timestamp', 'status', 'stellarTxId', 'stellar_tx_id'}
    timestamp = data.get('timestamp')
    status = data.get('status') or TransactionStatus.COMPLETED
    return Transaction(
        id=str(data.get('id') or uuid.uuid4().hex),
        amount=coerce_amount(data.get('amount')),
        donor=data.get('donor') or DEFAULT_DONOR,
        recipient=data.get('recipient'),
        timestamp=parse_timestamp(timestamp) if timestamp else datetime.now(timezone.utc),
        status=TransactionStatus(status),
        stellar_tx_id=data.get('stellar_tx_id') or data.get('stellarTxId'),
        extra={k: v for k, v in data.items() if k not in known}
    )

class LedgerReader(ABC):
    """Read/append access to recorded donations"""

    @abstractmethod
    def get_all(self) -> List[Transaction]:
        pass

    @abstractmethod
    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        pass

    @abstractmethod
    def get_by_date_range(self, start: datetime, end: datetime) -> List[Transaction]:
        """Transactions with start <= timestamp <= end, in no particular order"""
        pass

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Transaction:
        pass

    def get_daily_total_by_donor(self, donor: str, now: Optional[datetime] = None) -> Decimal:
        """
        Sum of what a donor gave during the current UTC day.

        Failed and cancelled donations are excluded. Non-numeric stored
        amounts count as 0.

        Args:
            donor: Donor name
            now: Reference instant, defaults to the current time

        Returns:
            Daily total as Decimal
        """
        day_start, day_end = utc_day_bounds(now)
        total = Decimal(0)
        for tx in self.get_by_date_range(day_start, day_end):
            if tx.donor != donor or not tx.counts_toward_daily_total:
                continue
            amount = coerce_amount(tx.amount)
            if isinstance(amount, Decimal):
                total += amount
        return total

    def get_recent(self, limit: int) -> List[Transaction]:
        """Newest transactions first"""
        transactions = sorted(self.get_all(), key=lambda tx: tx.timestamp, reverse=True)
        return transactions[:limit]

class JsonFileLedger(LedgerReader):
    """Ledger kept as a JSON array in a single file"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load_records(self) -> List[Dict[str, Any]]:
        self._ensure_dir()
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read ledger {self.path}: {e}")
            raise LedgerError(f"Failed to read ledger {self.path}: {e}") from e

        if not isinstance(records, list):
            raise LedgerError(f"Ledger {self.path} does not contain a JSON array")
        return records

    def _save_records(self, records: List[Dict[str, Any]]) -> None:
        self._ensure_dir()
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(records, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write ledger {self.path}: {e}")
            raise LedgerError(f"Failed to write ledger {self.path}: {e}") from e

    def get_all(self) -> List[Transaction]:
        try:
            return [Transaction.from_record(record) for record in self._load_records()]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed record in ledger {self.path}: {e}")
            raise LedgerError(f"Malformed record in ledger {self.path}: {e}") from e

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return next((tx for tx in self.get_all() if tx.id == transaction_id), None)

    def get_by_date_range(self, start: datetime, end: datetime) -> List[Transaction]:
        start, end = ensure_utc(start), ensure_utc(end)
        return [tx for tx in self.get_all() if start <= tx.timestamp <= end]

    def create(self, data: Dict[str, Any]) -> Transaction:
        records = self._load_records()
        transaction = new_transaction(data)
        records.append(transaction.to_record())
        self._save_records(records)
        logger.info(f"Recorded donation {transaction.id} of {transaction.amount} to {transaction.recipient}")
        return transaction

class SqlLedger(LedgerReader):
    """Ledger backed by the donations table"""

    def __init__(self, session: Session):
        if not session:
            raise ValueError("Database session is required")
        self.session = session

    @staticmethod
    def _to_transaction(record: DonationRecord) -> Transaction:
        return Transaction(
            id=record.id,
            amount=coerce_amount(record.amount),
            donor=record.donor or DEFAULT_DONOR,
            recipient=record.recipient,
            timestamp=ensure_utc(record.timestamp),
            status=TransactionStatus(record.status),
            stellar_tx_id=record.stellar_tx_id,
            extra=dict(record.extra or {})
        )

    def _query(self, build):
        try:
            return [self._to_transaction(r) for r in build(self.session.query(DonationRecord))]
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error reading ledger: {e}")
            raise LedgerError(f"Failed to read ledger: {e}") from e

    def get_all(self) -> List[Transaction]:
        return self._query(lambda q: q.all())

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        found = self._query(lambda q: q.filter_by(id=transaction_id).all())
        return found[0] if found else None

    def get_by_date_range(self, start: datetime, end: datetime) -> List[Transaction]:
        return self._query(lambda q: q.filter(
            DonationRecord.timestamp >= _naive_utc(start),
            DonationRecord.timestamp <= _naive_utc(end)
        ).all())

    def get_recent(self, limit: int) -> List[Transaction]:
        return self._query(
            lambda q: q.order_by(DonationRecord.timestamp.desc()).limit(limit).all()
        )

    def create(self, data: Dict[str, Any]) -> Transaction:
        transaction = new_transaction(data)
        record = DonationRecord(
            id=transaction.id,
            amount=str(transaction.amount),
            donor=transaction.donor,
            recipient=transaction.recipient,
            timestamp=_naive_utc(transaction.timestamp),
            status=transaction.status.value,
            stellar_tx_id=transaction.stellar_tx_id,
            extra=transaction.extra or None
        )
        try:
            self.session.add(record)
            self.session.commit()
            logger.info(f"Recorded donation {transaction.id} of {transaction.amount} to {transaction.recipient}")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error recording donation: {e}")
            raise LedgerError(f"Failed to record donation: {e}") from e
        return transaction

@contextmanager
def open_ledger(settings) -> Generator[LedgerReader, None, None]:
    """
    Open the ledger backend selected by LEDGER_BACKEND for one unit of work.

    The SQL backend runs inside a Database.session() scope and the engine is
    disposed on exit.
    """
    if settings.LEDGER_BACKEND != 'sql':
        yield JsonFileLedger(settings.DB_PATH)
        return

    from donation_stats.db import db
    if not db.initialized:
        db.init(settings.DATABASE_URL)
    try:
        with db.session() as session:
            yield SqlLedger(session)
    finally:
        db.dispose()
