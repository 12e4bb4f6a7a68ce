"""Domain models for recorded donation transactions"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union

DEFAULT_DONOR = "Anonymous"
DEFAULT_RECIPIENT = "Unknown"

class TransactionStatus(str, Enum):
    """Lifecycle state of a donation"""
    COMPLETED = "completed"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    CANCELLED = "cancelled"

# Statuses that never count toward a donor's daily total
EXCLUDED_FROM_DAILY_TOTAL = frozenset({TransactionStatus.FAILED, TransactionStatus.CANCELLED})

def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse a stored ISO-8601 timestamp (trailing 'Z' allowed) into aware UTC"""
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return ensure_utc(datetime.fromisoformat(text))

def format_timestamp(value: datetime) -> str:
    """Render a UTC instant the way the JSON ledger stores it"""
    return ensure_utc(value).isoformat(timespec='milliseconds').replace('+00:00', 'Z')

def json_amount(value: Decimal) -> Union[int, float, str]:
    """Stored form of a Decimal amount: int or float when exact, decimal text otherwise"""
    if value == value.to_integral_value():
        return int(value)
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return str(value)

def coerce_amount(value: Any) -> Union[Decimal, Any]:
    """Convert a stored amount to Decimal when it is numeric, otherwise keep it as read"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return value
        return amount if amount.is_finite() else value
    return value

@dataclass(frozen=True)
class Transaction:
    """A single recorded donation"""
    id: str
    amount: Any  # Decimal for well-formed records
    recipient: Optional[str]
    timestamp: datetime
    donor: Optional[str] = DEFAULT_DONOR
    status: TransactionStatus = TransactionStatus.COMPLETED
    stellar_tx_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Transaction':
        """Build a transaction from a stored JSON record"""
        known = {'id', 'amount', 'donor', 'recipient', 'timestamp', 'status', 'stellarTxId'}
        return cls(
            id=str(record['id']),
            amount=coerce_amount(record.get('amount')),
            donor=record.get('donor') or DEFAULT_DONOR,
            recipient=record.get('recipient'),
            timestamp=parse_timestamp(record['timestamp']),
            status=TransactionStatus(record.get('status') or TransactionStatus.COMPLETED.value),
            stellar_tx_id=record.get('stellarTxId'),
            extra={k: v for k, v in record.items() if k not in known}
        )

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the stored JSON record shape"""
        amount = self.amount
        if isinstance(amount, Decimal):
            amount = json_amount(amount)
        return {
            **self.extra,
            'id': self.id,
            'amount': amount,
            'donor': self.donor,
            'recipient': self.recipient,
            'timestamp': format_timestamp(self.timestamp),
            'status': self.status.value,
            'stellarTxId': self.stellar_tx_id
        }

    @property
    def counts_toward_daily_total(self) -> bool:
        return self.status not in EXCLUDED_FROM_DAILY_TOTAL

@dataclass(frozen=True)
class TransactionSummary:
    """Lightweight view of a transaction carried inside aggregation buckets"""
    id: str
    amount: Any
    donor: Optional[str]
    recipient: Optional[str]
    timestamp: datetime

    @classmethod
    def of(cls, tx: Transaction) -> 'TransactionSummary':
        return cls(
            id=tx.id,
            amount=tx.amount,
            donor=tx.donor,
            recipient=tx.recipient,
            timestamp=tx.timestamp
        )

    def to_dict(self, omit: Optional[str] = None) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'amount': self.amount,
            'donor': self.donor,
            'recipient': self.recipient,
            'timestamp': self.timestamp
        }
        if omit:
            data.pop(omit, None)
        return data
