"""Aggregation bucket models returned by the stats engine"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List

from donation_stats.models.transaction import TransactionSummary

@dataclass
class DailyBucket:
    """Volume for one UTC calendar date"""
    date: date
    total_volume: Decimal = Decimal(0)
    transaction_count: int = 0
    transactions: List[TransactionSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'totalVolume': self.total_volume,
            'transactionCount': self.transaction_count,
            'transactions': [tx.to_dict() for tx in self.transactions]
        }

@dataclass
class WeeklyBucket:
    """Volume for one ISO-8601 week"""
    year: int
    week: int
    week_start: date
    week_end: date
    total_volume: Decimal = Decimal(0)
    transaction_count: int = 0
    transactions: List[TransactionSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'week': self.week,
            'year': self.year,
            'weekStart': self.week_start.isoformat(),
            'weekEnd': self.week_end.isoformat(),
            'totalVolume': self.total_volume,
            'transactionCount': self.transaction_count,
            'transactions': [tx.to_dict() for tx in self.transactions]
        }

@dataclass
class DonorBucket:
    """Everything one donor gave in the range"""
    donor: str
    total_donated: Decimal = Decimal(0)
    donation_count: int = 0
    donations: List[TransactionSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'donor': self.donor,
            'totalDonated': self.total_donated,
            'donationCount': self.donation_count,
            'donations': [tx.to_dict(omit='donor') for tx in self.donations]
        }

@dataclass
class RecipientBucket:
    """Everything one recipient received in the range"""
    recipient: str
    total_received: Decimal = Decimal(0)
    donation_count: int = 0
    donations: List[TransactionSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recipient': self.recipient,
            'totalReceived': self.total_received,
            'donationCount': self.donation_count,
            'donations': [tx.to_dict(omit='recipient') for tx in self.donations]
        }

@dataclass
class DateRange:
    """Echoed query range as ISO-8601 strings"""
    start: str
    end: str

@dataclass
class SummaryStats:
    """Overall statistics for a range. All amounts are 0 when the range is empty."""
    total_volume: Decimal
    total_transactions: int
    average_transaction_amount: Decimal
    max_transaction_amount: Decimal
    min_transaction_amount: Decimal
    date_range: DateRange

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalVolume': self.total_volume,
            'totalTransactions': self.total_transactions,
            'averageTransactionAmount': self.average_transaction_amount,
            'maxTransactionAmount': self.max_transaction_amount,
            'minTransactionAmount': self.min_transaction_amount,
            'dateRange': {
                'start': self.date_range.start,
                'end': self.date_range.end
            }
        }
