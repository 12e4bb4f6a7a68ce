"""Donation aggregation engine: daily, weekly, donor, recipient and summary rollups"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Hashable, Iterable, List, TypeVar

from donation_stats.isoweek import IsoWeek, iso_week
from donation_stats.models.stats import (
    DailyBucket,
    DateRange,
    DonorBucket,
    RecipientBucket,
    SummaryStats,
    WeeklyBucket,
)
from donation_stats.models.transaction import (
    DEFAULT_DONOR,
    DEFAULT_RECIPIENT,
    Transaction,
    TransactionSummary,
    coerce_amount,
    ensure_utc,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')
K = TypeVar('K', bound=Hashable)
A = TypeVar('A')

ZERO = Decimal(0)

def reduce_by_key(
        items: Iterable[T],
        key_fn: Callable[[T], K],
        init_fn: Callable[[K, T], A],
        merge_fn: Callable[[A, T], None]
) -> Dict[K, A]:
    """
    Group items by a derived key and fold each group into an accumulator.

    The returned dict keeps first-seen key order, which callers rely on for
    stable tie-breaking when they sort the buckets.

    Args:
        items: Items to group
        key_fn: Derives the grouping key of an item
        init_fn: Creates an empty accumulator for a new key
        merge_fn: Folds an item into its accumulator in place

    Returns:
        Mapping of key to accumulator
    """
    groups: Dict[K, A] = {}
    for item in items:
        key = key_fn(item)
        if key not in groups:
            groups[key] = init_fn(key, item)
        merge_fn(groups[key], item)
    return groups

def amount_of(tx: Transaction) -> Decimal:
    """Numeric amount of a transaction; non-numeric stored amounts count as 0"""
    amount = coerce_amount(tx.amount)
    if isinstance(amount, Decimal):
        return amount
    logger.warning(f"Transaction {tx.id} has non-numeric amount {tx.amount!r}, counting it as 0")
    return ZERO

def utc_date(tx: Transaction) -> date:
    return ensure_utc(tx.timestamp).date()

def _merge_daily(bucket: DailyBucket, tx: Transaction) -> None:
    bucket.total_volume += amount_of(tx)
    bucket.transaction_count += 1
    bucket.transactions.append(TransactionSummary.of(tx))

def _merge_weekly(bucket: WeeklyBucket, tx: Transaction) -> None:
    bucket.total_volume += amount_of(tx)
    bucket.transaction_count += 1
    bucket.transactions.append(TransactionSummary.of(tx))

def _merge_donor(bucket: DonorBucket, tx: Transaction) -> None:
    bucket.total_donated += amount_of(tx)
    bucket.donation_count += 1
    bucket.donations.append(TransactionSummary.of(tx))

def _merge_recipient(bucket: RecipientBucket, tx: Transaction) -> None:
    bucket.total_received += amount_of(tx)
    bucket.donation_count += 1
    bucket.donations.append(TransactionSummary.of(tx))

def _new_weekly(week: IsoWeek, tx: Transaction) -> WeeklyBucket:
    return WeeklyBucket(
        year=week.year,
        week=week.week,
        week_start=week.week_start,
        week_end=week.week_end
    )

def daily_stats(transactions: Iterable[Transaction]) -> List[DailyBucket]:
    """Group by UTC calendar date, ascending. Dates without donations are omitted."""
    groups = reduce_by_key(
        transactions,
        utc_date,
        lambda day, tx: DailyBucket(date=day),
        _merge_daily
    )
    return [groups[day] for day in sorted(groups)]

def weekly_stats(transactions: Iterable[Transaction]) -> List[WeeklyBucket]:
    """Group by ISO week, ascending by (ISO year, week)"""
    groups = reduce_by_key(
        transactions,
        lambda tx: iso_week(tx.timestamp),
        _new_weekly,
        _merge_weekly
    )
    return [groups[week] for week in sorted(groups, key=lambda w: w.sort_key)]

def donor_stats(transactions: Iterable[Transaction]) -> List[DonorBucket]:
    """Group by donor, largest total first; ties keep first-seen order"""
    groups = reduce_by_key(
        transactions,
        lambda tx: tx.donor or DEFAULT_DONOR,
        lambda donor, tx: DonorBucket(donor=donor),
        _merge_donor
    )
    return sorted(groups.values(), key=lambda b: b.total_donated, reverse=True)

def recipient_stats(transactions: Iterable[Transaction]) -> List[RecipientBucket]:
    """Group by recipient, largest total first; ties keep first-seen order"""
    groups = reduce_by_key(
        transactions,
        lambda tx: tx.recipient or DEFAULT_RECIPIENT,
        lambda recipient, tx: RecipientBucket(recipient=recipient),
        _merge_recipient
    )
    return sorted(groups.values(), key=lambda b: b.total_received, reverse=True)

def summary_stats(transactions: Iterable[Transaction], start: datetime, end: datetime) -> SummaryStats:
    """
    Reduce a range into totals, average, max and min.

    An empty range yields zeros everywhere rather than infinities.
    """
    amounts = [amount_of(tx) for tx in transactions]
    date_range = DateRange(
        start=ensure_utc(start).isoformat(),
        end=ensure_utc(end).isoformat()
    )

    if not amounts:
        return SummaryStats(
            total_volume=ZERO,
            total_transactions=0,
            average_transaction_amount=ZERO,
            max_transaction_amount=ZERO,
            min_transaction_amount=ZERO,
            date_range=date_range
        )

    total = sum(amounts, ZERO)
    return SummaryStats(
        total_volume=total,
        total_transactions=len(amounts),
        average_transaction_amount=total / len(amounts),
        max_transaction_amount=max(amounts),
        min_transaction_amount=min(amounts),
        date_range=date_range
    )
