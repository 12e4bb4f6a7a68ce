"""Stats service: runs the aggregation engine over a ledger date range"""
import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple, TypeVar

from donation_stats import aggregation
from donation_stats.models.stats import (
    DailyBucket,
    DonorBucket,
    RecipientBucket,
    SummaryStats,
    WeeklyBucket,
)
from donation_stats.models.transaction import Transaction, ensure_utc, parse_timestamp
from donation_stats.services.ledger import LedgerError, LedgerReader, LedgerUnavailableError

logger = logging.getLogger(__name__)

R = TypeVar('R')

MISSING_DATE_RANGE = 'MISSING_DATE_RANGE'
INVALID_DATE_FORMAT = 'INVALID_DATE_FORMAT'
INVALID_DATE_RANGE = 'INVALID_DATE_RANGE'

class DateRangeError(ValueError):
    """A caller supplied a missing, unparseable or inverted date range"""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

def parse_instant(raw: str) -> datetime:
    """
    Parse an ISO date or datetime into an aware UTC instant.

    Date-only values mean midnight UTC, naive datetimes are taken as UTC.
    """
    text = raw.strip()
    try:
        if len(text) == 10:
            return datetime.combine(date.fromisoformat(text), datetime.min.time(), tzinfo=timezone.utc)
        return parse_timestamp(text)
    except ValueError as e:
        raise DateRangeError(
            INVALID_DATE_FORMAT,
            "Invalid date format. Use ISO format (YYYY-MM-DD or ISO 8601)"
        ) from e

def parse_date_range(start_raw: Optional[str], end_raw: Optional[str]) -> Tuple[datetime, datetime]:
    """
    Validate a raw startDate/endDate pair before it reaches the engine.

    Raises:
        DateRangeError: With code MISSING_DATE_RANGE, INVALID_DATE_FORMAT or INVALID_DATE_RANGE
    """
    if not start_raw or not end_raw:
        raise DateRangeError(
            MISSING_DATE_RANGE,
            "Missing required query parameters: startDate, endDate (ISO format)"
        )

    start = parse_instant(start_raw)
    end = parse_instant(end_raw)

    if start > end:
        raise DateRangeError(INVALID_DATE_RANGE, "startDate must be before endDate")

    return start, end

class StatsService:
    """Answers the dashboard's aggregate queries from a ledger snapshot"""

    def __init__(self, ledger: LedgerReader):
        self.ledger = ledger

    def _fetch(self, start: datetime, end: datetime) -> List[Transaction]:
        if ensure_utc(start) > ensure_utc(end):
            # Applied as given, which selects nothing
            logger.warning(f"Inverted date range {start.isoformat()} > {end.isoformat()}")
        try:
            transactions = self.ledger.get_by_date_range(start, end)
        except LedgerError as e:
            logger.error(f"Ledger unavailable for stats query: {e}")
            raise LedgerUnavailableError(str(e)) from e
        logger.debug(f"Loaded {len(transactions)} transactions between {start} and {end}")
        return transactions

    def _run(self, start: datetime, end: datetime, reduce: Callable[[List[Transaction]], R]) -> R:
        return reduce(self._fetch(start, end))

    def daily_stats(self, start: datetime, end: datetime) -> List[DailyBucket]:
        return self._run(start, end, aggregation.daily_stats)

    def weekly_stats(self, start: datetime, end: datetime) -> List[WeeklyBucket]:
        return self._run(start, end, aggregation.weekly_stats)

    def summary_stats(self, start: datetime, end: datetime) -> SummaryStats:
        return self._run(start, end, lambda txs: aggregation.summary_stats(txs, start, end))

    def donor_stats(self, start: datetime, end: datetime) -> List[DonorBucket]:
        return self._run(start, end, aggregation.donor_stats)

    def recipient_stats(self, start: datetime, end: datetime) -> List[RecipientBucket]:
        return self._run(start, end, aggregation.recipient_stats)
