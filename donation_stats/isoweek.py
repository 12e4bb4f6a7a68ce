"""ISO-8601 week numbering"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Tuple, Union

from donation_stats.models.transaction import ensure_utc

@dataclass(frozen=True)
class IsoWeek:
    """An ISO week with its Monday-Sunday bounds"""
    year: int
    week: int
    week_start: date
    week_end: date

    @property
    def key(self) -> str:
        return f"{self.year}-W{self.week:02d}"

    @property
    def sort_key(self) -> Tuple[int, int]:
        return self.year, self.week

def _as_utc_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value

def iso_week(value: Union[date, datetime]) -> IsoWeek:
    """
    Map a calendar date to its ISO week.

    Week 1 is the week holding January 4th, so the ISO year can differ from
    the calendar year in the first and last days of a year. Datetimes are
    reduced to their UTC date first.

    Args:
        value: Date or datetime to classify

    Returns:
        IsoWeek with ISO year, week number and Monday/Sunday bounds
    """
    d = _as_utc_date(value)

    # Thursday of the same week decides the ISO year
    thursday = d + timedelta(days=4 - d.isoweekday())
    iso_year = thursday.year

    jan4 = date(iso_year, 1, 4)
    week1_monday = jan4 - timedelta(days=jan4.isoweekday() - 1)
    week = (thursday - week1_monday).days // 7 + 1

    week_start = week1_monday + timedelta(weeks=week - 1)
    return IsoWeek(
        year=iso_year,
        week=week,
        week_start=week_start,
        week_end=week_start + timedelta(days=6)
    )
