"""
Attendance percentages.

Two formulas live side by side and must not be merged:

* monthly: every weekday of the month is a school day, so an unmarked
  weekday counts against the student;
* overall: only days that actually have a record are counted, after
  collapsing duplicate records for the same date (last one wins).
"""
import calendar
import math
from datetime import date, timedelta
from typing import Dict, Iterable, Iterator, List, Optional

from portal.modules.attendance.policy import is_weekend
from portal.schemas.attendance import AttendanceRecord, PRESENT_STATUSES, StatusCounts


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; 50.5% must display as 51%
    return int(math.floor(value + 0.5))


def to_percentage(present: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(present / total * 100)


def month_days(year: int, month: int) -> Iterator[date]:
    days_in_month = calendar.monthrange(year, month)[1]
    for day in range(1, days_in_month + 1):
        yield date(year, month, day)


def weekdays_between(start: date, end: date) -> List[date]:
    """Monday-to-Friday dates in ``[start, end]``."""
    days = []
    current = start
    while current <= end:
        if not is_weekend(current):
            days.append(current)
        current += timedelta(days=1)
    return days


def latest_by_date(records: Iterable[AttendanceRecord]) -> Dict[date, AttendanceRecord]:
    """One record per date, the last one seen (records arrive ordered by recorded_at)."""
    by_date: Dict[date, AttendanceRecord] = {}
    for record in records:
        by_date[record.date] = record
    return by_date


def compute_monthly_percentage(records: Iterable[AttendanceRecord], year: int, month: int) -> int:
    # same row per date as the calendar cell
    by_date = latest_by_date(records)

    total_days = 0
    present_days = 0
    for day in month_days(year, month):
        if is_weekend(day):
            continue
        total_days += 1
        record = by_date.get(day)
        if record is not None and record.status in PRESENT_STATUSES:
            present_days += 1

    return to_percentage(present_days, total_days)


def compute_overall_percentage(records: Iterable[AttendanceRecord]) -> int:
    total_days = 0
    present_days = 0
    for day, record in latest_by_date(records).items():
        if is_weekend(day):
            continue
        total_days += 1
        if record.status in PRESENT_STATUSES:
            present_days += 1

    return to_percentage(present_days, total_days)


def summarize_statuses(records: Iterable[AttendanceRecord]) -> StatusCounts:
    """Per-status counts over deduplicated weekday records."""
    counts = StatusCounts()
    for day, record in latest_by_date(records).items():
        if is_weekend(day):
            continue
        setattr(counts, record.status, getattr(counts, record.status) + 1)
    return counts


def clamp_percentage(value: Optional[float]) -> int:
    """Make any computed value safe to display: NaN/None become 0."""
    if value is None or math.isnan(value):
        return 0
    return round_half_up(max(0.0, min(100.0, float(value))))


def percentage_band(value: Optional[float]) -> str:
    """Colour band used by the attendance indicator."""
    percent = clamp_percentage(value)
    if percent <= 50:
        return "red"
    if percent <= 70:
        return "orange"
    if percent <= 80:
        return "yellow"
    return "green"
