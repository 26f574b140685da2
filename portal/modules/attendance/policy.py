"""
Edit window for daily attendance.

A teacher may set a status for a weekday in the current week (Monday to
Sunday around ``now``) or any later date, but never for a day older than
the grace period (three days by default). Weekends are never editable.
These functions do no I/O and are evaluated once per calendar cell.
"""
from datetime import date, datetime, timedelta

from portal.core.config import settings


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def start_of_week(now: datetime) -> date:
    """Monday on or before ``now`` (a Sunday belongs to the week before it)."""
    today = now.date()
    return today - timedelta(days=today.weekday())


def end_of_week(now: datetime) -> date:
    """Sunday closing the week of ``now``; the whole day is inside the week."""
    return start_of_week(now) + timedelta(days=6)


def is_editable(day: date, now: datetime, grace_days: int = None) -> bool:
    if grace_days is None:
        grace_days = settings.ATTENDANCE_EDIT_GRACE_DAYS

    if is_weekend(day):
        return False

    # Current week or anything after it. No upper bound on future dates.
    if day < start_of_week(now):
        return False

    # Hard floor, compared by calendar date
    return day >= (now - timedelta(days=grace_days)).date()
