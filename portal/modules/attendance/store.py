"""
Read and write daily attendance rows.

Expected table layout::

    daily_attendance(id, student_id, class_id, date, status,
                     teacher_id, quarter_id, recorded_at)
    unique (student_id, class_id, date)

The unique constraint is what makes the atomic upsert safe. Without it,
set ATTENDANCE_ATOMIC_UPSERT=false to get the check-then-act sequence,
which can insert a duplicate when two sessions write the same
student/class/date at once.
"""
import calendar
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from portal.core.config import settings
from portal.core.errors import StoreError, ValidationError
from portal.db.client import QueryClient, Row, eq, gte, lte
from portal.schemas.attendance import ATTENDANCE_STATUSES, AttendanceRecord

logger = logging.getLogger(__name__)

TRIPLE_COLUMNS = "student_id,class_id,date"


def validate_status(status: str) -> str:
    if status not in ATTENDANCE_STATUSES:
        raise ValidationError(
            f"Invalid attendance status {status!r}; expected one of {', '.join(ATTENDANCE_STATUSES)}"
        )
    return status


def require_id(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value)


def validate_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month}; expected 1-12")
    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year {year}")


class AttendanceStore:
    def __init__(self, client: QueryClient, table: str = None, atomic_upsert: bool = None):
        self.client = client
        self.table = table or settings.ATTENDANCE_TABLE
        if atomic_upsert is None:
            atomic_upsert = settings.ATTENDANCE_ATOMIC_UPSERT
        self.atomic_upsert = atomic_upsert

    def _to_record(self, row: Row) -> AttendanceRecord:
        try:
            return AttendanceRecord(**row)
        except PydanticValidationError as e:
            logger.error("Malformed attendance row %s: %s", row.get("id"), str(e))
            raise StoreError(f"Malformed attendance row {row.get('id')}") from e

    def _fetch(self, filters) -> List[AttendanceRecord]:
        rows = self.client.query(self.table, filters, order_by="recorded_at")
        return [self._to_record(row) for row in rows]

    def fetch_for_student_in_range(self, student_id: str, class_id: str, start: date, end: date) -> List[AttendanceRecord]:
        student_id = require_id(student_id, "student_id")
        class_id = require_id(class_id, "class_id")
        return self._fetch([
            eq("student_id", student_id),
            eq("class_id", class_id),
            gte("date", start.isoformat()),
            lte("date", end.isoformat()),
        ])

    def fetch_for_student_and_month(self, student_id: str, class_id: str, year: int, month: int) -> List[AttendanceRecord]:
        validate_month(year, month)
        last_day = calendar.monthrange(year, month)[1]
        return self.fetch_for_student_in_range(
            student_id, class_id, date(year, month, 1), date(year, month, last_day)
        )

    def fetch_all_for_student(self, student_id: str, class_id: str) -> List[AttendanceRecord]:
        student_id = require_id(student_id, "student_id")
        class_id = require_id(class_id, "class_id")
        return self._fetch([eq("student_id", student_id), eq("class_id", class_id)])

    def fetch_for_class_on_day(self, class_id: str, day: date) -> List[AttendanceRecord]:
        class_id = require_id(class_id, "class_id")
        return self._fetch([eq("class_id", class_id), eq("date", day.isoformat())])

    def upsert(
        self,
        student_id: str,
        class_id: str,
        day: date,
        status: str,
        teacher_id: Optional[str] = None,
        quarter_id: Optional[str] = None,
    ) -> AttendanceRecord:
        student_id = require_id(student_id, "student_id")
        class_id = require_id(class_id, "class_id")
        validate_status(status)
        if day is None:
            raise ValidationError("date is required")

        recorded_at = datetime.now(timezone.utc).isoformat()

        if self.atomic_upsert:
            row = {
                "student_id": student_id,
                "class_id": class_id,
                "date": day.isoformat(),
                "status": status,
                "teacher_id": teacher_id,
                "quarter_id": quarter_id,
                "recorded_at": recorded_at,
            }
            # omitted columns keep their stored value on conflict
            row = {k: v for k, v in row.items() if v is not None}
            saved = self.client.upsert(self.table, row, on_conflict=TRIPLE_COLUMNS)
            logger.info("Upserted attendance %s/%s/%s -> %s", student_id, class_id, day, status)
            return self._to_record(saved)

        # Check-then-act: not atomic, see module docstring
        existing = self.client.query(self.table, [
            eq("student_id", student_id),
            eq("class_id", class_id),
            eq("date", day.isoformat()),
        ], order_by="recorded_at")
        if existing:
            # latest row for the day is the one the calendar shows
            current = existing[-1]
            saved = self.client.update(self.table, current["id"], {
                "status": status,
                "recorded_at": recorded_at,
            })
            logger.info("Updated attendance %s (%s) -> %s", current["id"], day, status)
            return self._to_record(saved)

        saved = self.client.insert(self.table, {
            "student_id": student_id,
            "class_id": class_id,
            "date": day.isoformat(),
            "status": status,
            "teacher_id": teacher_id,
            "quarter_id": quarter_id,
            "recorded_at": recorded_at,
        })
        logger.info("Inserted attendance %s/%s/%s -> %s", student_id, class_id, day, status)
        return self._to_record(saved)
