import logging
from datetime import date, datetime
from typing import List, Optional

from portal.core.errors import PolicyViolation
from portal.modules.attendance import calculator
from portal.modules.attendance.policy import is_editable, is_weekend
from portal.modules.attendance.store import (
    AttendanceStore,
    require_id,
    validate_month,
    validate_status,
)
from portal.schemas.attendance import (
    AttendanceRecord,
    DayCell,
    DayStatusResult,
    MonthView,
)

logger = logging.getLogger(__name__)


class AttendanceService:
    """
    Calendar view of one student's attendance in one class.

    Holds no data between calls: every view and every write works from a
    fresh read of the store.
    """

    def __init__(self, store: AttendanceStore):
        self.store = store

    def get_month_view(self, student_id: str, class_id: str, year: int, month: int, now: datetime) -> MonthView:
        validate_month(year, month)
        month_records = self.store.fetch_for_student_and_month(student_id, class_id, year, month)
        all_records = self.store.fetch_all_for_student(student_id, class_id)

        monthly = calculator.compute_monthly_percentage(month_records, year, month)
        overall = calculator.compute_overall_percentage(all_records)

        return MonthView(
            student_id=student_id,
            class_id=class_id,
            year=year,
            month=month,
            days=self._day_cells(month_records, year, month, now),
            monthly_percentage=monthly,
            overall_percentage=overall,
            monthly_band=calculator.percentage_band(monthly),
            overall_band=calculator.percentage_band(overall),
            counts=calculator.summarize_statuses(month_records),
        )

    def _day_cells(self, records: List[AttendanceRecord], year: int, month: int, now: datetime) -> List[DayCell]:
        latest = calculator.latest_by_date(records)
        status_by_date = {day: record.status for day, record in latest.items()}

        today = now.date()
        return [
            DayCell(
                date=day,
                status=status_by_date.get(day),
                editable=is_editable(day, now),
                is_weekend=is_weekend(day),
                is_today=day == today,
            )
            for day in calculator.month_days(year, month)
        ]

    def set_day_status(
        self,
        student_id: str,
        class_id: str,
        day: date,
        status: str,
        now: datetime,
        teacher_id: Optional[str] = None,
        quarter_id: Optional[str] = None,
    ) -> DayStatusResult:
        require_id(student_id, "student_id")
        require_id(class_id, "class_id")
        validate_status(status)

        if is_weekend(day):
            raise PolicyViolation(f"{day.isoformat()} falls on a weekend")
        if not is_editable(day, now):
            logger.info("Rejected attendance edit for %s/%s on %s", student_id, class_id, day)
            raise PolicyViolation(f"{day.isoformat()} is outside the attendance edit window")

        record = self.store.upsert(
            student_id, class_id, day, status, teacher_id=teacher_id, quarter_id=quarter_id
        )

        # Recompute from the store, never from the pre-write snapshot
        month_records = self.store.fetch_for_student_and_month(student_id, class_id, day.year, day.month)
        all_records = self.store.fetch_all_for_student(student_id, class_id)

        return DayStatusResult(
            record=record,
            monthly_percentage=calculator.compute_monthly_percentage(month_records, day.year, day.month),
            overall_percentage=calculator.compute_overall_percentage(all_records),
        )
