"""
Attendance reports across one or more classes.

Every weekday of the reporting window is a column. A student with no
record for a column is reported as absent, explicitly. Class and overall
figures are plain means of the per-student (resp. per-class) percentages,
not pooled present/total ratios.
"""
import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Sequence, Tuple

from portal.core.errors import ValidationError
from portal.modules.attendance.calculator import round_half_up, to_percentage, weekdays_between
from portal.modules.attendance.policy import start_of_week
from portal.modules.attendance.store import AttendanceStore
from portal.schemas.attendance import PRESENT_STATUSES, RosterEntry, StatusCounts
from portal.schemas.reports import (
    AttendanceReport,
    ClassReport,
    ClassSelection,
    ClassDaySummary,
    ClassSummaryRow,
    DailyOverview,
    StudentReportRow,
    Table,
)

logger = logging.getLogger(__name__)

RosterLookup = Callable[[str], List[RosterEntry]]

STUDENT_HEADER = "Student"
PERCENT_HEADER = "Attendance %"
CLASS_AVERAGE_LABEL = "Class average"
OVERALL_AVERAGE_LABEL = "Average attendance"
SUMMARY_SHEET = "Summary"

STATUS_LABELS = {
    "present": "Present",
    "late": "Late",
    "excused": "Excused",
    "absent": "Absent",
}


def report_window(period: str, now: datetime) -> Tuple[date, date]:
    if period == "monthly":
        today = now.date()
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)
    if period == "weekly":
        start = start_of_week(now)
        return start, start + timedelta(days=6)
    raise ValidationError(f"Invalid report period {period!r}; expected 'weekly' or 'monthly'")


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


class ReportAggregator:
    def __init__(self, store: AttendanceStore, roster_lookup: RosterLookup):
        self.store = store
        self.roster_lookup = roster_lookup

    def build_report(self, selections: Sequence[ClassSelection], period: str, now: datetime) -> AttendanceReport:
        if not selections:
            raise ValidationError("At least one class must be selected")

        start, end = report_window(period, now)
        date_columns = weekdays_between(start, end)

        classes = [self._class_report(selection, date_columns, start, end) for selection in selections]
        overall = mean([c.percentage for c in classes])

        summary = []
        if len(classes) > 1:
            summary = [
                ClassSummaryRow(
                    class_id=c.class_id,
                    display_name=c.display_name,
                    level_name=c.level_name,
                    student_count=len(c.students),
                    percentage=c.percentage,
                )
                for c in classes
            ]

        logger.info(
            "Built %s attendance report for %d class(es), %s to %s",
            period, len(classes), start, end,
        )
        return AttendanceReport(
            period=period,
            start_date=start,
            end_date=end,
            classes=classes,
            overall_percentage=overall,
            summary=summary,
        )

    def _class_report(self, selection: ClassSelection, date_columns: List[date], start: date, end: date) -> ClassReport:
        roster = self.roster_lookup(selection.class_id)

        students = []
        for student in roster:
            records = self.store.fetch_for_student_in_range(student.student_id, selection.class_id, start, end)

            status_by_date = {day: "absent" for day in date_columns}
            for record in records:
                # weekend records have no column
                if record.date in status_by_date:
                    status_by_date[record.date] = record.status

            present = sum(1 for status in status_by_date.values() if status in PRESENT_STATUSES)
            students.append(StudentReportRow(
                student=student,
                status_by_date=status_by_date,
                percentage=to_percentage(present, len(date_columns)),
            ))

        return ClassReport(
            class_id=selection.class_id,
            display_name=selection.display_name,
            level_name=selection.level_name,
            dates=date_columns,
            students=students,
            percentage=mean([s.percentage for s in students]),
        )

    def summarize_day(self, class_ids: Sequence[str], day: date) -> DailyOverview:
        """
        Per-class status counts for one day against each roster.

        Only enrolled students are counted, one status each (their latest
        record). Students with no record are reported as not marked. The
        overall figures are pooled totals across classes.
        """
        if not class_ids:
            raise ValidationError("At least one class must be selected")

        classes = [self._class_day(class_id, day) for class_id in class_ids]

        counts = StatusCounts()
        for c in classes:
            for status in STATUS_LABELS:
                setattr(counts, status, getattr(counts, status) + getattr(c.counts, status))
        total_students = sum(c.total_students for c in classes)

        logger.info("Built daily overview for %d class(es) on %s", len(classes), day)
        return DailyOverview(
            date=day,
            classes=classes,
            total_students=total_students,
            counts=counts,
            not_marked=sum(c.not_marked for c in classes),
            percentage=to_percentage(counts.present + counts.late, total_students),
        )

    def _class_day(self, class_id: str, day: date) -> ClassDaySummary:
        enrolled = {student.student_id for student in self.roster_lookup(class_id)}

        status_by_student = {}
        for record in self.store.fetch_for_class_on_day(class_id, day):
            if record.student_id in enrolled:
                status_by_student[record.student_id] = record.status

        counts = StatusCounts()
        for status in status_by_student.values():
            setattr(counts, status, getattr(counts, status) + 1)

        return ClassDaySummary(
            class_id=class_id,
            date=day,
            total_students=len(enrolled),
            counts=counts,
            not_marked=len(enrolled) - len(status_by_student),
            percentage=to_percentage(counts.present + counts.late, len(enrolled)),
        )


def format_percentage(value: float) -> str:
    return f"{round_half_up(value)}%"


def format_date_header(day: date) -> str:
    return f"{day.day}/{day.month}"


def class_table(report: ClassReport) -> Table:
    """Student rows with one column per date, a percentage column and a class average row."""
    header = [STUDENT_HEADER] + [format_date_header(day) for day in report.dates] + [PERCENT_HEADER]
    rows = [header]
    for student_row in report.students:
        rows.append(
            [student_row.student.full_name or student_row.student.student_id]
            + [STATUS_LABELS[student_row.status_by_date.get(day, "absent")] for day in report.dates]
            + [format_percentage(student_row.percentage)]
        )
    rows.append([CLASS_AVERAGE_LABEL] + [""] * len(report.dates) + [format_percentage(report.percentage)])
    return Table(name=report.display_name, rows=rows)


def summary_table(report: AttendanceReport) -> Table:
    rows = [["Grade", "Class", "Students", PERCENT_HEADER]]
    for c in report.classes:
        rows.append([c.level_name or "", c.display_name, len(c.students), format_percentage(c.percentage)])
    rows.append([
        "",
        OVERALL_AVERAGE_LABEL,
        sum(len(c.students) for c in report.classes),
        format_percentage(report.overall_percentage),
    ])
    return Table(name=SUMMARY_SHEET, rows=rows)


def report_tables(report: AttendanceReport, export_all: bool = True) -> List[Table]:
    """One table per class, plus the summary table when exporting everything."""
    tables = [class_table(c) for c in report.classes]
    if export_all:
        tables.append(summary_table(report))
    return tables
