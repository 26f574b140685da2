from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import date

from portal.schemas.attendance import AttendanceStatus, RosterEntry, StatusCounts

ReportPeriod = Literal["weekly", "monthly"]


class ClassSelection(BaseModel):
    class_id: str
    display_name: str
    level_name: Optional[str] = None


class ReportRequest(BaseModel):
    selections: List[ClassSelection]
    period: ReportPeriod = "monthly"


class StudentReportRow(BaseModel):
    student: RosterEntry
    status_by_date: Dict[date, AttendanceStatus]
    percentage: int


class ClassReport(BaseModel):
    class_id: str
    display_name: str
    level_name: Optional[str] = None
    dates: List[date]
    students: List[StudentReportRow]
    percentage: float


class ClassSummaryRow(BaseModel):
    class_id: str
    display_name: str
    level_name: Optional[str] = None
    student_count: int
    percentage: float


class AttendanceReport(BaseModel):
    period: ReportPeriod
    start_date: date
    end_date: date
    classes: List[ClassReport]
    overall_percentage: float
    # Only populated when more than one class was selected
    summary: List[ClassSummaryRow] = Field(default_factory=list)


class Table(BaseModel):
    """A named grid of cells, one worksheet in an export."""
    name: str
    rows: List[List[Any]]


class ClassDaySummary(BaseModel):
    class_id: str
    date: date
    total_students: int
    counts: StatusCounts
    not_marked: int
    percentage: int


class DailyOverview(BaseModel):
    date: date
    classes: List[ClassDaySummary]
    total_students: int
    counts: StatusCounts
    not_marked: int
    percentage: int
