from pydantic import BaseModel
from typing import List, Literal, Optional, Union
from datetime import date, datetime

# Allowed attendance states
AttendanceStatus = Literal["present", "late", "excused", "absent"]

ATTENDANCE_STATUSES = ("present", "late", "excused", "absent")

# Statuses that count towards an attendance percentage
PRESENT_STATUSES = ("present", "late")


class AttendanceRecord(BaseModel):
    id: Union[int, str]
    student_id: str
    class_id: str
    date: date
    status: AttendanceStatus
    teacher_id: Optional[str] = None
    quarter_id: Optional[str] = None
    recorded_at: Optional[datetime] = None


class DayStatusUpdate(BaseModel):
    status: AttendanceStatus
    teacher_id: Optional[str] = None
    quarter_id: Optional[str] = None


class DayCell(BaseModel):
    date: date
    status: Optional[AttendanceStatus] = None
    editable: bool
    is_weekend: bool
    is_today: bool


class StatusCounts(BaseModel):
    present: int = 0
    late: int = 0
    excused: int = 0
    absent: int = 0


class MonthView(BaseModel):
    student_id: str
    class_id: str
    year: int
    month: int
    days: List[DayCell]
    monthly_percentage: int
    overall_percentage: int
    monthly_band: str
    overall_band: str
    counts: StatusCounts


class DayStatusResult(BaseModel):
    record: AttendanceRecord
    monthly_percentage: int
    overall_percentage: int


class RosterEntry(BaseModel):
    student_id: str
    full_name: Optional[str] = None


