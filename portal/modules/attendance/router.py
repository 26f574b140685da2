import logging
from datetime import date as date_type, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from portal.core.dependencies import get_attendance_service, get_now
from portal.core.errors import PolicyViolation, StoreError, ValidationError
from portal.modules.attendance.service import AttendanceService
from portal.schemas.attendance import DayStatusResult, DayStatusUpdate, MonthView

router = APIRouter(tags=["Attendance"])
logger = logging.getLogger(__name__)


@router.get("/students/{student_id}/classes/{class_id}/month", response_model=MonthView)
def get_month_view(
    student_id: str,
    class_id: str,
    year: Optional[int] = Query(None, description="Defaults to the current year"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Defaults to the current month"),
    service: AttendanceService = Depends(get_attendance_service),
    now: datetime = Depends(get_now),
):
    """
    Calendar month for one student in one class.

    Every day of the month is returned with its status (or null), whether
    the teacher may still edit it, and the monthly and overall percentages.
    """
    try:
        return service.get_month_view(
            student_id,
            class_id,
            year or now.year,
            month or now.month,
            now,
        )

    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        logger.error("Month view store error: %s", str(e))
        raise HTTPException(status_code=502, detail="Failed to load attendance data")
    except Exception:
        logger.exception("Unexpected error building month view")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/students/{student_id}/classes/{class_id}/days/{day}", response_model=DayStatusResult)
def set_day_status(
    student_id: str,
    class_id: str,
    day: date_type,
    update: DayStatusUpdate,
    service: AttendanceService = Depends(get_attendance_service),
    now: datetime = Depends(get_now),
):
    """
    Set a student's status for one day. Creates the record on first use,
    replaces the status afterwards.
    """
    try:
        return service.set_day_status(
            student_id,
            class_id,
            day,
            update.status,
            now,
            teacher_id=update.teacher_id,
            quarter_id=update.quarter_id,
        )

    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PolicyViolation as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StoreError as e:
        logger.error("Set day status store error: %s", str(e))
        raise HTTPException(status_code=502, detail="Failed to save attendance")
    except Exception:
        logger.exception("Unexpected error saving attendance")
        raise HTTPException(status_code=500, detail="Internal server error")
