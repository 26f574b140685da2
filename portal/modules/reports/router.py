import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from portal.core.dependencies import get_now, get_report_aggregator
from portal.core.errors import StoreError, ValidationError
from portal.modules.reports.aggregator import ReportAggregator, class_table, report_tables
from portal.modules.reports.export import XLSX_MEDIA_TYPE, export_filename, export_workbook
from portal.schemas.reports import AttendanceReport, DailyOverview, ReportRequest

router = APIRouter(tags=["Reports"])
logger = logging.getLogger(__name__)


@router.post("/attendance", response_model=AttendanceReport)
def build_attendance_report(
    request: ReportRequest,
    aggregator: ReportAggregator = Depends(get_report_aggregator),
    now: datetime = Depends(get_now),
):
    """
    Attendance by date for the selected classes over the current week or month.
    """
    try:
        return aggregator.build_report(request.selections, request.period, now)

    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        logger.error("Attendance report store error: %s", str(e))
        raise HTTPException(status_code=502, detail="Failed to load attendance data")
    except Exception:
        logger.exception("Unexpected error building attendance report")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/attendance/daily", response_model=DailyOverview)
def daily_attendance_overview(
    class_id: List[str] = Query(..., description="Class ids to include"),
    day: Optional[date] = Query(None, description="Defaults to today"),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
    now: datetime = Depends(get_now),
):
    """
    Per-class present/late/excused/absent counts for one day, with the
    number of enrolled students not yet marked.
    """
    try:
        return aggregator.summarize_day(class_id, day or now.date())

    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        logger.error("Daily overview store error: %s", str(e))
        raise HTTPException(status_code=502, detail="Failed to load attendance data")
    except Exception:
        logger.exception("Unexpected error building daily overview")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/attendance/export")
def export_attendance_report(
    request: ReportRequest,
    class_id: Optional[str] = Query(None, description="Export only this class"),
    export_all: bool = Query(True, description="Append the summary sheet"),
    aggregator: ReportAggregator = Depends(get_report_aggregator),
    now: datetime = Depends(get_now),
):
    """
    Download the report as an .xlsx workbook: one sheet per class plus a
    summary sheet (unless export_all is false), or a single sheet when
    class_id is given.
    """
    try:
        report = aggregator.build_report(request.selections, request.period, now)

        if class_id:
            selected = [c for c in report.classes if c.class_id == class_id]
            if not selected:
                raise HTTPException(status_code=404, detail="Class not in report selection")
            tables = [class_table(selected[0])]
            filename = export_filename(report, selected[0])
        else:
            tables = report_tables(report, export_all=export_all)
            filename = export_filename(report)

        content = export_workbook(tables)
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    except HTTPException:
        raise
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        logger.error("Attendance export store error: %s", str(e))
        raise HTTPException(status_code=502, detail="Failed to load attendance data")
    except Exception:
        logger.exception("Unexpected error exporting attendance report")
        raise HTTPException(status_code=500, detail="Internal server error")
