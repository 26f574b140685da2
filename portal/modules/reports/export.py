import re
from io import BytesIO
from typing import Optional, Sequence

from openpyxl import Workbook

from portal.schemas.reports import AttendanceReport, ClassReport, Table

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Excel sheet titles: at most 31 chars, none of []:*?/\
_INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")
MAX_TITLE_LENGTH = 31


def sheet_title(name: str, taken: set) -> str:
    base = _INVALID_TITLE_CHARS.sub("_", name).strip() or "Sheet"
    base = base[:MAX_TITLE_LENGTH]
    title = base
    n = 2
    while title.lower() in taken:
        suffix = f" ({n})"
        title = base[:MAX_TITLE_LENGTH - len(suffix)] + suffix
        n += 1
    taken.add(title.lower())
    return title


def export_workbook(tables: Sequence[Table]) -> bytes:
    """Write each table to its own worksheet and return the .xlsx bytes."""
    wb = Workbook()
    # drop the default sheet, every table gets its own
    wb.remove(wb.active)

    taken = set()
    for table in tables:
        sheet = wb.create_sheet(title=sheet_title(table.name, taken))
        for row in table.rows:
            sheet.append(row)

    if not wb.worksheets:
        wb.create_sheet(title="Attendance")

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _filename_part(value: str) -> str:
    return re.sub(r"[^\w\-]+", "_", value).strip("_")


def export_filename(report: AttendanceReport, class_report: Optional[ClassReport] = None) -> str:
    if class_report is None:
        return f"All_Classes_{report.period}_attendance.xlsx"
    parts = [class_report.level_name or "", class_report.display_name, report.period, "attendance"]
    return "_".join(_filename_part(p) for p in parts if p) + ".xlsx"
