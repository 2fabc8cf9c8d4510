from __future__ import annotations
from io import BytesIO
from datetime import datetime

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.styles import Alignment, Font, PatternFill

from app.utils.activity import ActivityCategory
from app.utils.timetable_grid import TimetableGrid

TEACHING_FILL = PatternFill(start_color="DCE6F1", end_color="DCE6F1", fill_type="solid")
ENROLLED_FILL = PatternFill(start_color="EBF1DE", end_color="EBF1DE", fill_type="solid")


def _cell_text(activity) -> str:
    lines = [activity.code, activity.name]
    if activity.room_number:
        lines.append(f"Room {activity.room_number}")
    return "\n".join(x for x in lines if x)


def timetable_to_xlsx_bytes(grid: TimetableGrid, sheet_name: str = "Timetable") -> bytes:
    """
    One row per slot anchor, one column per day; header row = day names.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    headers = ["Time"] + [d.value for d in grid.days]
    ws.append(headers)

    header_font = Font(bold=True)
    for col_idx in range(1, len(headers) + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")

    wrap = Alignment(wrap_text=True, vertical="top")
    for row_idx, (slot, activities) in enumerate(grid.rows(), start=2):
        ws.cell(row=row_idx, column=1, value=str(slot))
        for col_idx, activity in enumerate(activities, start=2):
            if activity is None:
                continue
            cell = ws.cell(row=row_idx, column=col_idx, value=_cell_text(activity))
            cell.alignment = wrap
            cell.fill = TEACHING_FILL if activity.category == ActivityCategory.TEACHING else ENROLLED_FILL

    # autosize columns
    for col_idx, h in enumerate(headers, start=1):
        max_len = len(str(h))
        for row_idx in range(2, ws.max_row + 1):
            v = ws.cell(row=row_idx, column=col_idx).value
            if v is None:
                continue
            max_len = max([max_len] + [len(line) for line in str(v).splitlines()])
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_len + 2, 40)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def make_filename(prefix: str = "timetable") -> str:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{ts}.xlsx"
