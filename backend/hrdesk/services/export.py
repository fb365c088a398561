from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime
from typing import TYPE_CHECKING

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from hrdesk.config import get_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from openpyxl.worksheet.worksheet import Worksheet

    from hrdesk.services.request_kinds import ExportRow, RequestKind

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")
MAX_COLUMN_WIDTH = 50


def export_filename(kind: RequestKind, now: datetime | None = None) -> str:
    """e.g. ``Cancel_Rest_Day_2025-03-01_14-05-09.xlsx``."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    return f"{kind.title.replace(' ', '_')}_{stamp}.xlsx"


def write_header(sheet: Worksheet, headers: Sequence[str]) -> None:
    sheet.append(list(headers))
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT


def autosize_columns(sheet: Worksheet) -> None:
    """Size every column to its longest value, capped at MAX_COLUMN_WIDTH."""
    for index, column in enumerate(sheet.iter_cols(), start=1):
        longest = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        sheet.column_dimensions[get_column_letter(index)].width = min(longest + 2, MAX_COLUMN_WIDTH)


def build_workbook(kind: RequestKind, rows: Sequence[ExportRow]) -> Workbook:
    columns = kind.export_columns()

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = kind.title[:31]

    write_header(sheet, [header for header, _ in columns])
    for row in rows:
        sheet.append([value(row) for _, value in columns])

    autosize_columns(sheet)
    sheet.freeze_panes = "A2"
    return workbook


def write_export(kind: RequestKind, rows: Sequence[ExportRow]) -> str:
    """Save the export to a temporary ``.xlsx`` file and return its path.

    The caller owns the file and is expected to remove it once sent.
    """
    workbook = build_workbook(kind, rows)
    fd, path = tempfile.mkstemp(suffix=".xlsx", dir=get_settings().export_temp_dir)
    os.close(fd)
    try:
        workbook.save(path)
    except Exception:
        os.remove(path)
        raise
    logger.info("Exported %d %s row(s) to %s", len(rows), kind.label, path)
    return path
