"""Spreadsheet imports for employees and raw attendance.

Both importers share the same shape: check the upload type, read the first
worksheet, verify the header row, then validate each data row on its own.
Rows that fail are reported with their sheet row number and skipped; the
rest are committed together.
"""

from __future__ import annotations

import datetime
import logging
import zipfile
from io import BytesIO
from typing import TYPE_CHECKING, Any

from fastapi import status
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.datetime import from_excel
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.datavalidation import DataValidation
from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy import delete, func, select

from hrdesk.exceptions import AppError, ValidationFailedError
from hrdesk.models.attendance import UploadedAttendance
from hrdesk.models.employee import Employee
from hrdesk.models.enums import PayType
from hrdesk.schemas.employee import CIVIL_STATUSES, GENDERS, EmployeeCreate
from hrdesk.schemas.imports import ClearResult, ImportResult, RowFailure

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

EXCEL_MIME_TYPES = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
)

# Sheet header -> Employee field.
EMPLOYEE_COLUMNS: dict[str, str] = {
    "idno": "idno",
    "bid": "bid",
    "Lname": "last_name",
    "Fname": "first_name",
    "MName": "middle_name",
    "Suffix": "suffix",
    "Gender": "gender",
    "EducationalAttainment": "educational_attainment",
    "Degree": "degree",
    "CivilStatus": "civil_status",
    "Birthdate": "birthdate",
    "ContactNo": "contact_no",
    "Email": "email",
    "PresentAddress": "present_address",
    "PermanentAddress": "permanent_address",
    "EmerContactName": "emergency_contact_name",
    "EmerContactNo": "emergency_contact_no",
    "EmerRelationship": "emergency_relationship",
    "EmpStatus": "emp_status",
    "JobStatus": "job_status",
    "RankFile": "rank_file",
    "Department": "department",
    "Line": "line",
    "Jobtitle": "job_title",
    "HiredDate": "hired_date",
    "EndOfContract": "end_of_contract",
    "pay_type": "pay_type",
    "payrate": "pay_rate",
    "pay_allowance": "pay_allowance",
    "SSSNO": "sss_no",
    "PHILHEALTHNo": "philhealth_no",
    "HDMFNo": "hdmf_no",
    "TaxNo": "tax_no",
    "Taxable": "taxable",
    "CostCenter": "cost_center",
}
EMPLOYEE_HEADERS = list(EMPLOYEE_COLUMNS)
_EMPLOYEE_DATE_FIELDS = ("birthdate", "hired_date", "end_of_contract")

EMPLOYEE_EXAMPLE_ROW: list[Any] = [
    "EMP001", "BID001", "Doe", "John", "Robert", "", "Male",
    "College", "BS Computer Science", "Single", "1990-01-15",
    "1234567890", "john.doe@example.com", "123 Main St", "123 Main St",
    "Jane Doe", "0987654321", "Spouse",
    "Regular", "Active", "Staff", "IT", "Development",
    "Developer", "2022-01-01", "", "Monthly",
    50000, 5000, "1234567890", "2345678901",
    "3456789012", "4567890123", True, "IT001",
]  # fmt: skip

ATTENDANCE_HEADERS = ["employee_no", "date", "day", "in1", "out1", "in2", "out2", "nextday", "hours_work"]
ATTENDANCE_EXAMPLE_ROW: list[Any] = [
    "EMP001", "2025-01-06", "Monday", "08:00:00", "12:00:00", "13:00:00", "17:00:00", False, 8,
]  # fmt: skip

TEMPLATE_HEADER_FONT = Font(bold=True)
TEMPLATE_HEADER_FILL = PatternFill(start_color="E2E8F0", end_color="E2E8F0", fill_type="solid")

_TRUE_STRINGS = {"1", "true", "yes", "y"}
_FALSE_STRINGS = {"0", "false", "no", "n", ""}


# ---------------------------------------------------------------------------
# Cell coercion
# ---------------------------------------------------------------------------


def cell_text(value: Any) -> str | None:
    """Cell value as stripped text; integral floats lose their ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def cell_date(value: Any) -> datetime.date | str | None:
    """Dates arrive as datetimes, Excel serial numbers or text. Unparseable text is passed on for validation."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        converted = from_excel(value)
        return converted.date() if isinstance(converted, datetime.datetime) else converted
    return str(value).strip()


def cell_time(value: Any) -> datetime.time | str | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, float) and 0 <= value < 1:
        converted = from_excel(value)
        return converted if isinstance(converted, datetime.time) else str(value)
    return str(value).strip()


def cell_bool(value: Any) -> bool | str:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return text


def row_errors(exc: ValidationError) -> list[str]:
    return [f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()]


# ---------------------------------------------------------------------------
# Reading uploads
# ---------------------------------------------------------------------------


def check_content_type(content_type: str | None) -> None:
    if content_type not in EXCEL_MIME_TYPES:
        msg = "Invalid file type. Please upload an Excel file."
        raise ValidationFailedError(msg)


def read_sheet(content: bytes, expected_headers: Sequence[str]) -> tuple[list[str], list[tuple[Any, ...]]]:
    """Return the trimmed header row and the data rows of the first worksheet."""
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        msg = "The uploaded file could not be read as an Excel workbook."
        raise ValidationFailedError(msg) from exc

    try:
        rows = list(workbook.worksheets[0].iter_rows(values_only=True))
    finally:
        workbook.close()

    if len(rows) <= 1:
        msg = "The uploaded file is empty or contains only headers."
        raise ValidationFailedError(msg)

    headers = [cell_text(value) or "" for value in rows[0]]
    missing = [header for header in expected_headers if header not in headers]
    if missing:
        raise ValidationFailedError(f"Invalid file format. Missing columns: {', '.join(missing)}")
    return headers, rows[1:]


def _row_dict(headers: Sequence[str], row: Sequence[Any]) -> dict[str, Any]:
    padded = list(row[: len(headers)]) + [None] * (len(headers) - len(row))
    return dict(zip(headers, padded, strict=True))


def _is_blank(row: Sequence[Any]) -> bool:
    return all(value is None or (isinstance(value, str) and not value.strip()) for value in row)


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


def employee_payload(data: dict[str, Any]) -> dict[str, Any]:
    """Map a sheet row onto ``EmployeeCreate`` field names and coerce cell types."""
    payload: dict[str, Any] = {}
    for header, field in EMPLOYEE_COLUMNS.items():
        value = data.get(header)
        if field in _EMPLOYEE_DATE_FIELDS:
            payload[field] = cell_date(value)
        elif field == "taxable":
            payload[field] = True if value is None or value == "" else cell_bool(value)
        elif field in ("pay_rate", "pay_allowance"):
            payload[field] = None if value is None or value == "" else value
        else:
            payload[field] = cell_text(value)
    if not payload["job_status"]:
        payload["job_status"] = "Active"
    if payload["pay_type"] is None:
        payload["pay_type"] = PayType.MONTHLY.value
    return payload


async def import_employees(session: AsyncSession, content_type: str | None, content: bytes) -> ImportResult:
    """Create an employee per valid row. Rows with an idno already taken fail."""
    check_content_type(content_type)
    headers, rows = read_sheet(content, EMPLOYEE_HEADERS)

    existing = await session.execute(select(Employee.idno))
    taken = set(existing.scalars().all())

    success = 0
    failures: list[RowFailure] = []

    try:
        for index, row in enumerate(rows):
            if _is_blank(row):
                continue
            sheet_row = index + 2
            try:
                employee = EmployeeCreate.model_validate(employee_payload(_row_dict(headers, row)))
            except ValidationError as exc:
                failures.append(RowFailure(row=sheet_row, errors=row_errors(exc)))
                continue
            if employee.idno in taken:
                failures.append(RowFailure(row=sheet_row, errors=["The idno has already been taken."]))
                continue

            session.add(Employee(**employee.model_dump()))
            taken.add(employee.idno)
            success += 1

        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.exception("Employee import failed after %d row(s)", success)
        raise AppError("Error processing file") from exc

    logger.info("Imported %d employee(s), %d row(s) failed", success, len(failures))
    return ImportResult(
        message=f"{success} employees imported successfully",
        failures=failures,
        total_processed=len(rows),
        successful=success,
        failed=len(failures),
    )


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


class AttendanceRow(BaseModel):
    """One validated attendance row."""

    employee_no: str = Field(min_length=1, max_length=255)
    date: datetime.date
    day: str = Field(min_length=1, max_length=20)
    in1: datetime.time | None = None
    out1: datetime.time | None = None
    in2: datetime.time | None = None
    out2: datetime.time | None = None
    nextday: bool = False
    hours_work: float | None = Field(default=None, ge=0)

    @field_validator("hours_work", mode="before")
    @classmethod
    def _blank_hours(cls, value: Any) -> Any:
        return None if value == "" else value


def attendance_payload(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "employee_no": cell_text(data.get("employee_no")),
        "date": cell_date(data.get("date")),
        "day": cell_text(data.get("day")),
        "in1": cell_time(data.get("in1")),
        "out1": cell_time(data.get("out1")),
        "in2": cell_time(data.get("in2")),
        "out2": cell_time(data.get("out2")),
        "nextday": cell_bool(data.get("nextday")),
        "hours_work": data.get("hours_work"),
    }


async def attendance_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(UploadedAttendance))
    return result.scalar_one()


async def import_attendance(session: AsyncSession, content_type: str | None, content: bytes) -> ImportResult:
    """Load raw attendance rows. Refused while earlier uploads are still present."""
    check_content_type(content_type)
    if await attendance_count(session) > 0:
        raise AppError(
            "Data already exists in the system. Please clear existing data before importing.",
            status_code=status.HTTP_409_CONFLICT,
        )
    headers, rows = read_sheet(content, ATTENDANCE_HEADERS)

    success = 0
    failures: list[RowFailure] = []

    try:
        for index, row in enumerate(rows):
            if _is_blank(row):
                continue
            try:
                attendance = AttendanceRow.model_validate(attendance_payload(_row_dict(headers, row)))
            except ValidationError as exc:
                failures.append(RowFailure(row=index + 2, errors=row_errors(exc)))
                continue
            session.add(UploadedAttendance(**attendance.model_dump()))
            success += 1

        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.exception("Attendance import failed after %d row(s)", success)
        raise AppError("Error processing file") from exc

    message = f"Successfully imported {success} attendance records!"
    if failures:
        message += f" ({success} successful, {len(failures)} failed)"
    return ImportResult(
        message=message,
        failures=failures,
        total_processed=len(rows),
        successful=success,
        failed=len(failures),
    )


async def clear_attendance(session: AsyncSession) -> ClearResult:
    result = await session.execute(delete(UploadedAttendance))
    await session.commit()
    deleted = result.rowcount or 0  # ty: ignore[unresolved-attribute]
    logger.info("Cleared %d uploaded attendance row(s)", deleted)
    return ClearResult(message=f"Deleted {deleted} uploaded attendance records", deleted=deleted)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def _dropdown(sheet: Any, headers: Sequence[str], header: str, options: Sequence[str]) -> None:
    letter = get_column_letter(headers.index(header) + 1)
    validation = DataValidation(type="list", formula1=f'"{",".join(options)}"', allow_blank=True)
    sheet.add_data_validation(validation)
    validation.add(f"{letter}2:{letter}1000")


def build_template(headers: Sequence[str], example_row: Sequence[Any]) -> Workbook:
    """Workbook with a styled header row and one example row."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Template"
    sheet.append(list(headers))
    sheet.append(list(example_row))
    for cell in sheet[1]:
        cell.font = TEMPLATE_HEADER_FONT
        cell.fill = TEMPLATE_HEADER_FILL
    for index, header in enumerate(headers, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = max(len(header), 12) + 2
    return workbook


def workbook_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def employee_template() -> bytes:
    workbook = build_template(EMPLOYEE_HEADERS, EMPLOYEE_EXAMPLE_ROW)
    sheet = workbook.active
    _dropdown(sheet, EMPLOYEE_HEADERS, "Gender", GENDERS)
    _dropdown(sheet, EMPLOYEE_HEADERS, "CivilStatus", CIVIL_STATUSES)
    _dropdown(sheet, EMPLOYEE_HEADERS, "pay_type", [pay_type.value for pay_type in PayType])
    _dropdown(sheet, EMPLOYEE_HEADERS, "Taxable", ["TRUE", "FALSE"])

    notes = workbook.create_sheet("Instructions")
    for line in (
        "Employee Import Template Instructions",
        "1. idno, Lname and Fname are required.",
        "2. Dates should be in YYYY-MM-DD format (e.g., 2022-01-15).",
        '3. Gender must be either "Male" or "Female".',
        '4. CivilStatus must be one of: "Single", "Married", "Divorced", or "Widowed".',
        '5. pay_type must be one of: "Monthly", "Weekly", or "Daily".',
        "6. Taxable must be either TRUE or FALSE.",
        "7. Numeric fields like payrate should not contain currency symbols or commas.",
    ):
        notes.append([line])
    return workbook_bytes(workbook)


def attendance_template() -> bytes:
    return workbook_bytes(build_template(ATTENDANCE_HEADERS, ATTENDANCE_EXAMPLE_ROW))


def template_filename(name: str, today: datetime.date | None = None) -> str:
    return f"{name}_import_template_{(today or datetime.date.today()).isoformat()}.xlsx"
