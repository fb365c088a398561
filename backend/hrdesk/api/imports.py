# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, File, Response, UploadFile

from hrdesk.api.deps import PrivilegedDep
from hrdesk.db import SessionDep
from hrdesk.schemas.imports import ClearResult, ImportResult
from hrdesk.services import imports as import_service
from hrdesk.services.export import XLSX_MEDIA_TYPE

imports_router = APIRouter(tags=["imports"])


def _xlsx_download(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@imports_router.post("/employees/import", response_model=ImportResult)
async def import_employees(
    session: SessionDep,
    actor: PrivilegedDep,
    file: UploadFile = File(),
) -> ImportResult:
    """Create employees from an Excel sheet (superadmin or HRD)."""
    content = await file.read()
    return await import_service.import_employees(session, file.content_type, content)


@imports_router.get("/employees/import/template", response_class=Response)
async def employee_import_template(actor: PrivilegedDep) -> Response:
    """Download the employee import template."""
    return _xlsx_download(import_service.employee_template(), import_service.template_filename("employee"))


@imports_router.post("/attendance/import", response_model=ImportResult)
async def import_attendance(
    session: SessionDep,
    actor: PrivilegedDep,
    file: UploadFile = File(),
) -> ImportResult:
    """Load raw attendance rows from an Excel sheet (superadmin or HRD)."""
    content = await file.read()
    return await import_service.import_attendance(session, file.content_type, content)


@imports_router.get("/attendance/import/template", response_class=Response)
async def attendance_import_template(actor: PrivilegedDep) -> Response:
    """Download the attendance import template."""
    return _xlsx_download(import_service.attendance_template(), import_service.template_filename("attendance"))


@imports_router.delete("/attendance/imports", response_model=ClearResult)
async def clear_attendance(session: SessionDep, actor: PrivilegedDep) -> ClearResult:
    """Delete every uploaded attendance row so a new file can be imported."""
    return await import_service.clear_attendance(session)
