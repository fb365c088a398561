# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Query, status

from hrdesk.api.deps import ActorDep, PrivilegedDep
from hrdesk.db import SessionDep
from hrdesk.schemas.employee import EmployeeCreate, EmployeeListResponse, EmployeeResponse
from hrdesk.services import employee as employee_service

employees_router = APIRouter(prefix="/employees", tags=["employees"])


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    session: SessionDep,
    actor: ActorDep,
    department: str | None = Query(default=None),
    include_inactive: bool = Query(default=False),
) -> EmployeeListResponse:
    """List employees for request forms."""
    return await employee_service.list_employees(session, department, include_inactive)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    session: SessionDep,
    actor: ActorDep,
) -> EmployeeResponse:
    """Get a single employee."""
    return await employee_service.get_employee(session, employee_id)


@employees_router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    session: SessionDep,
    actor: PrivilegedDep,
) -> EmployeeResponse:
    """Create an employee record (superadmin or HRD)."""
    return await employee_service.create_employee(session, payload)
