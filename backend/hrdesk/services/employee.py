from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import select
from sqlmodel import col

from hrdesk.exceptions import AppError, NotFoundError
from hrdesk.models.employee import Employee
from hrdesk.schemas.employee import EmployeeListResponse, EmployeeResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrdesk.schemas.employee import EmployeeCreate

ACTIVE_JOB_STATUS = "Active"


async def list_employees(
    session: AsyncSession,
    department: str | None = None,
    include_inactive: bool = False,
) -> EmployeeListResponse:
    """Employees for request forms, ordered by name. Active ones only unless asked."""
    query = select(Employee)
    if not include_inactive:
        query = query.where(col(Employee.job_status) == ACTIVE_JOB_STATUS)
    if department is not None:
        query = query.where(col(Employee.department) == department)
    query = query.order_by(col(Employee.last_name), col(Employee.first_name))

    result = await session.execute(query)
    items = [EmployeeResponse.model_validate(employee) for employee in result.scalars().all()]
    return EmployeeListResponse(items=items, total=len(items))


async def get_employee(session: AsyncSession, employee_id: int) -> EmployeeResponse:
    employee = await session.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return EmployeeResponse.model_validate(employee)


async def create_employee(session: AsyncSession, payload: EmployeeCreate) -> EmployeeResponse:
    """Create an employee. Raises 409 if the idno is already taken."""
    existing = await session.execute(select(Employee.id).where(col(Employee.idno) == payload.idno))
    if existing.scalar_one_or_none() is not None:
        raise AppError(f"Employee with idno {payload.idno} already exists", status_code=status.HTTP_409_CONFLICT)

    employee = Employee(**payload.model_dump())
    session.add(employee)
    await session.commit()
    await session.refresh(employee)
    return EmployeeResponse.model_validate(employee)
