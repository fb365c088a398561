# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from hrdesk.api.deps import ActorDep, PrivilegedDep
from hrdesk.db import SessionDep
from hrdesk.schemas.department import (
    DepartmentManagerCreate,
    DepartmentManagerListResponse,
    DepartmentManagerResponse,
)
from hrdesk.services import department as department_service

department_managers_router = APIRouter(prefix="/department-managers", tags=["department-managers"])


@department_managers_router.get("", response_model=DepartmentManagerListResponse)
async def list_department_managers(
    session: SessionDep,
    actor: ActorDep,
    department: str | None = Query(default=None),
) -> DepartmentManagerListResponse:
    """List manager-to-department assignments."""
    return await department_service.list_department_managers(session, department)


@department_managers_router.post(
    "",
    response_model=DepartmentManagerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_department_manager(
    payload: DepartmentManagerCreate,
    session: SessionDep,
    actor: PrivilegedDep,
) -> DepartmentManagerResponse:
    """Assign a manager to a department (superadmin or HRD)."""
    return await department_service.assign_department_manager(session, payload)


@department_managers_router.delete(
    "/{mapping_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def remove_department_manager(
    mapping_id: int,
    session: SessionDep,
    actor: PrivilegedDep,
) -> None:
    """Remove a manager assignment (superadmin or HRD)."""
    await department_service.remove_department_manager(session, mapping_id)
