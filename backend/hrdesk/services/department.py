from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import select
from sqlmodel import col

from hrdesk.exceptions import AppError, NotFoundError
from hrdesk.models.department import DepartmentManager
from hrdesk.models.user import User
from hrdesk.schemas.department import DepartmentManagerListResponse, DepartmentManagerResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrdesk.schemas.department import DepartmentManagerCreate


async def list_department_managers(
    session: AsyncSession,
    department: str | None = None,
) -> DepartmentManagerListResponse:
    query = select(DepartmentManager).order_by(col(DepartmentManager.department), col(DepartmentManager.id))
    if department is not None:
        query = query.where(col(DepartmentManager.department) == department)
    result = await session.execute(query)
    items = [DepartmentManagerResponse.model_validate(row) for row in result.scalars().all()]
    return DepartmentManagerListResponse(items=items, total=len(items))


async def assign_department_manager(
    session: AsyncSession,
    payload: DepartmentManagerCreate,
) -> DepartmentManagerResponse:
    """Let a user act as manager for a department. Raises 404/409."""
    if await session.get(User, payload.manager_id) is None:
        raise NotFoundError("User not found")

    existing = await session.execute(
        select(DepartmentManager.id).where(
            col(DepartmentManager.department) == payload.department,
            col(DepartmentManager.manager_id) == payload.manager_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise AppError(
            f"User {payload.manager_id} already manages {payload.department}",
            status_code=status.HTTP_409_CONFLICT,
        )

    mapping = DepartmentManager(department=payload.department, manager_id=payload.manager_id)
    session.add(mapping)
    await session.commit()
    await session.refresh(mapping)
    return DepartmentManagerResponse.model_validate(mapping)


async def remove_department_manager(session: AsyncSession, mapping_id: int) -> None:
    mapping = await session.get(DepartmentManager, mapping_id)
    if mapping is None:
        raise NotFoundError("Department manager assignment not found")
    await session.delete(mapping)
    await session.commit()
