# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DepartmentManagerCreate(BaseModel):
    """Request body for assigning a manager to a department."""

    department: str = Field(min_length=1, max_length=255)
    manager_id: int


class DepartmentManagerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    department: str
    manager_id: int
    created_at: datetime


class DepartmentManagerListResponse(BaseModel):
    items: list[DepartmentManagerResponse]
    total: int
