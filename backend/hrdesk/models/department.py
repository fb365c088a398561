from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from hrdesk.models.base import IntIdBase, TimestampMixin


class Department(IntIdBase, TimestampMixin, table=True):
    """An organizational department."""

    __tablename__ = "departments"

    name: str = Field(max_length=255)
    code: str = Field(max_length=50, unique=True)
    description: str | None = None
    is_active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})


class DepartmentManager(IntIdBase, TimestampMixin, table=True):
    """Maps a manager user to a department they may act on.

    Departments are referenced by name, matching ``Employee.department``.
    """

    __tablename__ = "department_managers"
    __table_args__ = (sa.UniqueConstraint("department", "manager_id", name="uq_department_manager"),)

    department: str = Field(max_length=255, index=True)
    manager_id: int = Field(
        sa_column=sa.Column(sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    )
