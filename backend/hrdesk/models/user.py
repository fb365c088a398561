from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from hrdesk.models.base import IntIdBase, TimestampMixin


class User(IntIdBase, TimestampMixin, table=True):
    """An account that can sign in and act on requests."""

    __tablename__ = "users"

    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True)
    employee_idno: str | None = Field(default=None, max_length=255, index=True)
    is_employee: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})


class Role(IntIdBase, TimestampMixin, table=True):
    """A named role, e.g. superadmin or hrd."""

    __tablename__ = "roles"

    name: str = Field(max_length=255)
    slug: str = Field(max_length=255, unique=True)


class RoleUser(IntIdBase, table=True):
    """Join table between users and roles."""

    __tablename__ = "role_user"
    __table_args__ = (sa.UniqueConstraint("role_id", "user_id", name="uq_role_user"),)

    role_id: int = Field(
        sa_column=sa.Column(sa.Integer, sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    user_id: int = Field(
        sa_column=sa.Column(sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    )
