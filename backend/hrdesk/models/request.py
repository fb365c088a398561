from __future__ import annotations

import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hrdesk.models.base import IntIdBase, TimestampMixin
from hrdesk.models.enums import RequestStatus


class ApprovableRequest(IntIdBase, TimestampMixin):
    """Columns shared by every request that goes through the approval workflow."""

    employee_id: int = Field(foreign_key="employees.id", ondelete="CASCADE", index=True)
    status: str = Field(
        default=RequestStatus.PENDING.value,
        max_length=20,
        index=True,
        sa_column_kwargs={"server_default": RequestStatus.PENDING.value},
    )
    approved_by: int | None = Field(default=None, foreign_key="users.id")
    approved_at: datetime.datetime | None = Field(
        default=None,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    remarks: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


class CancelRestDay(ApprovableRequest, table=True):
    """Request to work on a scheduled rest day."""

    __tablename__ = "cancel_rest_days"

    rest_day_date: datetime.date = Field(index=True)
    replacement_work_date: datetime.date | None = None
    reason: str


class ChangeOffSchedule(ApprovableRequest, table=True):
    """Request to move a rest day to another date."""

    __tablename__ = "change_off_schedules"

    original_date: datetime.date = Field(index=True)
    requested_date: datetime.date
    reason: str | None = None


class Retro(ApprovableRequest, table=True):
    """Retroactive pay adjustment request."""

    __tablename__ = "retros"

    retro_type: str = Field(max_length=20, index=True)
    adjustment_type: str = Field(max_length=20)
    retro_date: datetime.date = Field(index=True)
    hours_days: Decimal = Field(sa_type=sa.Numeric(10, 2))
    multiplier_rate: Decimal = Field(sa_type=sa.Numeric(10, 2))
    base_rate: Decimal = Field(sa_type=sa.Numeric(10, 2))
    computed_amount: Decimal = Field(default=Decimal("0"), sa_type=sa.Numeric(12, 2))
    original_total_amount: Decimal = Field(default=Decimal("0"), sa_type=sa.Numeric(12, 2))
    requested_total_amount: Decimal = Field(default=Decimal("0"), sa_type=sa.Numeric(12, 2))
    reason: str
    created_by: int | None = Field(default=None, foreign_key="users.id")


class OfficialBusiness(ApprovableRequest, table=True):
    """Out-of-office work assignment."""

    __tablename__ = "official_businesses"

    date: datetime.date
    start_date: datetime.date = Field(index=True)
    end_date: datetime.date
    location: str = Field(max_length=255)
    purpose: str
    with_accommodation: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    total_days: int
