from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from hrdesk.models.base import IntIdBase, TimestampMixin


class UploadedAttendance(IntIdBase, TimestampMixin, table=True):
    """Raw attendance row imported from a spreadsheet, before processing."""

    __tablename__ = "employee_upload_attendances"

    employee_no: str = Field(max_length=255, index=True)
    date: datetime.date = Field(index=True)
    day: str | None = Field(default=None, max_length=20)
    in1: datetime.time | None = None
    out1: datetime.time | None = None
    in2: datetime.time | None = None
    out2: datetime.time | None = None
    nextday: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    hours_work: float | None = None
