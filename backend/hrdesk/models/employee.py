from __future__ import annotations

from datetime import date
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from hrdesk.models.base import IntIdBase, TimestampMixin


class Employee(IntIdBase, TimestampMixin, table=True):
    """Employee master record."""

    __tablename__ = "employees"

    idno: str = Field(max_length=255, unique=True)
    bid: str | None = Field(default=None, max_length=255)
    last_name: str = Field(max_length=255)
    first_name: str = Field(max_length=255)
    middle_name: str | None = Field(default=None, max_length=255)
    suffix: str | None = Field(default=None, max_length=50)
    gender: str | None = Field(default=None, max_length=20)
    educational_attainment: str | None = Field(default=None, max_length=255)
    degree: str | None = Field(default=None, max_length=255)
    civil_status: str | None = Field(default=None, max_length=50)
    birthdate: date | None = None
    contact_no: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    present_address: str | None = None
    permanent_address: str | None = None
    emergency_contact_name: str | None = Field(default=None, max_length=255)
    emergency_contact_no: str | None = Field(default=None, max_length=20)
    emergency_relationship: str | None = Field(default=None, max_length=255)
    emp_status: str | None = Field(default=None, max_length=255)
    job_status: str = Field(default="Active", max_length=255, index=True)
    rank_file: str | None = Field(default=None, max_length=255)
    department: str | None = Field(default=None, max_length=255, index=True)
    line: str | None = Field(default=None, max_length=255)
    job_title: str | None = Field(default=None, max_length=255)
    hired_date: date | None = None
    end_of_contract: date | None = None
    pay_type: str | None = Field(default=None, max_length=20)
    pay_rate: Decimal | None = Field(default=None, sa_type=sa.Numeric(10, 2))
    pay_allowance: Decimal | None = Field(default=None, sa_type=sa.Numeric(10, 2))
    sss_no: str | None = Field(default=None, max_length=20)
    philhealth_no: str | None = Field(default=None, max_length=20)
    hdmf_no: str | None = Field(default=None, max_length=20)
    tax_no: str | None = Field(default=None, max_length=20)
    taxable: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    cost_center: str | None = Field(default=None, max_length=255)

    @property
    def display_name(self) -> str:
        """``Last, First Middle`` with blanks dropped, or a placeholder."""
        name = (self.last_name or "").strip()
        if self.first_name:
            name = f"{name}, {self.first_name}" if name else self.first_name
        if self.middle_name:
            name = f"{name} {self.middle_name}"
        return name or f"Employee #{self.id}"
