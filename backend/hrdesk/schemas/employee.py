# ruff: noqa: TC003
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hrdesk.models.enums import PayType

GENDERS = ("Male", "Female")
CIVIL_STATUSES = ("Single", "Married", "Divorced", "Widowed")

_PAY_TYPE_ALIASES: dict[str, PayType] = {
    "monthly": PayType.MONTHLY,
    "month": PayType.MONTHLY,
    "mo": PayType.MONTHLY,
    "weekly": PayType.WEEKLY,
    "week": PayType.WEEKLY,
    "wk": PayType.WEEKLY,
    "daily": PayType.DAILY,
    "day": PayType.DAILY,
}


def normalize_pay_type(value: object) -> str:
    """Map free-form pay frequency text onto a PayType value, defaulting to Monthly."""
    if value is None:
        return PayType.MONTHLY.value
    return _PAY_TYPE_ALIASES.get(str(value).strip().lower(), PayType.MONTHLY).value


class EmployeeCreate(BaseModel):
    """Request body for creating an employee record."""

    idno: str = Field(min_length=1, max_length=255)
    bid: str | None = Field(default=None, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    first_name: str = Field(min_length=1, max_length=255)
    middle_name: str | None = Field(default=None, max_length=255)
    suffix: str | None = Field(default=None, max_length=50)
    gender: str | None = None
    educational_attainment: str | None = Field(default=None, max_length=255)
    degree: str | None = Field(default=None, max_length=255)
    civil_status: str | None = None
    birthdate: date | None = None
    contact_no: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    present_address: str | None = None
    permanent_address: str | None = None
    emergency_contact_name: str | None = Field(default=None, max_length=255)
    emergency_contact_no: str | None = Field(default=None, max_length=20)
    emergency_relationship: str | None = Field(default=None, max_length=255)
    emp_status: str | None = Field(default=None, max_length=255)
    job_status: str = Field(default="Active", max_length=255)
    rank_file: str | None = Field(default=None, max_length=255)
    department: str | None = Field(default=None, max_length=255)
    line: str | None = Field(default=None, max_length=255)
    job_title: str | None = Field(default=None, max_length=255)
    hired_date: date | None = None
    end_of_contract: date | None = None
    pay_type: str = PayType.MONTHLY.value
    pay_rate: Decimal | None = Field(default=None, ge=0)
    pay_allowance: Decimal | None = Field(default=None, ge=0)
    sss_no: str | None = Field(default=None, max_length=20)
    philhealth_no: str | None = Field(default=None, max_length=20)
    hdmf_no: str | None = Field(default=None, max_length=20)
    tax_no: str | None = Field(default=None, max_length=20)
    taxable: bool = True
    cost_center: str | None = Field(default=None, max_length=255)

    @field_validator("gender")
    @classmethod
    def _check_gender(cls, value: str | None) -> str | None:
        if value is not None and value not in GENDERS:
            msg = f"gender must be one of: {', '.join(GENDERS)}"
            raise ValueError(msg)
        return value

    @field_validator("civil_status")
    @classmethod
    def _check_civil_status(cls, value: str | None) -> str | None:
        if value is not None and value not in CIVIL_STATUSES:
            msg = f"civil_status must be one of: {', '.join(CIVIL_STATUSES)}"
            raise ValueError(msg)
        return value

    @field_validator("pay_type", mode="before")
    @classmethod
    def _normalize_pay_type(cls, value: object) -> str:
        return normalize_pay_type(value)


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    idno: str
    last_name: str
    first_name: str
    middle_name: str | None
    display_name: str
    department: str | None
    line: str | None
    job_title: str | None
    job_status: str
    pay_type: str | None
    hired_date: date | None
    created_at: datetime


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
