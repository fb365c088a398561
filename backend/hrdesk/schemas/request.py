# ruff: noqa: TC003
from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Generic, Self, TypeVar

from pydantic import BaseModel, Field, model_validator

from hrdesk.models.enums import AdjustmentType, RequestStatus, RetroType, StatusAction

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class RequestCreateBase(BaseModel):
    """Fields shared by every create payload: the employees to file for."""

    employee_ids: list[int] = Field(min_length=1)


class CancelRestDayCreate(RequestCreateBase):
    """Request body for filing Cancel Rest Day requests."""

    rest_day_date: datetime.date
    replacement_work_date: datetime.date | None = None
    reason: str = Field(min_length=1, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.replacement_work_date is not None and self.replacement_work_date == self.rest_day_date:
            msg = "replacement_work_date must be different from rest_day_date"
            raise ValueError(msg)
        return self


class ChangeOffScheduleCreate(RequestCreateBase):
    """Request body for filing Change Off Schedule requests."""

    original_date: datetime.date
    requested_date: datetime.date
    reason: str = Field(min_length=1, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.requested_date == self.original_date:
            msg = "requested_date must be different from original_date"
            raise ValueError(msg)
        return self


class RetroCreate(RequestCreateBase):
    """Request body for filing retroactive pay adjustments."""

    retro_type: RetroType
    adjustment_type: AdjustmentType
    retro_date: datetime.date
    hours_days: Decimal = Field(ge=Decimal("0.01"))
    multiplier_rate: Decimal = Field(ge=Decimal("0.1"), le=Decimal("10"))
    base_rate: Decimal = Field(ge=Decimal("0.01"))
    reason: str = Field(min_length=1, max_length=1000)


class OfficialBusinessCreate(RequestCreateBase):
    """Request body for filing Official Business requests."""

    date: datetime.date
    start_date: datetime.date
    end_date: datetime.date
    location: str = Field(min_length=1, max_length=255)
    purpose: str = Field(min_length=1, max_length=500)
    with_accommodation: bool = False

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must be on or after start_date"
            raise ValueError(msg)
        return self


class StatusUpdatePayload(BaseModel):
    """Request body for a single status change."""

    status: StatusAction
    remarks: str | None = Field(default=None, max_length=500)


class BulkStatusPayload(BaseModel):
    """Request body for changing the status of many requests at once."""

    ids: list[int] = Field(min_length=1)
    status: StatusAction
    remarks: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponseBase(BaseModel):
    """Columns every approvable request exposes."""

    id: int
    employee_id: int
    employee_name: str | None = None
    department: str | None = None
    status: RequestStatus
    approved_by: int | None
    approved_at: datetime.datetime | None
    remarks: str | None
    created_at: datetime.datetime


class CancelRestDayResponse(RequestResponseBase):
    rest_day_date: datetime.date
    replacement_work_date: datetime.date | None
    reason: str


class ChangeOffScheduleResponse(RequestResponseBase):
    original_date: datetime.date
    requested_date: datetime.date
    reason: str | None


class RetroResponse(RequestResponseBase):
    retro_type: str
    adjustment_type: str
    retro_date: datetime.date
    hours_days: Decimal
    multiplier_rate: Decimal
    base_rate: Decimal
    computed_amount: Decimal
    original_total_amount: Decimal
    requested_total_amount: Decimal
    reason: str
    created_by: int | None


class OfficialBusinessResponse(RequestResponseBase):
    date: datetime.date
    start_date: datetime.date
    end_date: datetime.date
    location: str
    purpose: str
    with_accommodation: bool
    total_days: int


ResponseT = TypeVar("ResponseT", bound=RequestResponseBase)


class RequestListResponse(BaseModel, Generic[ResponseT]):
    """Paginated list of requests of one kind."""

    items: list[ResponseT]
    total: int


class CreateResult(BaseModel, Generic[ResponseT]):
    """Outcome of filing requests for several employees in one batch."""

    created: int
    skipped: int
    message: str
    errors: list[str] = Field(default_factory=list)
    items: list[ResponseT] = Field(default_factory=list)


class BulkFailure(BaseModel):
    id: int
    reason: str


class BulkResult(BaseModel):
    """Outcome of a bulk status change."""

    updated: int
    failed: int
    message: str
    errors: list[BulkFailure] = Field(default_factory=list)


class RequestFilters(BaseModel):
    """Filters shared by list and export. All given filters must match."""

    status: RequestStatus | None = None
    search: str | None = Field(default=None, max_length=255)
    date_from: datetime.date | None = None
    date_to: datetime.date | None = None


class RequestListParams(RequestFilters):
    """List filters plus pagination."""

    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=50, ge=1, le=100)
