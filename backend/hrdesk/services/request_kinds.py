"""Per-type behavior plugged into the shared approval workflow.

A ``RequestKind`` knows its table, payload and response schemas, how to detect
duplicates, how to build a row from a payload and how to lay out an export.
Everything else (authorization, status transitions, batching) lives in
``hrdesk.services.approval``.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, ClassVar

from sqlmodel import col

from hrdesk.exceptions import ValidationFailedError
from hrdesk.models.enums import ADJUSTMENT_TYPE_LABELS, RETRO_TYPE_LABELS, RequestStatus
from hrdesk.models.request import ApprovableRequest, CancelRestDay, ChangeOffSchedule, OfficialBusiness, Retro
from hrdesk.schemas.request import (
    CancelRestDayCreate,
    CancelRestDayResponse,
    ChangeOffScheduleCreate,
    ChangeOffScheduleResponse,
    OfficialBusinessCreate,
    OfficialBusinessResponse,
    RequestCreateBase,
    RequestResponseBase,
    RetroCreate,
    RetroResponse,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement

    from hrdesk.models.employee import Employee
    from hrdesk.schemas.auth import Capabilities

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ExportRow:
    """One request with the related records an export column may read."""

    record: Any
    employee: Employee | None
    approver_name: str | None


def format_date(value: datetime.date | None) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def format_timestamp(value: datetime.datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def employee_name(employee: Employee | None) -> str:
    """``Last, First`` for exports."""
    if employee is None:
        return "Unknown"
    return f"{employee.last_name}, {employee.first_name}"


def first_last(employee: Employee) -> str:
    return f"{employee.first_name or ''} {employee.last_name or ''}".strip()


def _common_head() -> list[tuple[str, Callable[[ExportRow], object]]]:
    return [
        ("ID", lambda r: r.record.id),
        ("Employee ID", lambda r: r.employee.idno if r.employee else ""),
        ("Employee Name", lambda r: employee_name(r.employee)),
        ("Department", lambda r: (r.employee.department if r.employee else None) or ""),
    ]


def _common_tail() -> list[tuple[str, Callable[[ExportRow], object]]]:
    return [
        ("Status", lambda r: str(r.record.status).capitalize()),
        ("Approved By", lambda r: r.approver_name or ""),
        ("Approved Date", lambda r: format_timestamp(r.record.approved_at)),
        ("Remarks", lambda r: r.record.remarks or ""),
        ("Created Date", lambda r: format_timestamp(r.record.created_at)),
    ]


class RequestKind:
    """Base strategy. Subclasses fill in the class attributes and hooks."""

    key: ClassVar[str]
    label: ClassVar[str]
    title: ClassVar[str]
    prefix: ClassVar[str]
    model: ClassVar[type[ApprovableRequest]]
    create_schema: ClassVar[type[RequestCreateBase]]
    response_schema: ClassVar[type[RequestResponseBase]]
    date_column: ClassVar[str]
    search_columns: ClassVar[tuple[str, ...]] = ()

    def validate(self, payload: Any, actor: Capabilities) -> None:
        """Business rules that depend on the actor. Raise ``ValidationFailedError``."""

    def duplicate_criteria(self, payload: Any, employee_id: int) -> list[ColumnElement[bool]] | None:
        """WHERE clauses matching an existing duplicate, or None to skip the check."""
        return None

    def duplicate_message(self, payload: Any, employee: Employee) -> str:
        return f"{self.title} request for {first_last(employee)} already exists"

    def build(self, payload: Any, employee_id: int, actor: Capabilities) -> ApprovableRequest:
        raise NotImplementedError

    def created_message(self, created: int, payload: Any, actor: Capabilities, auto_approved: bool) -> str:
        message = f"Successfully created {created} {self.label} request(s)"
        if auto_approved:
            message += " (auto-approved)"
        return message

    def export_columns(self) -> list[tuple[str, Callable[[ExportRow], object]]]:
        raise NotImplementedError

    def date_attr(self) -> Any:
        return getattr(self.model, self.date_column)

    def search_attrs(self) -> list[Any]:
        return [getattr(self.model, name) for name in self.search_columns]


class CancelRestDayKind(RequestKind):
    key = "cancel_rest_day"
    label = "cancel rest day"
    title = "Cancel Rest Day"
    prefix = "/cancel-rest-days"
    model = CancelRestDay
    create_schema = CancelRestDayCreate
    response_schema = CancelRestDayResponse
    date_column = "rest_day_date"
    search_columns = ("reason",)

    def validate(self, payload: CancelRestDayCreate, actor: Capabilities) -> None:
        if not actor.is_privileged and payload.rest_day_date < datetime.date.today():
            msg = "The rest day date must be today or a future date."
            raise ValidationFailedError(msg)

    def duplicate_criteria(self, payload: CancelRestDayCreate, employee_id: int) -> list[ColumnElement[bool]]:
        return [
            col(CancelRestDay.employee_id) == employee_id,
            col(CancelRestDay.rest_day_date) == payload.rest_day_date,
        ]

    def duplicate_message(self, payload: CancelRestDayCreate, employee: Employee) -> str:
        return (
            f"Cancel rest day request for {first_last(employee)} "
            f"on {format_date(payload.rest_day_date)} already exists"
        )

    def build(self, payload: CancelRestDayCreate, employee_id: int, actor: Capabilities) -> CancelRestDay:
        return CancelRestDay(
            employee_id=employee_id,
            rest_day_date=payload.rest_day_date,
            replacement_work_date=payload.replacement_work_date,
            reason=payload.reason,
        )

    def created_message(
        self, created: int, payload: CancelRestDayCreate, actor: Capabilities, auto_approved: bool
    ) -> str:
        message = super().created_message(created, payload, actor, auto_approved)
        if actor.is_privileged and payload.rest_day_date < datetime.date.today():
            message += " (including past date - Admin/HR privilege used)"
        return message

    def export_columns(self) -> list[tuple[str, Callable[[ExportRow], object]]]:
        return [
            *_common_head(),
            ("Rest Day Date", lambda r: format_date(r.record.rest_day_date)),
            ("Replacement Work Date", lambda r: format_date(r.record.replacement_work_date)),
            ("Reason", lambda r: r.record.reason or ""),
            *_common_tail(),
        ]


class ChangeOffScheduleKind(RequestKind):
    key = "change_off_schedule"
    label = "change rest day"
    title = "Change Off Schedule"
    prefix = "/change-off-schedules"
    model = ChangeOffSchedule
    create_schema = ChangeOffScheduleCreate
    response_schema = ChangeOffScheduleResponse
    date_column = "original_date"
    search_columns = ("reason",)

    def duplicate_criteria(self, payload: ChangeOffScheduleCreate, employee_id: int) -> list[ColumnElement[bool]]:
        return [
            col(ChangeOffSchedule.employee_id) == employee_id,
            col(ChangeOffSchedule.original_date) == payload.original_date,
            col(ChangeOffSchedule.requested_date) == payload.requested_date,
        ]

    def duplicate_message(self, payload: ChangeOffScheduleCreate, employee: Employee) -> str:
        return (
            f"Change rest day request for {first_last(employee)} from {format_date(payload.original_date)} "
            f"to {format_date(payload.requested_date)} already exists"
        )

    def build(self, payload: ChangeOffScheduleCreate, employee_id: int, actor: Capabilities) -> ChangeOffSchedule:
        return ChangeOffSchedule(
            employee_id=employee_id,
            original_date=payload.original_date,
            requested_date=payload.requested_date,
            reason=payload.reason,
        )

    def export_columns(self) -> list[tuple[str, Callable[[ExportRow], object]]]:
        return [
            *_common_head(),
            ("Original Rest Day", lambda r: format_date(r.record.original_date)),
            ("Requested Rest Day", lambda r: format_date(r.record.requested_date)),
            ("Reason", lambda r: r.record.reason or ""),
            *_common_tail(),
        ]


def compute_retro_amount(hours_days: Decimal, multiplier_rate: Decimal, base_rate: Decimal) -> Decimal:
    """hours/days x multiplier x base rate, rounded half-up to cents."""
    return (hours_days * multiplier_rate * base_rate).quantize(_CENTS, rounding=ROUND_HALF_UP)


class RetroKind(RequestKind):
    key = "retro"
    label = "retro"
    title = "Retro"
    prefix = "/retros"
    model = Retro
    create_schema = RetroCreate
    response_schema = RetroResponse
    date_column = "retro_date"
    search_columns = ("reason", "retro_type")

    # Only pending retros block a new one; decided ones may be filed again.
    def duplicate_criteria(self, payload: RetroCreate, employee_id: int) -> list[ColumnElement[bool]]:
        return [
            col(Retro.employee_id) == employee_id,
            col(Retro.retro_type) == payload.retro_type.value,
            col(Retro.retro_date) == payload.retro_date,
            col(Retro.status) == RequestStatus.PENDING.value,
        ]

    def duplicate_message(self, payload: RetroCreate, employee: Employee) -> str:
        return (
            f"Pending retro request for {first_last(employee)} of type {payload.retro_type.value} "
            f"on {format_date(payload.retro_date)} already exists"
        )

    def build(self, payload: RetroCreate, employee_id: int, actor: Capabilities) -> Retro:
        amount = compute_retro_amount(payload.hours_days, payload.multiplier_rate, payload.base_rate)
        return Retro(
            employee_id=employee_id,
            retro_type=payload.retro_type.value,
            adjustment_type=payload.adjustment_type.value,
            retro_date=payload.retro_date,
            hours_days=payload.hours_days,
            multiplier_rate=payload.multiplier_rate,
            base_rate=payload.base_rate,
            computed_amount=amount,
            original_total_amount=Decimal("0"),
            requested_total_amount=amount,
            reason=payload.reason,
            created_by=actor.user_id,
        )

    def export_columns(self) -> list[tuple[str, Callable[[ExportRow], object]]]:
        return [
            *_common_head(),
            ("Retro Type", lambda r: RETRO_TYPE_LABELS.get(r.record.retro_type, r.record.retro_type)),
            (
                "Adjustment Type",
                lambda r: ADJUSTMENT_TYPE_LABELS.get(r.record.adjustment_type, r.record.adjustment_type),
            ),
            ("Retro Date", lambda r: format_date(r.record.retro_date)),
            ("Hours/Days", lambda r: float(r.record.hours_days)),
            ("Multiplier Rate", lambda r: float(r.record.multiplier_rate)),
            ("Base Rate", lambda r: float(r.record.base_rate)),
            ("Computed Amount", lambda r: float(r.record.computed_amount)),
            ("Original Amount", lambda r: float(r.record.original_total_amount)),
            ("Requested Amount", lambda r: float(r.record.requested_total_amount)),
            ("Reason", lambda r: r.record.reason or ""),
            *_common_tail(),
        ]


class OfficialBusinessKind(RequestKind):
    key = "official_business"
    label = "official business"
    title = "Official Business"
    prefix = "/official-businesses"
    model = OfficialBusiness
    create_schema = OfficialBusinessCreate
    response_schema = OfficialBusinessResponse
    date_column = "start_date"
    search_columns = ("location", "purpose")

    def build(self, payload: OfficialBusinessCreate, employee_id: int, actor: Capabilities) -> OfficialBusiness:
        return OfficialBusiness(
            employee_id=employee_id,
            date=payload.date,
            start_date=payload.start_date,
            end_date=payload.end_date,
            location=payload.location,
            purpose=payload.purpose,
            with_accommodation=payload.with_accommodation,
            total_days=(payload.end_date - payload.start_date).days + 1,
        )

    def created_message(
        self, created: int, payload: OfficialBusinessCreate, actor: Capabilities, auto_approved: bool
    ) -> str:
        if auto_approved:
            return "Official Business requests created and auto-approved successfully"
        return "Official Business requests created successfully"

    def export_columns(self) -> list[tuple[str, Callable[[ExportRow], object]]]:
        return [
            *_common_head(),
            ("Position", lambda r: (r.employee.job_title if r.employee else None) or ""),
            ("Start Date", lambda r: format_date(r.record.start_date)),
            ("End Date", lambda r: format_date(r.record.end_date)),
            ("Duration (Days)", lambda r: r.record.total_days),
            ("Location", lambda r: r.record.location),
            ("With Accommodation", lambda r: "Yes" if r.record.with_accommodation else "No"),
            ("Status", lambda r: str(r.record.status).capitalize()),
            ("Purpose", lambda r: r.record.purpose),
            ("Remarks", lambda r: r.record.remarks or ""),
            ("Filed Date", lambda r: format_timestamp(r.record.created_at)),
            ("Action Date", lambda r: format_timestamp(r.record.approved_at)),
            ("Approved/Rejected By", lambda r: r.approver_name or ""),
        ]


REQUEST_KINDS: tuple[RequestKind, ...] = (
    CancelRestDayKind(),
    ChangeOffScheduleKind(),
    RetroKind(),
    OfficialBusinessKind(),
)
