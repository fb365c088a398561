"""Status lifecycle shared by every approvable request type.

``pending`` moves to ``approved`` or ``rejected`` exactly once. A superadmin
may force an approval, which is stored as ``approved`` with an override
remark. Authorization denials are returned as an ``Outcome`` rather than
raised, so callers decide how to present them; missing records and
non-pending targets raise ``AppError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from fastapi import status
from sqlalchemy import func, select
from sqlmodel import col

from hrdesk.exceptions import AppError, NotFoundError, ValidationFailedError
from hrdesk.models.employee import Employee
from hrdesk.models.enums import AuditAction, RequestStatus, StatusAction
from hrdesk.models.user import User
from hrdesk.schemas.request import (
    BulkFailure,
    BulkResult,
    CreateResult,
    RequestListResponse,
    RequestResponseBase,
)
from hrdesk.services.audit import model_to_audit_dict, write_audit_log
from hrdesk.services.request_kinds import ExportRow

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrdesk.models.request import ApprovableRequest
    from hrdesk.schemas.auth import Capabilities
    from hrdesk.schemas.request import BulkStatusPayload, RequestCreateBase, RequestFilters, StatusUpdatePayload
    from hrdesk.services.request_kinds import RequestKind

logger = logging.getLogger(__name__)

FORCE_APPROVAL_PREFIX = "Administrative override: "
DEFAULT_FORCE_REMARK = "Force approved by admin"
AUTO_APPROVAL_PREFIX = "Auto-approved: Filed by "

_AUDIT_ACTIONS = {
    StatusAction.APPROVED: AuditAction.APPROVE,
    StatusAction.REJECTED: AuditAction.REJECT,
    StatusAction.FORCE_APPROVED: AuditAction.FORCE_APPROVE,
}


@dataclass
class Outcome:
    """Result of an operation that may be refused for authorization reasons."""

    ok: bool
    message: str
    status_code: int = status.HTTP_200_OK
    item: RequestResponseBase | None = None


# ---------------------------------------------------------------------------
# Authorization rules
# ---------------------------------------------------------------------------


def can_decide(actor: Capabilities, department: str | None, action: StatusAction) -> bool:
    """Whether ``actor`` may apply ``action`` to a request from ``department``.

    Checked in order: force approval is superadmin-only; a department manager
    may decide for departments they manage; HRD and superadmin may decide any
    request. Force approval never falls through to the later rules.
    """
    if action == StatusAction.FORCE_APPROVED:
        return actor.is_super_admin
    if actor.manages(department):
        return True
    return actor.is_privileged


def can_delete(actor: Capabilities, record: ApprovableRequest, department: str | None) -> bool:
    if actor.is_super_admin:
        return True
    if actor.employee_id is not None and record.employee_id == actor.employee_id:
        return True
    if actor.manages(department):
        return True
    return actor.is_hrd_manager


def decision_remarks(action: StatusAction, remarks: str | None, *, bulk: bool = False) -> str | None:
    if action == StatusAction.FORCE_APPROVED:
        return FORCE_APPROVAL_PREFIX + (remarks or DEFAULT_FORCE_REMARK)
    if bulk:
        return remarks or f"Bulk {action.value}"
    return remarks


def _apply_decision(record: ApprovableRequest, actor: Capabilities, action: StatusAction, remarks: str | None) -> None:
    record.status = (
        RequestStatus.APPROVED.value if action == StatusAction.FORCE_APPROVED else RequestStatus(action.value).value
    )
    record.approved_by = actor.user_id
    record.approved_at = datetime.now(UTC)
    record.remarks = remarks


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------


def _base_query(kind: RequestKind) -> Select[Any]:
    model = kind.model
    return (
        select(model, Employee, User.name)
        .join(Employee, col(Employee.id) == col(model.employee_id))
        .outerjoin(User, col(User.id) == col(model.approved_by))
    )


def _restrict_to_visible(query: Select[Any], kind: RequestKind, actor: Capabilities) -> Select[Any]:
    """Superadmin sees everything. Department managers, HRD ones included, see their departments;
    other HRD users see everything and everyone else their own rows.
    """
    if actor.is_super_admin:
        return query
    if actor.is_department_manager:
        return query.where(col(Employee.department).in_(actor.managed_departments))
    if actor.is_hrd_manager:
        return query
    if actor.employee_id is not None:
        return query.where(col(kind.model.employee_id) == actor.employee_id)
    return query.where(sa.false())


def _apply_filters(query: Select[Any], kind: RequestKind, filters: RequestFilters) -> Select[Any]:
    if filters.status is not None:
        query = query.where(col(kind.model.status) == filters.status.value)
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        columns = [
            col(Employee.first_name),
            col(Employee.last_name),
            col(Employee.idno),
            col(Employee.department),
            *[col(attr) for attr in kind.search_attrs()],
        ]
        query = query.where(sa.or_(*[column.ilike(pattern) for column in columns]))
    if filters.date_from is not None:
        query = query.where(col(kind.date_attr()) >= filters.date_from)
    if filters.date_to is not None:
        query = query.where(col(kind.date_attr()) <= filters.date_to)
    return query


def _newest_first(query: Select[Any], kind: RequestKind) -> Select[Any]:
    return query.order_by(col(kind.model.created_at).desc(), col(kind.model.id).desc())


def to_response(kind: RequestKind, record: ApprovableRequest, employee: Employee | None) -> RequestResponseBase:
    data = record.model_dump()
    data["employee_name"] = employee.display_name if employee else None
    data["department"] = employee.department if employee else None
    return kind.response_schema.model_validate(data)


async def _get_with_employee_or_404(
    session: AsyncSession,
    kind: RequestKind,
    request_id: int,
) -> tuple[ApprovableRequest, Employee]:
    result = await session.execute(_base_query(kind).where(col(kind.model.id) == request_id))
    row = result.first()
    if row is None:
        raise NotFoundError(f"{kind.title} request not found")
    return row[0], row[1]


async def _load_employees(session: AsyncSession, employee_ids: list[int]) -> dict[int, Employee]:
    result = await session.execute(select(Employee).where(col(Employee.id).in_(set(employee_ids))))
    return {employee.id: employee for employee in result.scalars().all() if employee.id is not None}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def list_requests(
    session: AsyncSession,
    kind: RequestKind,
    actor: Capabilities,
    filters: RequestFilters,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse[Any]:
    """List the requests ``actor`` can see, newest first."""
    query = _apply_filters(_restrict_to_visible(_base_query(kind), kind, actor), kind, filters)

    count_result = await session.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar_one()

    result = await session.execute(_newest_first(query, kind).offset(offset).limit(limit))
    items = [to_response(kind, record, employee) for record, employee, _ in result.all()]
    return RequestListResponse[kind.response_schema](items=items, total=total)


async def get_request(
    session: AsyncSession,
    kind: RequestKind,
    actor: Capabilities,
    request_id: int,
) -> RequestResponseBase:
    """Fetch one request. Requests outside the actor's visibility are reported as missing."""
    query = _restrict_to_visible(_base_query(kind), kind, actor).where(col(kind.model.id) == request_id)
    result = await session.execute(query)
    row = result.first()
    if row is None:
        raise NotFoundError(f"{kind.title} request not found")
    return to_response(kind, row[0], row[1])


async def export_rows(
    session: AsyncSession,
    kind: RequestKind,
    actor: Capabilities,
    filters: RequestFilters,
) -> list[ExportRow]:
    """Every visible request matching ``filters``, ready for spreadsheet export."""
    query = _apply_filters(_restrict_to_visible(_base_query(kind), kind, actor), kind, filters)
    result = await session.execute(_newest_first(query, kind))
    return [
        ExportRow(record=record, employee=employee, approver_name=approver_name)
        for record, employee, approver_name in result.all()
    ]


async def create_requests(
    session: AsyncSession,
    kind: RequestKind,
    actor: Capabilities,
    payload: RequestCreateBase,
) -> CreateResult[Any]:
    """File one request per employee in a single transaction.

    Duplicates are skipped with a message; any unexpected failure rolls back
    the whole batch. Superadmin and HRD filings are approved immediately.
    """
    kind.validate(payload, actor)

    employees = await _load_employees(session, payload.employee_ids)
    missing = [employee_id for employee_id in payload.employee_ids if employee_id not in employees]
    if missing:
        raise ValidationFailedError(f"Employees not found: {', '.join(str(i) for i in sorted(set(missing)))}")

    auto_approved = actor.is_privileged
    created: list[tuple[ApprovableRequest, Employee]] = []
    errors: list[str] = []

    try:
        for employee_id in payload.employee_ids:
            employee = employees[employee_id]

            criteria = kind.duplicate_criteria(payload, employee_id)
            if criteria is not None:
                existing = await session.execute(select(col(kind.model.id)).where(*criteria).limit(1))
                if existing.scalar_one_or_none() is not None:
                    errors.append(kind.duplicate_message(payload, employee))
                    continue

            record = kind.build(payload, employee_id, actor)
            if auto_approved:
                record.status = RequestStatus.APPROVED.value
                record.approved_by = actor.user_id
                record.approved_at = datetime.now(UTC)
                record.remarks = AUTO_APPROVAL_PREFIX + actor.role_label

            session.add(record)
            # Flush so a repeated employee later in this batch sees the row.
            await session.flush()

            await write_audit_log(
                session,
                actor_id=actor.user_id,
                entity_type=kind.key,
                entity_id=record.id,  # ty: ignore[invalid-argument-type]
                action=AuditAction.CREATE,
                after_json=model_to_audit_dict(record),
            )
            created.append((record, employee))

        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.exception(
            "Failed to create %s requests (user_id=%s, payload=%s)",
            kind.label,
            actor.user_id,
            payload.model_dump(mode="json"),
        )
        raise AppError(f"Error creating {kind.label} requests") from exc

    logger.info(
        "Created %d %s request(s), skipped %d (user_id=%s, auto_approved=%s)",
        len(created),
        kind.label,
        len(errors),
        actor.user_id,
        auto_approved,
    )
    return CreateResult[kind.response_schema](
        created=len(created),
        skipped=len(errors),
        message=kind.created_message(len(created), payload, actor, auto_approved and bool(created)),
        errors=errors,
        items=[to_response(kind, record, employee) for record, employee in created],
    )


async def update_status(
    session: AsyncSession,
    kind: RequestKind,
    actor: Capabilities,
    request_id: int,
    payload: StatusUpdatePayload,
) -> Outcome:
    """Approve, reject or force-approve one pending request."""
    record, employee = await _get_with_employee_or_404(session, kind, request_id)
    if not record.is_pending:
        raise AppError(
            f"Only pending {kind.label} requests can be updated",
            status_code=status.HTTP_409_CONFLICT,
        )

    if not can_decide(actor, employee.department, payload.status):
        return Outcome(
            ok=False,
            message=f"You are not authorized to update this {kind.label} request.",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    before = model_to_audit_dict(record)
    try:
        _apply_decision(record, actor, payload.status, decision_remarks(payload.status, payload.remarks))
        await session.flush()

        await write_audit_log(
            session,
            actor_id=actor.user_id,
            entity_type=kind.key,
            entity_id=request_id,
            action=_AUDIT_ACTIONS[payload.status],
            before_json=before,
            after_json=model_to_audit_dict(record),
        )
        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.exception(
            "Failed to update %s request %s (user_id=%s, payload=%s)",
            kind.label,
            request_id,
            actor.user_id,
            payload.model_dump(mode="json"),
        )
        raise AppError(f"Error updating {kind.label} status") from exc

    if payload.status == StatusAction.FORCE_APPROVED:
        logger.info("Force approved %s request %s (user_id=%s)", kind.label, request_id, actor.user_id)

    return Outcome(
        ok=True,
        message=f"{kind.title} status updated successfully.",
        item=to_response(kind, record, employee),
    )


async def bulk_update_status(
    session: AsyncSession,
    kind: RequestKind,
    actor: Capabilities,
    payload: BulkStatusPayload,
) -> BulkResult:
    """Apply one decision to many requests.

    Unknown ids fail the whole call before anything changes. Items the actor
    may not decide, or that are no longer pending, are reported and skipped.
    """
    request_ids = list(dict.fromkeys(payload.ids))
    result = await session.execute(_base_query(kind).where(col(kind.model.id).in_(request_ids)))
    found = {row[0].id: (row[0], row[1]) for row in result.all()}

    missing = [request_id for request_id in request_ids if request_id not in found]
    if missing:
        raise NotFoundError(f"{kind.title} requests not found: {', '.join(str(i) for i in missing)}")

    updated = 0
    failures: list[BulkFailure] = []

    try:
        for request_id in request_ids:
            record, employee = found[request_id]

            if not record.is_pending:
                failures.append(
                    BulkFailure(id=request_id, reason=f"{kind.title} request #{request_id} is no longer pending")
                )
                continue
            if not can_decide(actor, employee.department, payload.status):
                failures.append(
                    BulkFailure(id=request_id, reason=f"Not authorized to update {kind.label} request #{request_id}")
                )
                continue

            before = model_to_audit_dict(record)
            _apply_decision(
                record, actor, payload.status, decision_remarks(payload.status, payload.remarks, bulk=True)
            )
            await write_audit_log(
                session,
                actor_id=actor.user_id,
                entity_type=kind.key,
                entity_id=request_id,
                action=_AUDIT_ACTIONS[payload.status],
                before_json=before,
                after_json=model_to_audit_dict(record),
            )
            updated += 1

        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.exception(
            "Failed bulk %s update of %s requests (user_id=%s, ids=%s)",
            payload.status.value,
            kind.label,
            actor.user_id,
            request_ids,
        )
        raise AppError(f"Error updating {kind.label} statuses") from exc

    message = f"{updated} {kind.label} requests updated successfully."
    if failures:
        message += f" {len(failures)} updates failed."
    return BulkResult(updated=updated, failed=len(failures), message=message, errors=failures)


async def delete_request(
    session: AsyncSession,
    kind: RequestKind,
    actor: Capabilities,
    request_id: int,
) -> Outcome:
    """Delete a pending request the actor owns or oversees."""
    record, employee = await _get_with_employee_or_404(session, kind, request_id)
    if not record.is_pending:
        raise AppError(
            f"Only pending {kind.label} requests can be deleted",
            status_code=status.HTTP_409_CONFLICT,
        )

    if not can_delete(actor, record, employee.department):
        return Outcome(
            ok=False,
            message=f"You are not authorized to delete this {kind.label} request",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    try:
        await write_audit_log(
            session,
            actor_id=actor.user_id,
            entity_type=kind.key,
            entity_id=request_id,
            action=AuditAction.DELETE,
            before_json=model_to_audit_dict(record),
        )
        await session.delete(record)
        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.exception("Failed to delete %s request %s (user_id=%s)", kind.label, request_id, actor.user_id)
        raise AppError(f"Error deleting {kind.label} request") from exc
    return Outcome(ok=True, message=f"{kind.title} request deleted successfully")
