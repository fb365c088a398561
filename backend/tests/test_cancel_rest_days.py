"""End-to-end tests for the cancel rest day workflow: filing, auto-approval,
duplicates, decisions, bulk decisions, deletion, visibility and audit.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from hrdesk.models.audit import AuditLog
from hrdesk.models.request import CancelRestDay
from tests.factories import add_employee, add_user, headers_for

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from hrdesk.models.user import User
    from tests.factories import Org

URL = "/cancel-rest-days"
NEXT_WEEK = date.today() + timedelta(days=7)
LAST_WEEK = date.today() - timedelta(days=7)


async def _file(client: AsyncClient, user: User, employee_ids: list[int], **overrides: Any) -> Any:
    body: dict[str, Any] = {
        "employee_ids": employee_ids,
        "rest_day_date": NEXT_WEEK.isoformat(),
        "replacement_work_date": (NEXT_WEEK + timedelta(days=1)).isoformat(),
        "reason": "Inventory count",
    }
    body.update(overrides)
    return await client.post(URL, json=body, headers=headers_for(user))


async def _pending(client: AsyncClient, org: Org, employee_id: int, **overrides: Any) -> int:
    """File a pending request as the linked staff user and return its id."""
    resp = await _file(client, org.tech_staff, [employee_id], **overrides)
    assert resp.status_code == 201, resp.text
    return resp.json()["items"][0]["id"]


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


async def test_missing_user_header_is_rejected(async_client: AsyncClient, org: Org) -> None:
    resp = await async_client.get(URL)
    assert resp.status_code == 422


async def test_unknown_user_is_unauthorized(async_client: AsyncClient, org: Org) -> None:
    resp = await async_client.get(URL, headers={"X-User-Id": "9999"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Unknown user"


# ---------------------------------------------------------------------------
# Filing
# ---------------------------------------------------------------------------


async def test_staff_filing_is_pending(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(async_client, org.tech_staff, [org.tech_employee.id])
    assert resp.status_code == 201
    data = resp.json()
    assert data["created"] == 1
    assert data["skipped"] == 0
    assert data["message"] == "Successfully created 1 cancel rest day request(s)"

    item = data["items"][0]
    assert item["status"] == "pending"
    assert item["approved_by"] is None
    assert item["remarks"] is None
    assert item["employee_name"] == "Cruz, Ana"
    assert item["department"] == "Tech"


async def test_superadmin_filing_is_auto_approved(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(async_client, org.superadmin, [org.tech_employee.id, org.sales_employee.id])
    assert resp.status_code == 201
    data = resp.json()
    assert data["created"] == 2
    assert data["message"] == "Successfully created 2 cancel rest day request(s) (auto-approved)"
    for item in data["items"]:
        assert item["status"] == "approved"
        assert item["approved_by"] == org.superadmin.id
        assert item["approved_at"] is not None
        assert item["remarks"] == "Auto-approved: Filed by Superadmin"


async def test_hrd_filing_is_auto_approved(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(async_client, org.hrd, [org.sales_employee.id])
    item = resp.json()["items"][0]
    assert item["status"] == "approved"
    assert item["remarks"] == "Auto-approved: Filed by Hrd"


async def test_repeated_employee_in_batch_is_skipped(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(async_client, org.tech_staff, [org.tech_employee.id, org.tech_employee.id])
    data = resp.json()
    assert data["created"] == 1
    assert data["skipped"] == 1
    assert data["errors"] == [f"Cancel rest day request for Ana Cruz on {NEXT_WEEK.isoformat()} already exists"]


async def test_existing_request_blocks_duplicate(async_client: AsyncClient, org: Org) -> None:
    await _file(async_client, org.tech_staff, [org.tech_employee.id])
    resp = await _file(async_client, org.hrd, [org.tech_employee.id, org.sales_employee.id])
    data = resp.json()
    assert data["created"] == 1
    assert data["skipped"] == 1
    assert data["items"][0]["employee_id"] == org.sales_employee.id


async def test_staff_cannot_file_past_rest_day(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(
        async_client,
        org.tech_staff,
        [org.tech_employee.id],
        rest_day_date=LAST_WEEK.isoformat(),
        replacement_work_date=None,
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == "The rest day date must be today or a future date."


async def test_hrd_may_file_past_rest_day(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(
        async_client,
        org.hrd,
        [org.tech_employee.id],
        rest_day_date=LAST_WEEK.isoformat(),
        replacement_work_date=None,
    )
    assert resp.status_code == 201
    assert resp.json()["message"].endswith("(including past date - Admin/HR privilege used)")


async def test_replacement_date_must_differ(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(
        async_client,
        org.tech_staff,
        [org.tech_employee.id],
        replacement_work_date=NEXT_WEEK.isoformat(),
    )
    assert resp.status_code == 422


async def test_empty_employee_list_is_rejected(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(async_client, org.tech_staff, [])
    assert resp.status_code == 422


async def test_unknown_employee_fails_whole_batch(
    async_client: AsyncClient,
    org: Org,
    db_session: AsyncSession,
) -> None:
    resp = await _file(async_client, org.hrd, [org.tech_employee.id, 999])
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Employees not found: 999"

    result = await db_session.execute(select(CancelRestDay))
    assert result.scalars().all() == []


async def test_failure_mid_batch_rolls_back(
    async_client: AsyncClient,
    org: Org,
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from hrdesk.services import approval

    employee_ids = [org.tech_employee.id, org.sales_employee.id]
    headers = headers_for(org.hrd)
    calls = 0

    async def _flaky_audit(*args: Any, **kwargs: Any) -> None:
        nonlocal calls
        calls += 1
        if calls == 2:
            raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(approval, "write_audit_log", _flaky_audit)
    resp = await async_client.post(
        URL,
        json={"employee_ids": employee_ids, "rest_day_date": NEXT_WEEK.isoformat(), "reason": "Stocktake"},
        headers=headers,
    )
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Error creating cancel rest day requests"

    result = await db_session.execute(select(CancelRestDay))
    assert result.scalars().all() == []


async def test_create_writes_audit_entry(async_client: AsyncClient, org: Org, db_session: AsyncSession) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)

    result = await db_session.execute(select(AuditLog).where(col(AuditLog.entity_id) == request_id))
    entries = result.scalars().all()
    assert [(e.entity_type, e.action) for e in entries] == [("cancel_rest_day", "CREATE")]
    assert entries[0].actor_id == org.tech_staff.id
    assert entries[0].after_json is not None
    assert entries[0].after_json["rest_day_date"] == NEXT_WEEK.isoformat()


# ---------------------------------------------------------------------------
# Single decisions
# ---------------------------------------------------------------------------


async def test_manager_approves_own_department(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    resp = await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "approved", "remarks": "OK"},
        headers=headers_for(org.tech_manager),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["approved_by"] == org.tech_manager.id
    assert data["remarks"] == "OK"


async def test_manager_cannot_decide_other_department(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.sales_employee.id)
    resp = await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "rejected"},
        headers=headers_for(org.tech_manager),
    )
    assert resp.status_code == 403
    assert resp.json() == {
        "error": "Forbidden",
        "detail": "You are not authorized to update this cancel rest day request.",
        "status_code": 403,
    }


async def test_hrd_rejects_any_department(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.sales_employee.id)
    resp = await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "rejected", "remarks": "Short staffed"},
        headers=headers_for(org.hrd),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"


async def test_staff_cannot_approve(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    resp = await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "approved"},
        headers=headers_for(org.tech_staff),
    )
    assert resp.status_code == 403


async def test_force_approval_requires_superadmin(
    async_client: AsyncClient,
    org: Org,
    db_session: AsyncSession,
) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    for user in (org.hrd, org.tech_manager):
        resp = await async_client.patch(
            f"{URL}/{request_id}/status",
            json={"status": "force_approved"},
            headers=headers_for(user),
        )
        assert resp.status_code == 403

    record = await db_session.get(CancelRestDay, request_id)
    assert record is not None
    assert record.status == "pending"


async def test_superadmin_force_approves_with_override_remark(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    resp = await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "force_approved"},
        headers=headers_for(org.superadmin),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["remarks"] == "Administrative override: Force approved by admin"


async def test_decided_request_cannot_be_updated_again(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    await async_client.patch(f"{URL}/{request_id}/status", json={"status": "rejected"}, headers=headers_for(org.hrd))

    resp = await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "approved"},
        headers=headers_for(org.superadmin),
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Only pending cancel rest day requests can be updated"


async def test_update_missing_request_is_404(async_client: AsyncClient, org: Org) -> None:
    resp = await async_client.patch(f"{URL}/9999/status", json={"status": "approved"}, headers=headers_for(org.hrd))
    assert resp.status_code == 404


async def test_unknown_status_is_rejected(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    resp = await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "pending"},
        headers=headers_for(org.hrd),
    )
    assert resp.status_code == 422


async def test_decision_is_audited(async_client: AsyncClient, org: Org, db_session: AsyncSession) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    await async_client.patch(
        f"{URL}/{request_id}/status",
        json={"status": "force_approved", "remarks": "Payroll cutoff"},
        headers=headers_for(org.superadmin),
    )

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == request_id).order_by(col(AuditLog.id))
    )
    entries = result.scalars().all()
    assert [e.action for e in entries] == ["CREATE", "FORCE_APPROVE"]
    decision = entries[1]
    assert decision.before_json is not None
    assert decision.after_json is not None
    assert decision.before_json["status"] == "pending"
    assert decision.after_json["status"] == "approved"
    assert decision.after_json["remarks"] == "Administrative override: Payroll cutoff"


async def test_failed_decision_rolls_back(
    async_client: AsyncClient,
    org: Org,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    from hrdesk.services import approval

    request_id = await _pending(async_client, org, org.tech_employee.id)
    hrd_id = org.hrd.id
    headers = headers_for(org.hrd)

    async def _broken_audit(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(approval, "write_audit_log", _broken_audit)
    with caplog.at_level("ERROR", logger="hrdesk.services.approval"):
        resp = await async_client.patch(
            f"{URL}/{request_id}/status",
            json={"status": "approved"},
            headers=headers,
        )
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "AppError",
        "detail": "Error updating cancel rest day status",
        "status_code": 500,
    }
    assert f"request {request_id} (user_id={hrd_id}" in caplog.text

    resp = await async_client.get(f"{URL}/{request_id}", headers=headers)
    assert resp.json()["status"] == "pending"
    assert resp.json()["approved_by"] is None


# ---------------------------------------------------------------------------
# Bulk decisions
# ---------------------------------------------------------------------------


async def test_bulk_reports_unauthorized_items(async_client: AsyncClient, org: Org) -> None:
    tech_id = await _pending(async_client, org, org.tech_employee.id)
    sales_id = await _pending(async_client, org, org.sales_employee.id)

    resp = await async_client.post(
        f"{URL}/bulk-status",
        json={"ids": [tech_id, sales_id], "status": "approved"},
        headers=headers_for(org.tech_manager),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["updated"] == 1
    assert data["failed"] == 1
    assert data["message"] == "1 cancel rest day requests updated successfully. 1 updates failed."
    assert data["errors"] == [
        {"id": sales_id, "reason": f"Not authorized to update cancel rest day request #{sales_id}"},
    ]

    tech = await async_client.get(f"{URL}/{tech_id}", headers=headers_for(org.hrd))
    assert tech.json()["status"] == "approved"
    assert tech.json()["remarks"] == "Bulk approved"


async def test_bulk_skips_already_decided(async_client: AsyncClient, org: Org) -> None:
    first = await _pending(async_client, org, org.tech_employee.id)
    second = await _pending(async_client, org, org.sales_employee.id)
    await async_client.patch(f"{URL}/{first}/status", json={"status": "approved"}, headers=headers_for(org.hrd))

    resp = await async_client.post(
        f"{URL}/bulk-status",
        json={"ids": [first, second, second], "status": "rejected", "remarks": "Freeze"},
        headers=headers_for(org.hrd),
    )
    data = resp.json()
    assert data["updated"] == 1
    assert data["failed"] == 1
    assert data["errors"][0]["reason"] == f"Cancel Rest Day request #{first} is no longer pending"


async def test_bulk_with_unknown_id_changes_nothing(
    async_client: AsyncClient,
    org: Org,
    db_session: AsyncSession,
) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    resp = await async_client.post(
        f"{URL}/bulk-status",
        json={"ids": [request_id, 9999], "status": "approved"},
        headers=headers_for(org.hrd),
    )
    assert resp.status_code == 404

    record = await db_session.get(CancelRestDay, request_id)
    assert record is not None
    assert record.status == "pending"


async def test_bulk_force_approval_by_superadmin(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.sales_employee.id)
    resp = await async_client.post(
        f"{URL}/bulk-status",
        json={"ids": [request_id], "status": "force_approved"},
        headers=headers_for(org.superadmin),
    )
    assert resp.json()["updated"] == 1

    item = await async_client.get(f"{URL}/{request_id}", headers=headers_for(org.superadmin))
    assert item.json()["remarks"] == "Administrative override: Force approved by admin"


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


async def test_owner_deletes_pending_request(async_client: AsyncClient, org: Org, db_session: AsyncSession) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    resp = await async_client.delete(f"{URL}/{request_id}", headers=headers_for(org.tech_staff))
    assert resp.status_code == 204
    assert await db_session.get(CancelRestDay, request_id) is None

    result = await db_session.execute(select(AuditLog.action).where(col(AuditLog.entity_id) == request_id))
    assert "DELETE" in result.scalars().all()


async def test_outsider_cannot_delete(async_client: AsyncClient, org: Org) -> None:
    request_id = await _pending(async_client, org, org.tech_employee.id)
    resp = await async_client.delete(f"{URL}/{request_id}", headers=headers_for(org.outsider))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "You are not authorized to delete this cancel rest day request"


async def test_manager_deletes_in_own_department_only(async_client: AsyncClient, org: Org) -> None:
    tech_id = await _pending(async_client, org, org.tech_employee.id)
    sales_id = await _pending(async_client, org, org.sales_employee.id)

    assert (await async_client.delete(f"{URL}/{tech_id}", headers=headers_for(org.tech_manager))).status_code == 204
    assert (await async_client.delete(f"{URL}/{sales_id}", headers=headers_for(org.tech_manager))).status_code == 403


async def test_decided_request_cannot_be_deleted(async_client: AsyncClient, org: Org) -> None:
    resp = await _file(async_client, org.superadmin, [org.tech_employee.id])
    request_id = resp.json()["items"][0]["id"]

    resp = await async_client.delete(f"{URL}/{request_id}", headers=headers_for(org.superadmin))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Only pending cancel rest day requests can be deleted"


async def test_failed_delete_keeps_request(
    async_client: AsyncClient,
    org: Org,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from hrdesk.services import approval

    request_id = await _pending(async_client, org, org.tech_employee.id)
    hrd_headers = headers_for(org.hrd)
    staff_headers = headers_for(org.tech_staff)

    async def _broken_audit(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(approval, "write_audit_log", _broken_audit)
    resp = await async_client.delete(f"{URL}/{request_id}", headers=staff_headers)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Error deleting cancel rest day request"

    resp = await async_client.get(f"{URL}/{request_id}", headers=hrd_headers)
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Listing and visibility
# ---------------------------------------------------------------------------


async def test_visibility_by_access_level(async_client: AsyncClient, org: Org) -> None:
    tech_id = await _pending(async_client, org, org.tech_employee.id)
    sales_id = await _pending(async_client, org, org.sales_employee.id)

    async def _ids(user: User) -> set[int]:
        resp = await async_client.get(URL, headers=headers_for(user))
        assert resp.status_code == 200
        return {item["id"] for item in resp.json()["items"]}

    assert await _ids(org.superadmin) == {tech_id, sales_id}
    assert await _ids(org.hrd) == {tech_id, sales_id}
    assert await _ids(org.tech_manager) == {tech_id}
    assert await _ids(org.tech_staff) == {tech_id}
    assert await _ids(org.outsider) == set()


async def test_hrd_who_manages_a_department_sees_only_it(
    async_client: AsyncClient,
    org: Org,
    db_session: AsyncSession,
) -> None:
    tech_id = await _pending(async_client, org, org.tech_employee.id)
    sales_id = await _pending(async_client, org, org.sales_employee.id)
    sales_hrd = await add_user(
        db_session, "Ramon Sy", "ramon@example.com", roles=[("hrd", "hrd_manager")], manages=["Sales"]
    )

    resp = await async_client.get(URL, headers=headers_for(sales_hrd))
    assert {item["id"] for item in resp.json()["items"]} == {sales_id}
    resp = await async_client.get(f"{URL}/{tech_id}", headers=headers_for(sales_hrd))
    assert resp.status_code == 404


async def test_hidden_request_reads_as_missing(async_client: AsyncClient, org: Org) -> None:
    sales_id = await _pending(async_client, org, org.sales_employee.id)
    resp = await async_client.get(f"{URL}/{sales_id}", headers=headers_for(org.tech_manager))
    assert resp.status_code == 404


async def test_list_is_newest_first_and_paginated(async_client: AsyncClient, org: Org) -> None:
    ids = []
    for offset in range(3):
        rest_day = (NEXT_WEEK + timedelta(days=offset)).isoformat()
        ids.append(
            await _pending(
                async_client, org, org.tech_employee.id, rest_day_date=rest_day, replacement_work_date=None
            )
        )
    resp = await async_client.get(URL, params={"limit": 2}, headers=headers_for(org.hrd))
    data = resp.json()
    assert data["total"] == 3
    assert [item["id"] for item in data["items"]] == [ids[2], ids[1]]

    resp = await async_client.get(URL, params={"offset": 2, "limit": 2}, headers=headers_for(org.hrd))
    assert [item["id"] for item in resp.json()["items"]] == [ids[0]]


async def test_filters_are_combined(async_client: AsyncClient, org: Org, db_session: AsyncSession) -> None:
    extra = await add_employee(db_session, "T-002", "Carla", "Diaz", "Tech")
    await _pending(async_client, org, org.tech_employee.id, reason="Audit week")
    carla_id = await _pending(async_client, org, extra.id, reason="Audit week")
    await _pending(async_client, org, org.sales_employee.id, reason="Trade show")

    headers = headers_for(org.hrd)
    resp = await async_client.get(URL, params={"search": "audit"}, headers=headers)
    assert resp.json()["total"] == 2

    resp = await async_client.get(URL, params={"search": "audit", "status": "pending"}, headers=headers)
    assert resp.json()["total"] == 2

    resp = await async_client.get(URL, params={"search": "diaz"}, headers=headers)
    assert [item["id"] for item in resp.json()["items"]] == [carla_id]

    resp = await async_client.get(URL, params={"search": "audit", "status": "approved"}, headers=headers)
    assert resp.json()["total"] == 0

    resp = await async_client.get(
        URL,
        params={"date_from": (NEXT_WEEK + timedelta(days=1)).isoformat()},
        headers=headers,
    )
    assert resp.json()["total"] == 0

    resp = await async_client.get(
        URL,
        params={"date_from": NEXT_WEEK.isoformat(), "date_to": NEXT_WEEK.isoformat(), "search": "Sales"},
        headers=headers,
    )
    assert resp.json()["total"] == 1
