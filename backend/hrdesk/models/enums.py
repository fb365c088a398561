from __future__ import annotations

import enum


class RequestStatus(enum.StrEnum):
    """Persisted state of an approvable request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StatusAction(enum.StrEnum):
    """Status an approver may ask for. FORCE_APPROVED is stored as APPROVED."""

    APPROVED = "approved"
    REJECTED = "rejected"
    FORCE_APPROVED = "force_approved"


class RetroType(enum.StrEnum):
    """What a retroactive pay adjustment is for."""

    DAYS = "DAYS"
    OVERTIME = "OVERTIME"
    SLVL = "SLVL"
    HOLIDAY = "HOLIDAY"
    RD_OT = "RD_OT"


RETRO_TYPE_LABELS: dict[str, str] = {
    RetroType.DAYS: "Regular Days",
    RetroType.OVERTIME: "Overtime Hours",
    RetroType.SLVL: "Sick/Vacation Leave",
    RetroType.HOLIDAY: "Holiday Work",
    RetroType.RD_OT: "Rest Day Overtime",
}


class AdjustmentType(enum.StrEnum):
    """Direction of a retroactive pay adjustment."""

    INCREASE = "increase"
    DECREASE = "decrease"
    CORRECTION = "correction"
    BACKDATED = "backdated"


ADJUSTMENT_TYPE_LABELS: dict[str, str] = {
    AdjustmentType.INCREASE: "Increase",
    AdjustmentType.DECREASE: "Decrease",
    AdjustmentType.CORRECTION: "Correction",
    AdjustmentType.BACKDATED: "Backdated Adjustment",
}


class PayType(enum.StrEnum):
    """Pay frequency of an employee."""

    MONTHLY = "Monthly"
    WEEKLY = "Weekly"
    DAILY = "Daily"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    FORCE_APPROVE = "FORCE_APPROVE"
    DELETE = "DELETE"
