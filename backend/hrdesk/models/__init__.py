from sqlmodel import SQLModel

from hrdesk.models.attendance import UploadedAttendance
from hrdesk.models.audit import AuditLog
from hrdesk.models.base import IntIdBase, TimestampMixin
from hrdesk.models.department import Department, DepartmentManager
from hrdesk.models.employee import Employee
from hrdesk.models.enums import (
    AdjustmentType,
    AuditAction,
    PayType,
    RequestStatus,
    RetroType,
    StatusAction,
)
from hrdesk.models.request import (
    ApprovableRequest,
    CancelRestDay,
    ChangeOffSchedule,
    OfficialBusiness,
    Retro,
)
from hrdesk.models.user import Role, RoleUser, User

__all__ = [
    "AdjustmentType",
    "ApprovableRequest",
    "AuditAction",
    "AuditLog",
    "CancelRestDay",
    "ChangeOffSchedule",
    "Department",
    "DepartmentManager",
    "Employee",
    "IntIdBase",
    "OfficialBusiness",
    "PayType",
    "RequestStatus",
    "Retro",
    "RetroType",
    "Role",
    "RoleUser",
    "SQLModel",
    "StatusAction",
    "TimestampMixin",
    "UploadedAttendance",
    "User",
]
