from __future__ import annotations

from pydantic import BaseModel, Field


class Capabilities(BaseModel):
    """What an acting user may do, resolved once per request."""

    user_id: int
    user_name: str
    employee_id: int | None = None
    is_super_admin: bool = False
    is_hrd_manager: bool = False
    is_department_manager: bool = False
    is_employee: bool = False
    managed_departments: list[str] = Field(default_factory=list)

    @property
    def is_privileged(self) -> bool:
        """Superadmin or HRD: gets auto-approval and decides any request."""
        return self.is_super_admin or self.is_hrd_manager

    @property
    def role_label(self) -> str:
        return "Superadmin" if self.is_super_admin else "Hrd"

    def manages(self, department: str | None) -> bool:
        return self.is_department_manager and department is not None and department in self.managed_departments
