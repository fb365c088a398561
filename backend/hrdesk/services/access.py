"""Resolve what an acting user may do.

Every router and service asks ``AccessResolver`` for a ``Capabilities``
snapshot instead of inspecting roles on its own. Resolution order for the
superadmin and HRD flags, first match wins:

1. explicit role records (``superadmin``; ``hrd_manager`` by name or ``hrd``
   by slug);
2. ``has_role`` lookups by slug or name, case-insensitive;
3. a legacy name/email heuristic for whichever flag the roles left unset,
   only while ``Settings.role_name_heuristic`` is on;
4. otherwise false.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hrdesk.config import get_settings
from hrdesk.models.department import DepartmentManager
from hrdesk.models.employee import Employee
from hrdesk.models.user import Role, RoleUser
from hrdesk.schemas.auth import Capabilities

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from hrdesk.models.user import User

logger = logging.getLogger(__name__)

SUPERADMIN = "superadmin"
HRD_MANAGER = "hrd_manager"
HRD_SLUG = "hrd"
DEPARTMENT_MANAGER = "department_manager"


def has_role(roles: Sequence[Role], key: str) -> bool:
    """True if any role's slug or name equals ``key``, ignoring case."""
    key = key.lower()
    return any(key in (role.slug.lower(), role.name.lower()) for role in roles)


def _super_admin_by_record(roles: Sequence[Role]) -> bool:
    return any(SUPERADMIN in (role.name, role.slug) for role in roles)


def _hrd_by_record(roles: Sequence[Role]) -> bool:
    return any(role.name == HRD_MANAGER or role.slug == HRD_SLUG for role in roles)


class AccessResolver:
    """Builds ``Capabilities`` for a user from roles, mappings and employee links."""

    def __init__(self, session: AsyncSession, *, name_heuristic: bool | None = None) -> None:
        self.session = session
        self.name_heuristic = get_settings().role_name_heuristic if name_heuristic is None else name_heuristic

    async def roles_for(self, user_id: int) -> list[Role]:
        result = await self.session.execute(
            select(Role)
            .join(RoleUser, col(RoleUser.role_id) == col(Role.id))
            .where(col(RoleUser.user_id) == user_id)
        )
        return list(result.scalars().all())

    async def managed_departments(self, user_id: int) -> list[str]:
        result = await self.session.execute(
            select(DepartmentManager.department)
            .where(col(DepartmentManager.manager_id) == user_id)
            .order_by(col(DepartmentManager.department))
        )
        return list(result.scalars().all())

    async def linked_employee_id(self, user: User) -> int | None:
        if not user.employee_idno:
            return None
        result = await self.session.execute(select(Employee.id).where(col(Employee.idno) == user.employee_idno))
        return result.scalar_one_or_none()

    def _heuristic(self, user: User, *, super_admin_known: bool, hrd_known: bool) -> tuple[bool, bool]:
        """Name/email guess for capabilities the roles did not grant. Returns (superadmin, hrd)."""
        if not self.name_heuristic:
            return False, False
        name = (user.name or "").lower()
        email = (user.email or "").lower()
        is_super_admin = not super_admin_known and ("admin" in name or user.id == 1)
        is_hrd = not hrd_known and ("hrd" in name or "hrd" in email)
        granted = [label for label, flag in (("superadmin", is_super_admin), ("hrd", is_hrd)) if flag]
        if granted:
            logger.warning("User %s granted %s from name/email heuristic", user.id, " and ".join(granted))
        return is_super_admin, is_hrd

    async def resolve(self, user: User) -> Capabilities:
        """Return the capabilities of ``user``. Missing data resolves to false or empty."""
        if user.id is None:
            return Capabilities(user_id=0, user_name=user.name or "")

        roles = await self.roles_for(user.id)
        is_super_admin = _super_admin_by_record(roles) or has_role(roles, SUPERADMIN)
        is_hrd_manager = _hrd_by_record(roles) or has_role(roles, HRD_MANAGER)

        guessed_super_admin, guessed_hrd = self._heuristic(
            user, super_admin_known=is_super_admin, hrd_known=is_hrd_manager
        )
        is_super_admin = is_super_admin or guessed_super_admin
        is_hrd_manager = is_hrd_manager or guessed_hrd

        managed = await self.managed_departments(user.id)
        employee_id = await self.linked_employee_id(user)

        return Capabilities(
            user_id=user.id,
            user_name=user.name,
            employee_id=employee_id,
            is_super_admin=is_super_admin,
            is_hrd_manager=is_hrd_manager,
            is_department_manager=bool(managed) or has_role(roles, DEPARTMENT_MANAGER),
            is_employee=user.is_employee or employee_id is not None,
            managed_departments=managed,
        )
