"""Seed script for development data.

Run with:  python -m hrdesk.seed
Creates the schema if needed, then inserts roles, users, departments,
employees and a department manager mapping. Safe to run repeatedly.
"""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from hrdesk.db import create_schema, dispose_engine, get_session_factory
from hrdesk.models.department import Department, DepartmentManager
from hrdesk.models.employee import Employee
from hrdesk.models.user import Role, RoleUser, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

ROLES = [
    {"name": "Super Admin", "slug": "superadmin"},
    {"name": "hrd_manager", "slug": "hrd"},
    {"name": "Finance", "slug": "finance"},
    {"name": "Department Manager", "slug": "department_manager"},
]

DEPARTMENTS = [
    {"name": "IT", "code": "IT", "description": "Information Technology"},
    {"name": "Sales", "code": "SALES", "description": "Sales and Marketing"},
    {"name": "Production", "code": "PROD", "description": "Production floor"},
]

EMPLOYEES = [
    {
        "idno": "EMP001",
        "first_name": "John",
        "last_name": "Doe",
        "department": "IT",
        "line": "Development",
        "job_title": "Developer",
        "hired_date": date(2022, 1, 1),
        "pay_type": "Monthly",
        "pay_rate": Decimal("50000.00"),
    },
    {
        "idno": "EMP002",
        "first_name": "Maria",
        "last_name": "Santos",
        "department": "Sales",
        "job_title": "Account Executive",
        "hired_date": date(2023, 6, 1),
        "pay_type": "Monthly",
        "pay_rate": Decimal("35000.00"),
    },
    {
        "idno": "EMP003",
        "first_name": "Pedro",
        "last_name": "Reyes",
        "department": "Production",
        "line": "Line A",
        "job_title": "Operator",
        "hired_date": date(2024, 3, 1),
        "pay_type": "Daily",
        "pay_rate": Decimal("610.00"),
    },
]

# (name, email, role slugs, linked employee idno)
USERS: list[tuple[str, str, list[str], str | None]] = [
    ("System Admin", "admin@example.com", ["superadmin"], None),
    ("HR Officer", "hr.officer@example.com", ["hrd"], None),
    ("IT Lead", "it.lead@example.com", ["department_manager"], None),
    ("John Doe", "john.doe@example.com", [], "EMP001"),
]

# (manager email, department name)
DEPARTMENT_MANAGERS = [("it.lead@example.com", "IT")]


async def _get_or_create(
    session: AsyncSession,
    model: Any,
    lookup: dict[str, Any],
    values: dict[str, Any],
    label: str,
) -> Any:
    """Insert unless a row matching ``lookup`` exists."""
    query = select(model)
    for key, value in lookup.items():
        query = query.where(col(getattr(model, key)) == value)
    result = await session.execute(query)
    existing = result.scalars().first()
    if existing is not None:
        print(f"  [SKIP] {label} (already exists)")
        return existing
    instance = model(**lookup, **values)
    session.add(instance)
    await session.flush()
    print(f"  [OK] {label}")
    return instance


async def seed_roles(session: AsyncSession) -> dict[str, Role]:
    print("\n--- Seeding roles ---")
    roles: dict[str, Role] = {}
    for role in ROLES:
        roles[role["slug"]] = await _get_or_create(
            session, Role, {"slug": role["slug"]}, {"name": role["name"]}, f"Role: {role['slug']}"
        )
    return roles


async def seed_departments(session: AsyncSession) -> None:
    print("\n--- Seeding departments ---")
    for department in DEPARTMENTS:
        values = {k: v for k, v in department.items() if k != "code"}
        label = f"Department: {department['name']}"
        await _get_or_create(session, Department, {"code": department["code"]}, values, label)


async def seed_employees(session: AsyncSession) -> None:
    print("\n--- Seeding employees ---")
    for employee in EMPLOYEES:
        values = {k: v for k, v in employee.items() if k != "idno"}
        await _get_or_create(
            session,
            Employee,
            {"idno": employee["idno"]},
            values,
            f"Employee: {employee['first_name']} {employee['last_name']}",
        )


async def seed_users(session: AsyncSession, roles: dict[str, Role]) -> dict[str, User]:
    print("\n--- Seeding users ---")
    users: dict[str, User] = {}
    for name, email, role_slugs, idno in USERS:
        user = await _get_or_create(
            session,
            User,
            {"email": email},
            {"name": name, "employee_idno": idno, "is_employee": idno is not None},
            f"User: {name}",
        )
        users[email] = user
        for slug in role_slugs:
            await _get_or_create(
                session,
                RoleUser,
                {"role_id": roles[slug].id, "user_id": user.id},
                {},
                f"  {name} -> {slug}",
            )
    return users


async def seed_department_managers(session: AsyncSession, users: dict[str, User]) -> None:
    print("\n--- Seeding department managers ---")
    for email, department in DEPARTMENT_MANAGERS:
        await _get_or_create(
            session,
            DepartmentManager,
            {"manager_id": users[email].id, "department": department},
            {},
            f"Manager: {email} -> {department}",
        )


async def main() -> None:
    print("=" * 60)
    print("  HR Desk - Development Seed Script")
    print("=" * 60)

    await create_schema()

    async with get_session_factory()() as session:
        roles = await seed_roles(session)
        await seed_departments(session)
        await seed_employees(session)
        users = await seed_users(session, roles)
        await seed_department_managers(session, users)
        await session.commit()

    await dispose_engine()

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
