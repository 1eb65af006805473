"""Role-scoped visibility for employee records.

All role branching for employee reads and writes lives here:

* ``admin`` / ``hr`` see and change everything.
* ``manager`` sees themself and their direct reports, and may update only
  the direct reports. Salary is dropped from a manager's writes.
* ``employee`` sees the whole directory with salary removed from every record
  except their own, and cannot write.

Redaction works on the response schema; the ORM row is never touched.
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional

from core.exceptions import ForbiddenError
from employee.schema import EmployeeSchema
from role.models import RoleName
from .deps import role_name

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = (RoleName.admin, RoleName.hr)
MANAGER_RESTRICTED_FIELDS = ("salary",)


def linked_employee_id(actor) -> Optional[str]:
    employee = getattr(actor, "employee", None)
    return getattr(employee, "id", None)


def is_privileged(actor) -> bool:
    return role_name(actor) in PRIVILEGED_ROLES


def can_view(actor, employee) -> bool:
    role = role_name(actor)
    if role in PRIVILEGED_ROLES or role == RoleName.employee:
        return True
    if role == RoleName.manager:
        me = linked_employee_id(actor)
        # a manager without a linked employee record has no reports
        return me is not None and (employee.id == me or employee.manager_id == me)
    return False


def can_see_salary(actor, employee) -> bool:
    if is_privileged(actor):
        return True
    me = linked_employee_id(actor)
    return me is not None and employee.id == me


def present(actor, employee) -> EmployeeSchema:
    data = EmployeeSchema.model_validate(employee)
    if can_see_salary(actor, employee):
        return data
    return EmployeeSchema.model_validate(data.model_dump(exclude={"salary"}))


def filter_employee_list(actor, candidates: Iterable) -> list[EmployeeSchema]:
    return [present(actor, emp) for emp in candidates if can_view(actor, emp)]


def filter_employee_detail(actor, candidate) -> EmployeeSchema:
    if not can_view(actor, candidate):
        raise ForbiddenError(f"access denied to employee {candidate.id}")
    return present(actor, candidate)


def ensure_can_create(actor) -> None:
    if not is_privileged(actor):
        raise ForbiddenError("only admin or hr can create employees")


def ensure_can_delete(actor) -> None:
    if not is_privileged(actor):
        raise ForbiddenError("only admin or hr can delete employees")


def ensure_can_update(actor, employee) -> None:
    if is_privileged(actor):
        return
    if role_name(actor) == RoleName.manager:
        me = linked_employee_id(actor)
        if me is not None and employee.manager_id == me:
            return
    raise ForbiddenError(f"access denied to employee {employee.id}")


def scrub_update(actor, data: dict) -> dict:
    """Drop fields the actor may not write. Silent by policy, not rejected."""
    if role_name(actor) != RoleName.manager:
        return data
    dropped = [f for f in MANAGER_RESTRICTED_FIELDS if f in data]
    if dropped:
        logger.info("dropping %s from manager %s update", ", ".join(dropped), getattr(actor, "id", None))
    return {k: v for k, v in data.items() if k not in MANAGER_RESTRICTED_FIELDS}
