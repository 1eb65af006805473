from __future__ import annotations
import logging
from typing import Any, Optional, List

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError
from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from authz import visibility
from auditlog.models import AuditAction
from auditlog.service import record_audit
from core.exceptions import ConflictError, NotFoundError
from hierarchy.reparent import OrphanResult, on_employee_delete
from hierarchy.schema import OrgChartNode
from hierarchy.tree import build_org_chart
from hierarchy.validator import validate_manager_assignment
from team.models import Team
from user.models import User
from .models import Employee
from .schema import (
    BulkImportError,
    BulkImportResult,
    EmployeeCreatePayload,
    EmployeeFilters,
    EmployeeSchema,
    EmployeeUpdate,
)

logger = logging.getLogger(__name__)

ENTITY_TYPE = "Employee"


def get_employee(db: Session, employee_id: str) -> Optional[Employee]:
    return db.get(Employee, employee_id)


def get_employee_by_email(db: Session, email: str) -> Optional[Employee]:
    return db.scalars(select(Employee).where(Employee.email == email)).first()


def _get_or_404(db: Session, employee_id: str) -> Employee:
    row = db.get(Employee, employee_id)
    if row is None:
        raise NotFoundError(f"employee {employee_id} not found")
    return row


def _actor_id(actor) -> Optional[str]:
    return getattr(actor, "id", None)


def _snapshot(employee: Employee) -> dict[str, Any]:
    return jsonable_encoder(EmployeeSchema.model_validate(employee))


def _check_references(db: Session, data: dict[str, Any], current: Optional[Employee] = None) -> None:
    """Validate the columns of ``data`` that point at other rows.

    Only values that actually change are checked, so re-sending the stored
    value never fails.
    """
    def changed(field: str) -> bool:
        return field in data and (current is None or data[field] != getattr(current, field))

    if changed("manager_id"):
        validate_manager_assignment(db, current.id if current else None, data["manager_id"])

    if changed("team_id") and data["team_id"] and db.get(Team, data["team_id"]) is None:
        raise NotFoundError(f"team {data['team_id']} not found")

    if changed("user_id") and data["user_id"]:
        if db.get(User, data["user_id"]) is None:
            raise NotFoundError(f"user {data['user_id']} not found")
        linked = db.scalars(select(Employee).where(Employee.user_id == data["user_id"])).first()
        if linked is not None:
            raise ConflictError(f"user {data['user_id']} is already linked to employee {linked.id}")

    if changed("email") and data["email"]:
        if get_employee_by_email(db, data["email"]) is not None:
            raise ConflictError("employee email already exists")


# LIST (role-filtered)
def get_employees(db: Session, actor, filters: Optional[EmployeeFilters] = None) -> List[EmployeeSchema]:
    filters = filters or EmployeeFilters()
    stmt = select(Employee)
    if filters.department is not None:
        stmt = stmt.where(Employee.department == filters.department)
    if filters.status is not None:
        stmt = stmt.where(Employee.status == filters.status)
    if filters.title:
        stmt = stmt.where(Employee.title.ilike(f"%{filters.title}%"))
    if filters.team_id is not None:
        stmt = stmt.where(Employee.team_id == filters.team_id)
    if filters.manager_id is not None:
        stmt = stmt.where(Employee.manager_id == filters.manager_id)
    if filters.search:
        term = f"%{filters.search}%"
        stmt = stmt.where(or_(
            Employee.first_name.ilike(term),
            Employee.last_name.ilike(term),
            Employee.email.ilike(term),
        ))

    column = getattr(Employee, filters.sort_by)
    ordering = column.desc() if filters.sort_order == "desc" else column.asc()
    stmt = stmt.order_by(ordering, Employee.first_name.asc(), Employee.id)
    return visibility.filter_employee_list(actor, db.scalars(stmt))


# Single (role-filtered)
def get_employee_for_actor(db: Session, employee_id: str, actor) -> EmployeeSchema:
    return visibility.filter_employee_detail(actor, _get_or_404(db, employee_id))


def get_direct_reports(db: Session, manager_id: str, actor) -> List[EmployeeSchema]:
    visibility.filter_employee_detail(actor, _get_or_404(db, manager_id))
    stmt = (
        select(Employee)
        .where(Employee.manager_id == manager_id)
        .order_by(Employee.last_name.asc(), Employee.first_name.asc())
    )
    return visibility.filter_employee_list(actor, db.scalars(stmt))


def get_org_chart(db: Session) -> List[OrgChartNode]:
    stmt = select(Employee).order_by(Employee.last_name.asc(), Employee.first_name.asc(), Employee.id)
    return build_org_chart(db.scalars(stmt))


def create_employee(db: Session, dto: EmployeeCreatePayload, *, actor) -> EmployeeSchema:
    visibility.ensure_can_create(actor)
    data = dto.model_dump()
    _check_references(db, data)

    row = Employee(**data)
    db.add(row)
    # Let IntegrityError bubble; router maps to 409
    db.commit()
    db.refresh(row)
    logger.info("employee %s created by %s", row.id, _actor_id(actor))

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.create,
        entity_type=ENTITY_TYPE,
        entity_id=row.id,
        changes={"data": data},
    )
    return visibility.present(actor, row)


def update_employee(db: Session, employee_id: str, patch: EmployeeUpdate, *, actor) -> EmployeeSchema:
    row = _get_or_404(db, employee_id)
    visibility.filter_employee_detail(actor, row)
    visibility.ensure_can_update(actor, row)

    data = visibility.scrub_update(actor, patch.model_dump(exclude_unset=True))
    _check_references(db, data, current=row)

    old = _snapshot(row)
    for k, v in data.items():
        setattr(row, k, v)
    db.commit()
    db.refresh(row)
    logger.info("employee %s updated by %s (%s)", row.id, _actor_id(actor), ", ".join(sorted(data)) or "no fields")

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.update,
        entity_type=ENTITY_TYPE,
        entity_id=row.id,
        changes={"old": old, "new": data},
    )
    return visibility.present(actor, row)


def delete_employee(db: Session, employee_id: str, *, actor) -> OrphanResult:
    visibility.ensure_can_delete(actor)
    row = _get_or_404(db, employee_id)
    deleted = _snapshot(row)

    result = on_employee_delete(db, row)
    db.commit()

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.delete,
        entity_type=ENTITY_TYPE,
        entity_id=employee_id,
        changes={
            "deleted_employee": deleted,
            "reassigned_report_count": result.reassigned_report_count,
            "cleared_lead_count": result.cleared_lead_count,
        },
    )
    return result


def _error_message(exc: Exception) -> str:
    if isinstance(exc, HTTPException):
        return str(exc.detail)
    if isinstance(exc, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
    return str(getattr(exc, "orig", None) or exc)


def _import_row(db: Session, raw: Any) -> bool:
    """Create or update one employee keyed by email. Returns True if created."""
    payload = EmployeeCreatePayload.model_validate(raw)
    existing = get_employee_by_email(db, payload.email) if payload.email else None
    if existing is not None:
        data = payload.model_dump(exclude_unset=True)
        _check_references(db, data, current=existing)
        for k, v in data.items():
            setattr(existing, k, v)
        db.commit()
        return False

    data = payload.model_dump()
    _check_references(db, data)
    db.add(Employee(**data))
    db.commit()
    return True


def bulk_import(db: Session, rows: List[Any], *, actor) -> BulkImportResult:
    """Best-effort import: each row commits or fails on its own."""
    visibility.ensure_can_create(actor)
    result = BulkImportResult()

    for index, raw in enumerate(rows):
        try:
            if _import_row(db, raw):
                result.created += 1
            else:
                result.updated += 1
        except (ValidationError, HTTPException, SQLAlchemyError) as exc:
            db.rollback()
            email = raw.get("email") if isinstance(raw, dict) else None
            email = str(email) if email is not None else None
            message = _error_message(exc)
            result.errors.append(BulkImportError(row=index, email=email, error=message))
            logger.warning("bulk import row %d rejected: %s", index, message)

    result.success = result.created + result.updated
    logger.info(
        "bulk import by %s: %d created, %d updated, %d failed",
        _actor_id(actor), result.created, result.updated, len(result.errors),
    )
    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.import_,
        entity_type=ENTITY_TYPE,
        changes={"summary": result.model_dump()},
    )
    return result
