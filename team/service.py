from __future__ import annotations
import logging
from typing import Any, Optional, List

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from auditlog.models import AuditAction
from auditlog.service import record_audit
from core.exceptions import ConflictError, NotFoundError
from employee.models import Employee
from hierarchy.reparent import ReparentResult, on_team_delete
from hierarchy.schema import TeamHierarchyNode, TeamLeadSummary
from hierarchy.tree import build_team_hierarchy
from hierarchy.validator import validate_parent_team_assignment
from membership.models import EmployeeTeamMembership
from .models import Team
from .schema import TeamCreatePayload, TeamDetailSchema, TeamSchema, TeamUpdate

logger = logging.getLogger(__name__)

ENTITY_TYPE = "Team"


def _actor_id(actor) -> Optional[str]:
    return getattr(actor, "id", None)


def get_teams(db: Session, *, search: Optional[str] = None) -> List[Team]:
    stmt = select(Team)
    if search:
        term = f"%{search}%"
        stmt = stmt.where(or_(Team.name.ilike(term), Team.description.ilike(term)))
    stmt = stmt.order_by(Team.name.asc(), Team.id)
    return list(db.scalars(stmt))


def get_team(db: Session, team_id: str) -> Optional[Team]:
    return db.get(Team, team_id)


def _get_or_404(db: Session, team_id: str) -> Team:
    row = db.get(Team, team_id)
    if row is None:
        raise NotFoundError(f"team {team_id} not found")
    return row


def get_team_detail(db: Session, team_id: str) -> TeamDetailSchema:
    team = _get_or_404(db, team_id)
    lead = team.lead
    return TeamDetailSchema(
        **TeamSchema.model_validate(team).model_dump(),
        lead=TeamLeadSummary(id=lead.id, name=lead.full_name, title=lead.title) if lead else None,
        parent_team=TeamSchema.model_validate(team.parent_team) if team.parent_team else None,
        sub_teams=[TeamSchema.model_validate(t) for t in team.sub_teams],
        member_count=team.member_count,
    )


def _check_references(db: Session, data: dict[str, Any], current: Optional[Team] = None) -> None:
    def changed(field: str) -> bool:
        return field in data and (current is None or data[field] != getattr(current, field))

    if changed("lead_id") and data["lead_id"] and db.get(Employee, data["lead_id"]) is None:
        raise NotFoundError(f"employee {data['lead_id']} not found")

    if changed("parent_team_id"):
        validate_parent_team_assignment(db, current.id if current else None, data["parent_team_id"])


def create_team(db: Session, dto: TeamCreatePayload, *, actor) -> Team:
    data = dto.model_dump()
    _check_references(db, data)

    row = Team(**data)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("team %s created by %s", row.id, _actor_id(actor))

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.create,
        entity_type=ENTITY_TYPE,
        entity_id=row.id,
        changes={"data": data},
    )
    return row


def update_team(db: Session, team_id: str, patch: TeamUpdate, *, actor) -> Team:
    row = _get_or_404(db, team_id)
    data = patch.model_dump(exclude_unset=True)
    _check_references(db, data, current=row)

    old = jsonable_encoder(TeamSchema.model_validate(row))
    for k, v in data.items():
        setattr(row, k, v)
    db.commit()
    db.refresh(row)
    logger.info("team %s updated by %s", row.id, _actor_id(actor))

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.update,
        entity_type=ENTITY_TYPE,
        entity_id=row.id,
        changes={"old": old, "new": data},
    )
    return row


def delete_team(db: Session, team_id: str, *, actor) -> ReparentResult:
    row = _get_or_404(db, team_id)
    deleted = jsonable_encoder(TeamSchema.model_validate(row))

    result = on_team_delete(db, row)
    db.commit()

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.delete,
        entity_type=ENTITY_TYPE,
        entity_id=team_id,
        changes={
            "deleted_team": deleted,
            "reassigned_subteam_count": result.reassigned_subteam_count,
            "new_parent_id": result.new_parent_id,
        },
    )
    return result


def get_member_counts(db: Session) -> dict[str, int]:
    stmt = (
        select(EmployeeTeamMembership.team_id, func.count(EmployeeTeamMembership.id))
        .group_by(EmployeeTeamMembership.team_id)
    )
    return {team_id: count for team_id, count in db.execute(stmt)}


def get_team_hierarchy(db: Session) -> List[TeamHierarchyNode]:
    stmt = select(Team).options(selectinload(Team.lead)).order_by(Team.name.asc(), Team.id)
    teams = list(db.scalars(stmt))
    return build_team_hierarchy(teams, get_member_counts(db))


# ---------- membership ----------

def get_membership(db: Session, team_id: str, employee_id: str) -> Optional[EmployeeTeamMembership]:
    stmt = select(EmployeeTeamMembership).where(
        EmployeeTeamMembership.team_id == team_id,
        EmployeeTeamMembership.employee_id == employee_id,
    )
    return db.scalars(stmt).first()


def get_team_members(db: Session, team_id: str) -> List[Employee]:
    _get_or_404(db, team_id)
    stmt = (
        select(Employee)
        .join(EmployeeTeamMembership, EmployeeTeamMembership.employee_id == Employee.id)
        .where(EmployeeTeamMembership.team_id == team_id)
        .order_by(Employee.last_name.asc(), Employee.first_name.asc())
    )
    return list(db.scalars(stmt))


def add_team_member(db: Session, team_id: str, employee_id: str, *, actor) -> EmployeeTeamMembership:
    _get_or_404(db, team_id)
    if db.get(Employee, employee_id) is None:
        raise NotFoundError(f"employee {employee_id} not found")
    if get_membership(db, team_id, employee_id) is not None:
        raise ConflictError(f"employee {employee_id} is already a member of team {team_id}")

    row = EmployeeTeamMembership(team_id=team_id, employee_id=employee_id)
    db.add(row)
    # Let IntegrityError bubble; router maps to 409 on a concurrent duplicate
    db.commit()
    db.refresh(row)
    logger.info("employee %s added to team %s by %s", employee_id, team_id, _actor_id(actor))

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.update,
        entity_type=ENTITY_TYPE,
        entity_id=team_id,
        changes={"added_member": employee_id},
    )
    return row


def remove_team_member(db: Session, team_id: str, employee_id: str, *, actor) -> None:
    row = get_membership(db, team_id, employee_id)
    if row is None:
        raise NotFoundError(f"employee {employee_id} is not a member of team {team_id}")
    db.delete(row)
    db.commit()
    logger.info("employee %s removed from team %s by %s", employee_id, team_id, _actor_id(actor))

    record_audit(
        db,
        actor_id=_actor_id(actor),
        action=AuditAction.update,
        entity_type=ENTITY_TYPE,
        entity_id=team_id,
        changes={"removed_member": employee_id},
    )
