from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from employee.models import Employee
from team.models import Team

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReparentResult:
    reassigned_subteam_count: int
    new_parent_id: Optional[str]


@dataclass(frozen=True)
class OrphanResult:
    reassigned_report_count: int
    cleared_lead_count: int


def _repoint(db: Session, model, column, old_id: str, new_id: Optional[str]) -> int:
    rows = list(db.scalars(select(model).where(column == old_id)))
    for row in rows:
        setattr(row, column.key, new_id)
    return len(rows)


def on_team_delete(db: Session, team: Team) -> ReparentResult:
    """Hand the team's sub-teams to its parent, then remove the team.

    Children are moved and flushed before the delete is issued, so no reader
    of the transaction sees a sub-team pointing at a missing parent. The
    caller owns the commit.
    """
    new_parent_id = team.parent_team_id
    moved = _repoint(db, Team, Team.parent_team_id, team.id, new_parent_id)
    # primary-team pointers go back to "no team"; memberships cascade
    _repoint(db, Employee, Employee.team_id, team.id, None)
    db.flush()

    # collections loaded earlier still list the moved rows
    db.expire(team, ["sub_teams", "members"])
    db.delete(team)
    db.flush()
    logger.info("team %s removed, %d sub-team(s) moved to %s", team.id, moved, new_parent_id)
    return ReparentResult(reassigned_subteam_count=moved, new_parent_id=new_parent_id)


def on_employee_delete(db: Session, employee: Employee) -> OrphanResult:
    """Detach direct reports and led teams, then remove the employee.

    Direct reports become roots; they do not inherit the grand-manager.
    """
    reports = _repoint(db, Employee, Employee.manager_id, employee.id, None)
    leads = _repoint(db, Team, Team.lead_id, employee.id, None)
    db.flush()

    db.expire(employee, ["direct_reports", "teams_led"])
    db.delete(employee)
    db.flush()
    logger.info(
        "employee %s removed, %d report(s) detached, %d team lead(s) cleared",
        employee.id, reports, leads,
    )
    return OrphanResult(reassigned_report_count=reports, cleared_lead_count=leads)
