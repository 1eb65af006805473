from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_hr
from employee.schema import EmployeeSummary
from hierarchy.schema import TeamHierarchyNode
from .schema import (
    DeleteTeamResult,
    TeamCreatePayload,
    TeamDetailSchema,
    TeamMembershipSchema,
    TeamSchema,
    TeamUpdate,
)
from . import service

team_router = APIRouter(prefix="/teams", tags=["Teams"])

# List teams, optional search over name/description
@team_router.get("", response_model=list[TeamSchema])
def list_teams(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _user = Depends(get_current_active_user),
    ):
    return service.get_teams(db, search=search)

# Team forest with member counts
@team_router.get("/hierarchy", response_model=list[TeamHierarchyNode])
def team_hierarchy(db: Session = Depends(get_db), _user = Depends(get_current_active_user)):
    return service.get_team_hierarchy(db)

# Get team by id
@team_router.get("/{team_id}", response_model=TeamDetailSchema)
def team_detail(team_id: str, db: Session = Depends(get_db), _user = Depends(get_current_active_user)):
    return service.get_team_detail(db, team_id)

# Create team (admin / hr)
@team_router.post("", response_model=TeamSchema, status_code=status.HTTP_201_CREATED)
def team_post(payload: TeamCreatePayload, db: Session = Depends(get_db), user = Depends(require_hr)):
    return service.create_team(db, payload, actor=user)

# Update team (admin / hr)
@team_router.patch("/{team_id}", response_model=TeamSchema)
def team_patch(
    team_id: str,
    payload: TeamUpdate,
    db: Session = Depends(get_db),
    user = Depends(require_hr),
    ):
    return service.update_team(db, team_id, payload, actor=user)

# Delete team (admin / hr); sub-teams move up to the deleted team's parent
@team_router.delete("/{team_id}", response_model=DeleteTeamResult)
def team_delete(team_id: str, db: Session = Depends(get_db), user = Depends(require_hr)):
    result = service.delete_team(db, team_id, actor=user)
    return DeleteTeamResult(
        reassigned_subteam_count=result.reassigned_subteam_count,
        new_parent_id=result.new_parent_id,
    )

# Members of a team
@team_router.get("/{team_id}/members", response_model=list[EmployeeSummary])
def team_members(team_id: str, db: Session = Depends(get_db), _user = Depends(get_current_active_user)):
    return service.get_team_members(db, team_id)

# Add member (admin / hr)
@team_router.post(
    "/{team_id}/members/{employee_id}",
    response_model=TeamMembershipSchema,
    status_code=status.HTTP_201_CREATED,
)
def team_member_add(
    team_id: str,
    employee_id: str,
    db: Session = Depends(get_db),
    user = Depends(require_hr),
    ):
    try:
        return service.add_team_member(db, team_id, employee_id, actor=user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="employee is already a member of this team")

# Remove member (admin / hr)
@team_router.delete("/{team_id}/members/{employee_id}")
def team_member_remove(
    team_id: str,
    employee_id: str,
    db: Session = Depends(get_db),
    user = Depends(require_hr),
    ):
    service.remove_team_member(db, team_id, employee_id, actor=user)
    return {"message": "member removed"}
