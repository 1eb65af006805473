from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from hierarchy.schema import TeamLeadSummary


class TeamSchema(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    lead_id: Optional[str] = None
    parent_team_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class TeamDetailSchema(TeamSchema):
    lead: Optional[TeamLeadSummary] = None
    parent_team: Optional[TeamSchema] = None
    sub_teams: list[TeamSchema] = Field(default_factory=list)
    member_count: int = 0


# PUBLIC payload, what clients send
class TeamCreatePayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    lead_id: Optional[str] = None
    parent_team_id: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    lead_id: Optional[str] = None
    parent_team_id: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class TeamMembershipSchema(BaseModel):
    id: str
    employee_id: str
    team_id: str
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class DeleteTeamResult(BaseModel):
    message: str = "team deleted"
    reassigned_subteam_count: int = 0
    new_parent_id: Optional[str] = None
