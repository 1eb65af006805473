from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field


class OrgChartNode(BaseModel):
    id: str
    name: str
    title: str
    department: Optional[str] = None
    team_id: Optional[str] = None
    children: list[OrgChartNode] = Field(default_factory=list)


class TeamLeadSummary(BaseModel):
    id: str
    name: str
    title: str


class TeamHierarchyNode(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    lead: Optional[TeamLeadSummary] = None
    member_count: int = 0
    # member_count summed over this team and every descendant
    total_member_count: int = 0
    sub_teams: list[TeamHierarchyNode] = Field(default_factory=list)

