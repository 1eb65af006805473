from __future__ import annotations
from typing import Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base, generate_uuid


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    # a lead need not be a member
    lead_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("employees.id", ondelete="SET NULL", use_alter=True, name="fk_teams_lead_id_employees"),
        index=True,
        nullable=True,
    )
    parent_team_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), index=True, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # relationships
    lead = relationship("Employee", foreign_keys=[lead_id], back_populates="teams_led")
    parent_team = relationship("Team", remote_side="Team.id", back_populates="sub_teams")
    sub_teams = relationship("Team", back_populates="parent_team", order_by="Team.name")
    members = relationship("Employee", foreign_keys="Employee.team_id", back_populates="team")
    memberships = relationship(
        "EmployeeTeamMembership", back_populates="team", cascade="all, delete-orphan"
    )

    @property
    def member_count(self) -> int:
        return len(self.memberships)
