from __future__ import annotations
from enum import Enum
from typing import Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base, generate_uuid


class RoleName(str, Enum):
    admin = "admin"
    hr = "hr"
    manager = "manager"
    employee = "employee"


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[RoleName] = mapped_column(
        SAEnum(RoleName, name="role_name"), unique=True, nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # relationships
    users = relationship("User", back_populates="role")
