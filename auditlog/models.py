from __future__ import annotations
from enum import Enum
from typing import Any, Optional
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, JSON, Enum as SAEnum, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base, generate_uuid


class AuditAction(str, Enum):
    create = "create"
    update = "update"
    delete = "delete"
    import_ = "import"
    export = "export"
    login = "login"
    logout = "logout"


class AuditLog(Base):
    """Append-only; rows are never updated or deleted by the application."""
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )
    action: Mapped[AuditAction] = mapped_column(
        SAEnum(AuditAction, name="audit_action", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)  # e.g. "Employee", "Team"
    entity_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    changes: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )

    # relationships
    user = relationship("User")

Index("ix_audit_logs_entity", AuditLog.entity_type, AuditLog.entity_id)
