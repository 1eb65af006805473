from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Optional, List

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config_loader import settings
from .models import AuditLog, AuditAction

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    *,
    actor_id: Optional[str],
    action: AuditAction,
    entity_type: str,
    entity_id: Optional[str] = None,
    changes: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> Optional[AuditLog]:
    """Append an audit row after the mutation it describes has committed.

    A failed audit write is rolled back and logged; it never undoes the
    mutation. Returns None in that case.
    """
    row = AuditLog(
        user_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        changes=jsonable_encoder(changes) if changes is not None else None,
        ip_address=ip_address,
    )
    db.add(row)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "audit write failed: %s %s %s by %s", action.value, entity_type, entity_id, actor_id, exc_info=True
        )
        return None
    return row


def get_audit_logs(
    db: Session,
    *,
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    action: Optional[AuditAction] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[AuditLog]:
    stmt = select(AuditLog)
    if user_id is not None:
        stmt = stmt.where(AuditLog.user_id == user_id)
    if entity_type is not None:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        stmt = stmt.where(AuditLog.entity_id == entity_id)
    if action is not None:
        stmt = stmt.where(AuditLog.action == action)
    if start_date is not None:
        stmt = stmt.where(AuditLog.created_at >= start_date)
    if end_date is not None:
        stmt = stmt.where(AuditLog.created_at <= end_date)
    stmt = stmt.order_by(AuditLog.created_at.desc()).limit(limit or settings.AUDIT_LOG_PAGE_SIZE)
    return list(db.scalars(stmt))


def get_audit_logs_for_entity(db: Session, entity_type: str, entity_id: str) -> List[AuditLog]:
    stmt = (
        select(AuditLog)
        .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.desc())
    )
    return list(db.scalars(stmt))
