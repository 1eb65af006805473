from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_hr
from .models import AuditAction
from .schema import AuditLogSchema
from . import service

auditlog_router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])

# Newest first, capped at AUDIT_LOG_PAGE_SIZE
@auditlog_router.get("", response_model=list[AuditLogSchema])
def list_audit_logs(
    user_id: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    action: Optional[AuditAction] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    _user = Depends(require_hr),
    ):
    return service.get_audit_logs(
        db,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
    )

# Full history of one entity
@auditlog_router.get("/entity", response_model=list[AuditLogSchema])
def audit_logs_for_entity(
    entity_type: str = Query(...),
    entity_id: str = Query(...),
    db: Session = Depends(get_db),
    _user = Depends(require_hr),
    ):
    return service.get_audit_logs_for_entity(db, entity_type, entity_id)
