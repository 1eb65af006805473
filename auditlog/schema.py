from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict

from .models import AuditAction


class AuditLogSchema(BaseModel):
    id: str
    user_id: Optional[str] = None
    action: AuditAction
    entity_type: str
    entity_id: Optional[str] = None
    changes: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
