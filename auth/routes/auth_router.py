from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from core.database import get_db
from auditlog.models import AuditAction
from auditlog.service import record_audit
from auth.schemas import LoginPayload, Token
from auth.services.auth_service import authenticate_user
from auth.utils.auth_utils import create_access_token

auth_router = APIRouter(prefix="/auth", tags=["Auth"])


@auth_router.post("/token", response_model=Token)
def login(payload: LoginPayload, request: Request, db: Session = Depends(get_db)):
    user = authenticate_user(db, str(payload.email), payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    record_audit(
        db,
        actor_id=user.id,
        action=AuditAction.login,
        entity_type="User",
        entity_id=user.id,
        ip_address=request.client.host if request.client else None,
    )
    return Token(access_token=create_access_token(user.id))
