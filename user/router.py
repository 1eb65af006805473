from fastapi import APIRouter, Depends, status

from sqlalchemy.orm import Session

from auth.services.auth_service import get_current_active_user
from core.database import get_db
from user.models import User
from authz.deps import require_roles
from role.models import RoleName
from user.schemas import UserSchema, UserCreate
from user.service import create_user, to_schema_dict

user_router = APIRouter(
    prefix='/users',
    tags=['Users']
)

# Get current user (principal as the services see it)
@user_router.get('/me', response_model=UserSchema)
def user_me(current_user: User = Depends(get_current_active_user)):
    return to_schema_dict(current_user)

# Create a login, optionally linked to an employee (admin only)
@user_router.post("", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def user_post(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _admin = Depends(require_roles(RoleName.admin)),
    ):
    return to_schema_dict(create_user(db, payload))
