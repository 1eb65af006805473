from fastapi import Depends, HTTPException
from auth.services.auth_service import get_current_active_user
from role.models import RoleName
from user.models import User

def role_name(user) -> str:
    role = getattr(user, "role", None)
    return getattr(role, "name", None)

def require_roles(*allowed: RoleName):
    def dependency(user: User = Depends(get_current_active_user)) -> User:
        if role_name(user) not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return user
    return dependency

# admin and HR may mutate anything
require_hr = require_roles(RoleName.admin, RoleName.hr)

def require_manager(user: User = Depends(get_current_active_user)) -> User:
    if role_name(user) not in (RoleName.admin, RoleName.hr, RoleName.manager):
        raise HTTPException(status_code=403, detail="Manager role required")
    return user
