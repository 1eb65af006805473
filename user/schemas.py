from typing import Optional
from pydantic import BaseModel, EmailStr, ConfigDict, Field

from role.models import RoleName


class RoleSchema(BaseModel):
    name: RoleName
    model_config = ConfigDict(from_attributes=True)


class UserSchema(BaseModel):
    id: str
    email: EmailStr
    is_active: bool
    role: RoleSchema
    employee_id: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: RoleName = RoleName.employee
    employee_id: Optional[str] = None
    model_config = ConfigDict(extra="forbid")
