from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Role, RoleName

DEFAULT_DESCRIPTIONS = {
    RoleName.admin: "Full access to every resource",
    RoleName.hr: "Manages employee records, teams and imports",
    RoleName.manager: "Sees and edits their direct reports",
    RoleName.employee: "Directory access only",
}


def get_role_by_name(db: Session, name: RoleName) -> Optional[Role]:
    return db.scalars(select(Role).where(Role.name == name)).first()


def get_or_create_role(db: Session, name: RoleName) -> Role:
    role = get_role_by_name(db, name)
    if role is None:
        role = Role(name=name, description=DEFAULT_DESCRIPTIONS.get(name))
        db.add(role)
        db.flush()
    return role
