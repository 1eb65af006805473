from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from auth.utils.auth_utils import get_password_hash
from core.exceptions import ConflictError, NotFoundError
from employee.models import Employee
from role.service import get_or_create_role
from user.models import User
from user.schemas import UserCreate


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.scalars(select(User).where(User.email == email)).first()


def create_user(db: Session, dto: UserCreate) -> User:
    if get_user_by_email(db, str(dto.email)) is not None:
        raise ConflictError("user email already exists")

    employee = None
    if dto.employee_id is not None:
        employee = db.get(Employee, dto.employee_id)
        if employee is None:
            raise NotFoundError(f"employee {dto.employee_id} not found")
        if employee.user_id is not None:
            raise ConflictError(f"employee {dto.employee_id} already has a login")

    db_user = User(
        email=str(dto.email),
        password_hash=get_password_hash(dto.password),
        role=get_or_create_role(db, dto.role),
        is_active=True,
    )
    db.add(db_user)
    db.flush()
    if employee is not None:
        employee.user_id = db_user.id
    db.commit()
    db.refresh(db_user)
    return db_user


def to_schema_dict(user: User) -> dict:
    employee = getattr(user, "employee", None)
    return {
        "id": user.id,
        "email": user.email,
        "is_active": user.is_active,
        "role": {"name": user.role.name},
        "employee_id": employee.id if employee is not None else None,
    }
