from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import EmploymentStatus


class EmployeeSchema(BaseModel):
    id: str
    first_name: str
    last_name: str
    title: str
    department: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    manager_id: Optional[str] = None
    team_id: Optional[str] = None
    hire_date: date
    # left unset (and so absent from responses) when redacted
    salary: Optional[Decimal] = None
    status: EmploymentStatus
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class EmployeeSummary(BaseModel):
    id: str
    first_name: str
    last_name: str
    title: str
    department: Optional[str] = None
    email: Optional[str] = None
    status: EmploymentStatus
    model_config = ConfigDict(from_attributes=True)


# PUBLIC payload, what clients send
class EmployeeCreatePayload(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    department: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    manager_id: Optional[str] = None
    team_id: Optional[str] = None
    hire_date: date
    salary: Optional[Decimal] = Field(None, ge=0)
    status: EmploymentStatus = EmploymentStatus.active
    user_id: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    manager_id: Optional[str] = None
    team_id: Optional[str] = None
    hire_date: Optional[date] = None
    salary: Optional[Decimal] = Field(None, ge=0)
    status: Optional[EmploymentStatus] = None
    user_id: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


SortField = Literal["last_name", "first_name", "title", "department", "hire_date", "status", "created_at"]


class EmployeeFilters(BaseModel):
    department: Optional[str] = None
    status: Optional[EmploymentStatus] = None
    title: Optional[str] = None
    search: Optional[str] = None
    team_id: Optional[str] = None
    manager_id: Optional[str] = None
    sort_by: SortField = "last_name"
    sort_order: Literal["asc", "desc"] = "asc"


class BulkImportError(BaseModel):
    row: int
    email: Optional[str] = None
    error: str


class BulkImportResult(BaseModel):
    created: int = 0
    updated: int = 0
    success: int = 0
    errors: list[BulkImportError] = Field(default_factory=list)


class DeleteEmployeeResult(BaseModel):
    message: str = "employee deleted"
    reassigned_report_count: int = 0
    cleared_lead_count: int = 0
