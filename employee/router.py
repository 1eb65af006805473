from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_hr, require_manager
from hierarchy.schema import OrgChartNode
from .models import EmploymentStatus
from .schema import (
    BulkImportResult,
    DeleteEmployeeResult,
    EmployeeCreatePayload,
    EmployeeFilters,
    EmployeeSchema,
    EmployeeUpdate,
    SortField,
)
from . import service

employee_router = APIRouter(prefix="/employees", tags=["Employees"])

# List employees visible to the caller
@employee_router.get("", response_model=list[EmployeeSchema], response_model_exclude_unset=True)
def list_employees(
    department: Optional[str] = Query(None),
    status_filter: Optional[EmploymentStatus] = Query(None, alias="status"),
    title: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    team_id: Optional[str] = Query(None),
    manager_id: Optional[str] = Query(None),
    sort_by: SortField = Query("last_name"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    filters = EmployeeFilters(
        department=department,
        status=status_filter,
        title=title,
        search=search,
        team_id=team_id,
        manager_id=manager_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return service.get_employees(db, user, filters)

# Org chart (manager forest)
@employee_router.get("/org-chart", response_model=list[OrgChartNode])
def org_chart(db: Session = Depends(get_db), _user = Depends(get_current_active_user)):
    return service.get_org_chart(db)

# Get employee by id
@employee_router.get("/{employee_id}", response_model=EmployeeSchema, response_model_exclude_unset=True)
def employee_detail(employee_id: str, db: Session = Depends(get_db), user = Depends(get_current_active_user)):
    return service.get_employee_for_actor(db, employee_id, user)

# Direct reports of one manager
@employee_router.get(
    "/{employee_id}/direct-reports",
    response_model=list[EmployeeSchema],
    response_model_exclude_unset=True,
)
def direct_reports(employee_id: str, db: Session = Depends(get_db), user = Depends(require_manager)):
    return service.get_direct_reports(db, employee_id, user)

# Create employee (admin / hr)
@employee_router.post(
    "",
    response_model=EmployeeSchema,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def employee_post(payload: EmployeeCreatePayload, db: Session = Depends(get_db), user = Depends(require_hr)):
    try:
        return service.create_employee(db, payload, actor=user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="employee email already exists")

# Bulk import (admin / hr); rows are validated one by one
@employee_router.post("/bulk-import", response_model=BulkImportResult)
def employee_bulk_import(
    rows: list[Any] = Body(...),
    db: Session = Depends(get_db),
    user = Depends(require_hr),
    ):
    return service.bulk_import(db, rows, actor=user)

# Update employee (admin / hr / manager of the employee)
@employee_router.patch("/{employee_id}", response_model=EmployeeSchema, response_model_exclude_unset=True)
def employee_patch(
    employee_id: str,
    payload: EmployeeUpdate,
    db: Session = Depends(get_db),
    user = Depends(require_manager),
    ):
    try:
        return service.update_employee(db, employee_id, payload, actor=user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="employee email already exists")

# Delete employee (admin / hr); direct reports become roots
@employee_router.delete("/{employee_id}", response_model=DeleteEmployeeResult)
def employee_delete(employee_id: str, db: Session = Depends(get_db), user = Depends(require_hr)):
    result = service.delete_employee(db, employee_id, actor=user)
    return DeleteEmployeeResult(
        reassigned_report_count=result.reassigned_report_count,
        cleared_lead_count=result.cleared_lead_count,
    )
