"""Assignment workflow endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    AssignmentCreate,
    AssignmentReturnRequest,
    AssignmentResponse,
    AssignmentStatusUpdate,
    AssignmentSummaryResponse,
    AssignmentUpdate,
    MessageResponse,
)
from ..time_utils import parse_iso_datetime
from ..use_cases.assignments import (
    assignment_summary_use_case,
    create_assignment_use_case,
    delete_assignment_use_case,
    get_assignment_use_case,
    list_assignments_use_case,
    return_assignment_use_case,
    update_assignment_status_use_case,
    update_assignment_use_case,
)

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.get("", response_model=list[AssignmentResponse])
def get_assignments(
    status: Optional[str] = Query(default=None),
    base: Optional[UUID] = Query(default=None),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_assignments_use_case(
        db=db,
        current_user=current_user,
        status=status,
        start=parse_iso_datetime(start_date, field="startDate"),
        end=parse_iso_datetime(end_date, field="endDate"),
        base_id=base,
    )


@router.get("/metrics/summary", response_model=AssignmentSummaryResponse)
def get_assignment_summary(
    base: Optional[UUID] = Query(default=None),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return assignment_summary_use_case(
        db=db,
        current_user=current_user,
        start=parse_iso_datetime(start_date, field="startDate"),
        end=parse_iso_datetime(end_date, field="endDate"),
        base_id=base,
    )


@router.get("/{assignment_id}", response_model=AssignmentResponse)
def get_assignment(
    assignment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_assignment_use_case(db=db, current_user=current_user, assignment_id=assignment_id)


@router.post("", response_model=AssignmentResponse, status_code=201)
def create_assignment(
    payload: AssignmentCreate,
    current_user: User = Depends(PermissionChecker("canCreateAssignments")),
    db: Session = Depends(get_db),
):
    return create_assignment_use_case(db=db, current_user=current_user, data=payload)


@router.put("/{assignment_id}", response_model=AssignmentResponse)
def update_assignment(
    assignment_id: UUID,
    payload: AssignmentUpdate,
    current_user: User = Depends(PermissionChecker("canEditAssignments")),
    db: Session = Depends(get_db),
):
    return update_assignment_use_case(
        db=db,
        current_user=current_user,
        assignment_id=assignment_id,
        data=payload,
    )


@router.patch("/{assignment_id}/return", response_model=AssignmentResponse)
def return_assignment(
    assignment_id: UUID,
    payload: Optional[AssignmentReturnRequest] = None,
    current_user: User = Depends(PermissionChecker("canCloseAssignments")),
    db: Session = Depends(get_db),
):
    return return_assignment_use_case(
        db=db,
        current_user=current_user,
        assignment_id=assignment_id,
        notes=payload.notes if payload else None,
    )


@router.patch("/{assignment_id}/status", response_model=AssignmentResponse)
def update_assignment_status(
    assignment_id: UUID,
    payload: AssignmentStatusUpdate,
    current_user: User = Depends(PermissionChecker("canCloseAssignments")),
    db: Session = Depends(get_db),
):
    return update_assignment_status_use_case(
        db=db,
        current_user=current_user,
        assignment_id=assignment_id,
        data=payload,
    )


@router.delete("/{assignment_id}", response_model=MessageResponse)
def delete_assignment(
    assignment_id: UUID,
    current_user: User = Depends(PermissionChecker("canEditAssignments")),
    db: Session = Depends(get_db),
):
    delete_assignment_use_case(db=db, current_user=current_user, assignment_id=assignment_id)
    return MessageResponse(message="Assignment deleted successfully")
