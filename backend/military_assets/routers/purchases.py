"""Purchase register endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import PurchaseCreate, PurchaseResponse, PurchaseStatusUpdate
from ..time_utils import parse_iso_datetime
from ..use_cases.purchases import (
    create_purchase_use_case,
    get_purchase_use_case,
    list_purchases_use_case,
    update_purchase_status_use_case,
)

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.get("", response_model=list[PurchaseResponse])
def get_purchases(
    base: Optional[UUID] = Query(default=None),
    status: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_purchases_use_case(
        db=db,
        current_user=current_user,
        base_id=base,
        status=status,
        start=parse_iso_datetime(start_date, field="startDate"),
        end=parse_iso_datetime(end_date, field="endDate"),
    )


@router.get("/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(
    purchase_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_purchase_use_case(db=db, current_user=current_user, purchase_id=purchase_id)


@router.post("", response_model=PurchaseResponse, status_code=201)
def create_purchase(
    payload: PurchaseCreate,
    current_user: User = Depends(PermissionChecker("canManagePurchases")),
    db: Session = Depends(get_db),
):
    return create_purchase_use_case(db=db, current_user=current_user, data=payload)


@router.patch("/{purchase_id}/status", response_model=PurchaseResponse)
def update_purchase_status(
    purchase_id: UUID,
    payload: PurchaseStatusUpdate,
    current_user: User = Depends(PermissionChecker("canManagePurchases")),
    db: Session = Depends(get_db),
):
    return update_purchase_status_use_case(
        db=db,
        current_user=current_user,
        purchase_id=purchase_id,
        data=payload,
    )
