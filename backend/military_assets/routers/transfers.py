"""Transfer workflow endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    MessageResponse,
    TransferCreate,
    TransferResponse,
    TransferStatusUpdate,
    TransferUpdate,
)
from ..use_cases.transfers import (
    create_transfer_use_case,
    delete_transfer_use_case,
    get_transfer_use_case,
    list_transfers_by_base_use_case,
    list_transfers_use_case,
    update_transfer_status_use_case,
    update_transfer_use_case,
)

router = APIRouter(prefix="/transfers", tags=["transfers"])


@router.get("", response_model=list[TransferResponse])
def get_transfers(
    status: Optional[str] = Query(default=None),
    base: Optional[UUID] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_transfers_use_case(db=db, current_user=current_user, status=status, base_id=base)


@router.get("/base/{base_id}", response_model=list[TransferResponse])
def get_transfers_by_base(
    base_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_transfers_by_base_use_case(db=db, current_user=current_user, base_id=base_id)


@router.get("/{transfer_id}", response_model=TransferResponse)
def get_transfer(
    transfer_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_transfer_use_case(db=db, current_user=current_user, transfer_id=transfer_id)


@router.post("", response_model=TransferResponse, status_code=201)
def create_transfer(
    payload: TransferCreate,
    current_user: User = Depends(PermissionChecker("canCreateTransfers")),
    db: Session = Depends(get_db),
):
    return create_transfer_use_case(db=db, current_user=current_user, data=payload)


@router.put("/{transfer_id}", response_model=TransferResponse)
def update_transfer(
    transfer_id: UUID,
    payload: TransferUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return update_transfer_use_case(db=db, current_user=current_user, transfer_id=transfer_id, data=payload)


@router.patch("/{transfer_id}/status", response_model=TransferResponse)
def update_transfer_status(
    transfer_id: UUID,
    payload: TransferStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return update_transfer_status_use_case(
        db=db,
        current_user=current_user,
        transfer_id=transfer_id,
        data=payload,
    )


@router.delete("/{transfer_id}", response_model=MessageResponse)
def delete_transfer(
    transfer_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    delete_transfer_use_case(db=db, current_user=current_user, transfer_id=transfer_id)
    return MessageResponse(message="Transfer deleted successfully")
