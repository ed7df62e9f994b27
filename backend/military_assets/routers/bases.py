"""Base registry endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import BaseCreate, BaseResponse, BaseUpdate, MessageResponse
from ..use_cases.bases import (
    create_base_use_case,
    delete_base_use_case,
    get_base_or_404,
    list_bases_use_case,
    update_base_use_case,
)

router = APIRouter(prefix="/bases", tags=["bases"])


@router.get("", response_model=list[BaseResponse])
def get_bases(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_bases_use_case(db=db)


@router.get("/{base_id}", response_model=BaseResponse)
def get_base(
    base_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_base_or_404(db, base_id)


@router.post("", response_model=BaseResponse, status_code=201)
def create_base(
    payload: BaseCreate,
    current_user: User = Depends(PermissionChecker("canCreateBases")),
    db: Session = Depends(get_db),
):
    return create_base_use_case(db=db, current_user=current_user, data=payload)


@router.put("/{base_id}", response_model=BaseResponse)
def update_base(
    base_id: UUID,
    payload: BaseUpdate,
    current_user: User = Depends(PermissionChecker("canEditBases")),
    db: Session = Depends(get_db),
):
    return update_base_use_case(db=db, current_user=current_user, base_id=base_id, data=payload)


@router.delete("/{base_id}", response_model=MessageResponse)
def delete_base(
    base_id: UUID,
    current_user: User = Depends(PermissionChecker("canDeleteBases")),
    db: Session = Depends(get_db),
):
    delete_base_use_case(db=db, current_user=current_user, base_id=base_id)
    return MessageResponse(message="Base deleted successfully")
