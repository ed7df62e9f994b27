"""User endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    BaseIdRequest,
    MessageResponse,
    UserBaseUpdate,
    UserBasesResponse,
    UserCreate,
    UserCreatedResponse,
    UserResponse,
    UserUpdate,
)
from ..use_cases.accounts import (
    assign_base_use_case,
    create_user_use_case,
    delete_user_use_case,
    get_user_bases_use_case,
    get_user_use_case,
    list_users_use_case,
    remove_base_use_case,
    set_primary_base_use_case,
    set_user_base_use_case,
    update_user_use_case,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
def get_users(
    current_user: User = Depends(PermissionChecker("canViewUsers")),
    db: Session = Depends(get_db),
):
    """Admins see everyone; commanders see the personnel of their base."""
    users = list_users_use_case(db=db, current_user=current_user)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserResponse.model_validate(get_user_use_case(db=db, current_user=current_user, user_id=user_id))


@router.get("/{user_id}/bases", response_model=UserBasesResponse)
def get_user_bases(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = get_user_bases_use_case(db=db, current_user=current_user, user_id=user_id)
    return UserBasesResponse.model_validate(user)


@router.post("", response_model=UserCreatedResponse, status_code=201)
def create_user(
    payload: UserCreate,
    response: Response,
    current_user: User = Depends(PermissionChecker("canManageUsers")),
    db: Session = Depends(get_db),
):
    """Create a user. The temporary password is only returned here."""
    user, temporary_password = create_user_use_case(db=db, data=payload)
    response.headers["Cache-Control"] = "no-store"
    return UserCreatedResponse(user=UserResponse.model_validate(user), temporary_password=temporary_password)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    payload: UserUpdate,
    current_user: User = Depends(PermissionChecker("canManageUsers")),
    db: Session = Depends(get_db),
):
    return UserResponse.model_validate(update_user_use_case(db=db, user_id=user_id, data=payload))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: UUID,
    current_user: User = Depends(PermissionChecker("canManageUsers")),
    db: Session = Depends(get_db),
):
    delete_user_use_case(db=db, current_user=current_user, user_id=user_id)
    return MessageResponse(message="User deleted successfully")


@router.patch("/{user_id}/base", response_model=UserResponse)
def update_user_base(
    user_id: UUID,
    payload: UserBaseUpdate,
    current_user: User = Depends(PermissionChecker("canManageUsers")),
    db: Session = Depends(get_db),
):
    user = set_user_base_use_case(db=db, user_id=user_id, base_id=payload.base_id)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/assign-base", response_model=UserResponse)
def assign_base(
    user_id: UUID,
    payload: BaseIdRequest,
    current_user: User = Depends(PermissionChecker("canManageUsers")),
    db: Session = Depends(get_db),
):
    user = assign_base_use_case(db=db, user_id=user_id, base_id=payload.base_id)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}/remove-base/{base_id}", response_model=UserResponse)
def remove_base(
    user_id: UUID,
    base_id: UUID,
    current_user: User = Depends(PermissionChecker("canManageUsers")),
    db: Session = Depends(get_db),
):
    user = remove_base_use_case(db=db, user_id=user_id, base_id=base_id)
    return UserResponse.model_validate(user)


@router.put("/{user_id}/set-primary-base", response_model=UserResponse)
def set_primary_base(
    user_id: UUID,
    payload: BaseIdRequest,
    current_user: User = Depends(PermissionChecker("canManageUsers")),
    db: Session = Depends(get_db),
):
    user = set_primary_base_use_case(db=db, user_id=user_id, base_id=payload.base_id)
    return UserResponse.model_validate(user)
