"""Auth endpoints."""

from fastapi import APIRouter, Depends, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..auth import credentials_error, create_user_token, get_current_user, user_from_token
from ..database import get_db
from ..models import User
from ..schemas import (
    AuthData,
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserResponse,
)
from ..use_cases.accounts import login_use_case, register_use_case, update_profile_use_case

router = APIRouter(prefix="/auth", tags=["auth"])

_optional_bearer = HTTPBearer(auto_error=False)


def _set_no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"


def _auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(data=AuthData(token=token, user=UserResponse.model_validate(user)))


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    """Self-registration. Admin accounts cannot be created this way."""
    user = register_use_case(db=db, data=payload)
    _set_no_store(response)
    return _auth_response(user, create_user_token(user))


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = login_use_case(db=db, data=payload)
    _set_no_store(response)
    return _auth_response(user, create_user_token(user))


@router.get("/verify", response_model=AuthResponse)
def verify(
    credentials: HTTPAuthorizationCredentials | None = Depends(_optional_bearer),
    db: Session = Depends(get_db),
):
    """Check a bearer token and echo the user it belongs to."""
    if credentials is None:
        raise credentials_error("No token provided")
    user = user_from_token(credentials.credentials, db)
    return _auth_response(user, credentials.credentials)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = update_profile_use_case(db=db, current_user=current_user, data=payload)
    return UserResponse.model_validate(user)
