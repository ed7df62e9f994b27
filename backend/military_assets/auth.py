"""Authentication and authorization."""
from datetime import timedelta
from typing import Optional
import logging
import secrets
import time
from uuid import UUID
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from .config import settings
from .database import get_db
from .models import User

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
logger = logging.getLogger(__name__)

# Bearer token scheme
security = HTTPBearer()


TEMP_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz23456789"


def credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def generate_temporary_password(length: int | None = None) -> str:
    """Generate a cryptographically strong temporary password (returned only once)."""
    size = length or settings.TEMP_PASSWORD_LENGTH
    if size < 16:
        # Enforce a safe minimum regardless of env misconfiguration.
        size = 16
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(size))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Invalid/corrupted hash should not crash login flow.
        logger.exception("Password verification failed due to invalid hash format")
        return False


def get_password_hash(password: str) -> str:
    """Hash password."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    now = int(time.time())
    if expires_delta:
        exp = now + int(expires_delta.total_seconds())
    else:
        exp = now + int(settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES) * 60
    to_encode.update({"exp": exp, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_user_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def decode_token(token: str) -> dict:
    """Decode JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError:
        raise credentials_error()

    now = int(time.time())
    try:
        exp_int = int(payload["exp"])
    except (KeyError, TypeError, ValueError):
        raise credentials_error()
    if now > exp_int + int(settings.JWT_LEEWAY_SECONDS):
        raise credentials_error("Token expired")

    iat = payload.get("iat")
    if iat is not None:
        try:
            iat_int = int(iat)
        except (TypeError, ValueError):
            raise credentials_error()
        # Reject tokens issued far in the future (clock skew / malicious tokens).
        if iat_int > now + int(settings.JWT_LEEWAY_SECONDS):
            raise credentials_error()
    return payload


def _parse_token_subject(payload: dict) -> UUID:
    """Parse and validate JWT subject as UUID."""
    sub = payload.get("sub")
    if not sub:
        raise credentials_error()
    try:
        return UUID(str(sub))
    except ValueError:
        raise credentials_error()


def user_from_token(token: str, db: Session) -> User:
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise credentials_error("Invalid token type")

    user_id = _parse_token_subject(payload)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_error("User not found")
    if not user.is_active:
        raise credentials_error("User account is inactive")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    return user_from_token(credentials.credentials, db)


# Permission checks
class PermissionChecker:
    """Check user permissions based on role."""

    def __init__(self, required_permission: str):
        self.required_permission = required_permission

    def __call__(self, current_user: User = Depends(get_current_user)):
        """Check if user has required permission."""
        if not check_permission(current_user, self.required_permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {self.required_permission} required"
            )
        return current_user


# Role permissions matrix
ROLE_PERMISSIONS = {
    "admin": {
        "canManageUsers": True,
        "canViewUsers": True,
        "canCreateBases": True,
        "canEditBases": True,
        "canDeleteBases": True,
        "canManageAssets": True,
        "canCreateTransfers": True,
        "canCreateAssignments": True,
        "canEditAssignments": True,
        "canCloseAssignments": True,
        "canManagePurchases": True,
        "canViewAllBases": True,
    },
    "base_commander": {
        "canManageUsers": False,
        "canViewUsers": True,
        "canCreateBases": True,
        "canEditBases": True,
        "canDeleteBases": True,
        "canManageAssets": True,
        "canCreateTransfers": True,
        "canCreateAssignments": True,
        "canEditAssignments": True,
        "canCloseAssignments": False,
        "canManagePurchases": True,
        "canViewAllBases": False,
    },
    "logistics_officer": {
        "canManageUsers": False,
        "canViewUsers": False,
        "canCreateBases": False,
        "canEditBases": False,
        "canDeleteBases": False,
        "canManageAssets": True,
        "canCreateTransfers": True,
        "canCreateAssignments": True,
        "canEditAssignments": True,
        "canCloseAssignments": True,
        "canManagePurchases": True,
        "canViewAllBases": False,
    },
}


def check_permission(user: User, permission: str) -> bool:
    """Check if user has specific permission."""
    permissions = ROLE_PERMISSIONS.get(user.role, {})
    return permissions.get(permission, False)
