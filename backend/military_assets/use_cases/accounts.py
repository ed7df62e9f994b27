"""Authentication, profile and user-administration use-cases."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth import generate_temporary_password, get_password_hash, verify_password
from ..domain_errors import DomainError, conflict, forbidden, invalid
from ..models import MilitaryBase, User
from ..schemas import LoginRequest, ProfileUpdate, RegisterRequest, UserCreate, UserUpdate
from ..security import require_entity
from ..time_utils import utcnow

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _ensure_email_free(db: Session, email: str, *, exclude_user_id: UUID | None = None) -> None:
    query = db.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise conflict("USER_EXISTS", "User already exists")


def _get_user_or_404(db: Session, user_id: UUID) -> User:
    return require_entity(db, User, user_id, code="USER_NOT_FOUND", message="User not found")


def _get_base_or_404(db: Session, base_id: UUID) -> MilitaryBase:
    return require_entity(db, MilitaryBase, base_id, code="BASE_NOT_FOUND", message="Base not found")


def ensure_single_commander(db: Session, *, base_id: UUID, user_id: UUID | None) -> None:
    """At most one active commander per base."""
    query = db.query(User.id).filter(
        User.role == "base_commander",
        User.base_id == base_id,
        User.is_active.is_(True),
    )
    if user_id is not None:
        query = query.filter(User.id != user_id)
    if query.first():
        raise conflict("BASE_COMMANDER_EXISTS", "This base already has a commander assigned")


def _release_commanded_base(db: Session, user: User) -> None:
    if user.id is None:
        return
    db.query(MilitaryBase).filter(MilitaryBase.commander_id == user.id).update(
        {MilitaryBase.commander_id: None},
        synchronize_session="fetch",
    )


def apply_base_affiliation(db: Session, user: User, base: MilitaryBase | None) -> None:
    """Attach a base according to the user's role."""
    if user.role == "admin":
        if base is not None:
            raise invalid("ADMIN_HAS_NO_BASE", "Admins are not affiliated with a base")
        user.normalize_affiliation()
        return

    if user.role == "base_commander":
        _release_commanded_base(db, user)
        if base is None:
            user.base_id = None
        else:
            ensure_single_commander(db, base_id=base.id, user_id=user.id)
            user.base_id = base.id
            base.commander_id = user.id
        user.normalize_affiliation()
        return

    # logistics_officer
    if base is not None and base not in user.assigned_bases:
        user.assigned_bases.append(base)
    if base is not None and user.primary_base_id is None:
        user.primary_base_id = base.id
    user.normalize_affiliation()


# Authentication


def register_use_case(*, db: Session, data: RegisterRequest) -> User:
    email = normalize_email(data.email)
    role = data.role or "logistics_officer"
    if role == "admin":
        raise forbidden("ADMIN_SELF_REGISTRATION_FORBIDDEN", "Admin accounts cannot be self-registered")

    _ensure_email_free(db, email)
    user = User(
        email=email,
        password_hash=get_password_hash(data.password),
        full_name=data.full_name.strip(),
        role=role,
        is_active=True,
    )
    user.assigned_bases = []
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user.registered id=%s role=%s", user.id, user.role)
    return user


def login_use_case(*, db: Session, data: LoginRequest) -> User:
    email = normalize_email(data.email)
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise DomainError(code="INVALID_CREDENTIALS", http_status=401, message="Invalid email or password")
    if not user.is_active:
        raise DomainError(
            code="ACCOUNT_INACTIVE",
            http_status=401,
            message="Account is inactive. Please contact administrator.",
        )
    if not verify_password(data.password, user.password_hash):
        raise DomainError(code="INVALID_CREDENTIALS", http_status=401, message="Invalid email or password")

    user.last_login = utcnow()
    db.commit()
    logger.info("user.login id=%s", user.id)
    return user


def update_profile_use_case(*, db: Session, current_user: User, data: ProfileUpdate) -> User:
    if data.full_name:
        current_user.full_name = data.full_name.strip()
    if data.email:
        email = normalize_email(data.email)
        _ensure_email_free(db, email, exclude_user_id=current_user.id)
        current_user.email = email
    if data.new_password:
        if not data.current_password or not verify_password(data.current_password, current_user.password_hash):
            raise invalid("CURRENT_PASSWORD_INCORRECT", "Current password is incorrect")
        current_user.password_hash = get_password_hash(data.new_password)
    db.commit()
    db.refresh(current_user)
    return current_user


# User administration


def list_users_use_case(*, db: Session, current_user: User) -> list[User]:
    query = db.query(User)
    if current_user.role == "base_commander":
        if current_user.base_id is None:
            # Without a base the commander still needs assignees to pick from.
            query = query.filter(User.role != "admin")
        else:
            base_id = current_user.base_id
            query = query.filter(
                or_(
                    User.base_id == base_id,
                    User.assigned_bases.any(MilitaryBase.id == base_id),
                )
            )
    return query.order_by(User.created_at.desc()).all()


def _shares_base(viewer: User, target: User) -> bool:
    if viewer.base_id is None:
        return False
    if target.base_id == viewer.base_id:
        return True
    return any(b.id == viewer.base_id for b in target.assigned_bases)


def get_user_use_case(*, db: Session, current_user: User, user_id: UUID) -> User:
    user = _get_user_or_404(db, user_id)
    if current_user.role == "admin" or current_user.id == user.id:
        return user
    if current_user.role == "base_commander" and _shares_base(current_user, user):
        return user
    raise forbidden("USER_ACCESS_DENIED", "Access denied")


def get_user_bases_use_case(*, db: Session, current_user: User, user_id: UUID) -> User:
    user = _get_user_or_404(db, user_id)
    if current_user.role != "admin" and current_user.id != user.id:
        raise forbidden("USER_ACCESS_DENIED", "Access denied")
    return user


def create_user_use_case(*, db: Session, data: UserCreate) -> tuple[User, str]:
    """Create a user with a one-time temporary password."""
    email = normalize_email(data.email)
    _ensure_email_free(db, email)

    temporary_password = generate_temporary_password()
    user = User(
        email=email,
        password_hash=get_password_hash(temporary_password),
        full_name=data.full_name.strip(),
        role=data.role,
        is_active=data.is_active,
    )
    user.assigned_bases = []
    db.add(user)
    db.flush()

    if data.role == "logistics_officer":
        for base_id in data.assigned_base_ids:
            apply_base_affiliation(db, user, _get_base_or_404(db, base_id))
    if data.base_id is not None:
        apply_base_affiliation(db, user, _get_base_or_404(db, data.base_id))

    db.commit()
    db.refresh(user)
    logger.info("user.created id=%s role=%s", user.id, user.role)
    return user, temporary_password


def update_user_use_case(*, db: Session, user_id: UUID, data: UserUpdate) -> User:
    user = _get_user_or_404(db, user_id)
    payload = data.model_dump(exclude_unset=True)

    if "email" in payload and payload["email"]:
        email = normalize_email(payload["email"])
        _ensure_email_free(db, email, exclude_user_id=user.id)
        user.email = email
    if payload.get("full_name"):
        user.full_name = payload["full_name"].strip()
    reactivated = payload.get("is_active") is True and not user.is_active
    if payload.get("is_active") is not None:
        user.is_active = payload["is_active"]

    role_changed = bool(payload.get("role")) and payload["role"] != user.role
    if role_changed:
        if user.role == "admin" and _admin_count(db) <= 1:
            raise conflict("LAST_ADMIN", "Cannot change the role of the last admin user")
        if user.role == "base_commander":
            _release_commanded_base(db, user)
        user.role = payload["role"]

    if "base_id" in payload:
        base = _get_base_or_404(db, payload["base_id"]) if payload["base_id"] else None
        apply_base_affiliation(db, user, base)
    elif role_changed:
        apply_base_affiliation(db, user, None)

    if reactivated and user.role == "base_commander" and user.base_id is not None:
        # The base may have been handed to another commander meanwhile.
        ensure_single_commander(db, base_id=user.base_id, user_id=user.id)

    db.commit()
    db.refresh(user)
    return user


def _admin_count(db: Session) -> int:
    return db.query(User).filter(User.role == "admin").count()


def delete_user_use_case(*, db: Session, current_user: User, user_id: UUID) -> None:
    user = _get_user_or_404(db, user_id)
    if user.role == "admin" and _admin_count(db) <= 1:
        raise conflict("LAST_ADMIN", "Cannot delete the last admin user")

    _release_commanded_base(db, user)
    db.delete(user)
    db.commit()
    logger.info("user.deleted id=%s by=%s", user_id, current_user.id)


def set_user_base_use_case(*, db: Session, user_id: UUID, base_id: UUID | None) -> User:
    user = _get_user_or_404(db, user_id)
    base = _get_base_or_404(db, base_id) if base_id else None
    apply_base_affiliation(db, user, base)
    db.commit()
    db.refresh(user)
    return user


def assign_base_use_case(*, db: Session, user_id: UUID, base_id: UUID) -> User:
    user = _get_user_or_404(db, user_id)
    base = _get_base_or_404(db, base_id)
    if user.role == "admin":
        raise invalid("ADMIN_HAS_NO_BASE", "Admins are not affiliated with a base")
    apply_base_affiliation(db, user, base)
    db.commit()
    db.refresh(user)
    return user


def remove_base_use_case(*, db: Session, user_id: UUID, base_id: UUID) -> User:
    user = _get_user_or_404(db, user_id)
    if user.role == "base_commander":
        if user.base_id == base_id:
            _release_commanded_base(db, user)
            user.base_id = None
    elif user.role == "logistics_officer":
        user.assigned_bases = [b for b in user.assigned_bases if b.id != base_id]
        if user.primary_base_id == base_id:
            user.primary_base_id = None
        user.normalize_affiliation()
    db.commit()
    db.refresh(user)
    return user


def set_primary_base_use_case(*, db: Session, user_id: UUID, base_id: UUID) -> User:
    user = _get_user_or_404(db, user_id)
    if user.role != "logistics_officer":
        raise invalid("PRIMARY_BASE_ROLE", "Only logistics officers can have a primary base")
    if all(b.id != base_id for b in user.assigned_bases):
        raise invalid("PRIMARY_BASE_NOT_ASSIGNED", "Cannot set primary base that is not in assigned bases")
    user.primary_base_id = base_id
    db.commit()
    db.refresh(user)
    return user
