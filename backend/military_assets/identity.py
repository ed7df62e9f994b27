"""Role-shaped view of the authenticated user and base-access predicates."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Union
from uuid import UUID

from .models import User


@dataclass(frozen=True)
class AdminIdentity:
    user_id: UUID
    role: str = field(default="admin", init=False)


@dataclass(frozen=True)
class BaseCommanderIdentity:
    user_id: UUID
    base_id: Optional[UUID]
    role: str = field(default="base_commander", init=False)


@dataclass(frozen=True)
class LogisticsOfficerIdentity:
    user_id: UUID
    assigned_base_ids: FrozenSet[UUID]
    primary_base_id: Optional[UUID] = None
    role: str = field(default="logistics_officer", init=False)


Identity = Union[AdminIdentity, BaseCommanderIdentity, LogisticsOfficerIdentity]


def identity_from_user(user: User) -> Identity:
    """Build the identity once from the persisted user row."""
    if user.role == "admin":
        return AdminIdentity(user_id=user.id)
    if user.role == "base_commander":
        return BaseCommanderIdentity(user_id=user.id, base_id=user.base_id)
    if user.role == "logistics_officer":
        return LogisticsOfficerIdentity(
            user_id=user.id,
            assigned_base_ids=frozenset(b.id for b in user.assigned_bases),
            primary_base_id=user.primary_base_id,
        )
    raise ValueError(f"Unknown role: {user.role}")


def has_access_to_base(identity: Identity, base_id: Optional[UUID]) -> bool:
    if base_id is None:
        return False
    if isinstance(identity, AdminIdentity):
        return True
    if isinstance(identity, BaseCommanderIdentity):
        return identity.base_id is not None and identity.base_id == base_id
    if isinstance(identity, LogisticsOfficerIdentity):
        return base_id in identity.assigned_base_ids
    return False


def can_manage_base(identity: Identity, base_id: Optional[UUID]) -> bool:
    return has_access_to_base(identity, base_id)


def accessible_base_ids(identity: Identity) -> Optional[FrozenSet[UUID]]:
    """None means unrestricted."""
    if isinstance(identity, AdminIdentity):
        return None
    if isinstance(identity, BaseCommanderIdentity):
        return frozenset({identity.base_id}) if identity.base_id else frozenset()
    return identity.assigned_base_ids


def is_admin(identity: Identity) -> bool:
    return isinstance(identity, AdminIdentity)
