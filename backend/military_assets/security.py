"""Security helpers (RBAC, base scoping, and access checks)."""

from __future__ import annotations

from typing import Any, Iterable, TypeVar
from uuid import UUID

from sqlalchemy import false, or_
from sqlalchemy.orm import Session

from .auth import check_permission
from .domain_errors import forbidden, not_found
from .identity import Identity, accessible_base_ids, can_manage_base, has_access_to_base
from .models import User

T = TypeVar("T")


def require_permission(user: User, permission: str) -> None:
    """Enforce a role permission server-side."""
    if not check_permission(user, permission):
        raise forbidden("PERMISSION_DENIED", f"Permission denied: {permission} required")


def require_entity(db: Session, model: type[T], entity_id: UUID, *, code: str, message: str) -> T:
    """Load an entity by id or raise 404."""
    entity = db.get(model, entity_id)
    if entity is None:
        raise not_found(code, message)
    return entity


def ensure_base_access(identity: Identity, base_id: UUID | None, message: str = "Access denied to this base") -> None:
    if not has_access_to_base(identity, base_id):
        raise forbidden("BASE_ACCESS_DENIED", message)


def ensure_can_manage_base(
    identity: Identity,
    base_id: UUID | None,
    message: str = "You do not have permission to manage assets in this base",
) -> None:
    if not can_manage_base(identity, base_id):
        raise forbidden("BASE_MANAGE_DENIED", message)


def apply_base_scope(query: Any, identity: Identity, *columns: Any) -> Any:
    """Restrict a query to rows whose base column(s) the identity can see."""
    base_ids = accessible_base_ids(identity)
    if base_ids is None:
        return query
    if not base_ids:
        return query.filter(false())
    clauses = [column.in_(list(base_ids)) for column in columns]
    if len(clauses) == 1:
        return query.filter(clauses[0])
    return query.filter(or_(*clauses))


def scoped_base_ids(identity: Identity, requested: Iterable[UUID] | None = None) -> list[UUID] | None:
    """Intersect requested bases with what the identity may see. None means all."""
    allowed = accessible_base_ids(identity)
    if requested is None:
        return None if allowed is None else list(allowed)
    requested = list(requested)
    if allowed is None:
        return requested
    return [b for b in requested if b in allowed]
