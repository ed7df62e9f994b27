"""Assignment workflow use-cases."""
from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..domain_errors import DomainError, conflict, forbidden
from ..identity import BaseCommanderIdentity, has_access_to_base, identity_from_user
from ..models import Asset, Assignment, MilitaryBase, User
from ..schemas import AssignmentCreate, AssignmentStatusUpdate, AssignmentUpdate
from ..security import apply_base_scope, ensure_base_access, require_entity
from ..services.assignment_rules import (
    closing_effect,
    format_assignment_number,
    normalize_assignment_status,
    validate_status_transition,
)
from ..services.ledger import add_movement
from ..time_utils import utcnow

logger = logging.getLogger(__name__)


def generate_assignment_number(db: Session, *, now: datetime | None = None) -> str:
    now = now or utcnow()
    midnight = datetime.combine(now.date(), time.min)
    today_count = db.query(Assignment).filter(Assignment.assignment_date >= midnight).count()
    return format_assignment_number(today_count, year=now.year, month=now.month, day=now.day)


def get_assignment_or_404(db: Session, assignment_id: UUID) -> Assignment:
    return require_entity(
        db, Assignment, assignment_id, code="ASSIGNMENT_NOT_FOUND", message="Assignment not found"
    )


def _insufficient(available: int, requested: int) -> DomainError:
    return conflict(
        "INSUFFICIENT_QUANTITY",
        f"Insufficient quantity available. Requested: {requested}, Available: {available}",
        details={"available": available, "requested": requested},
    )


def list_assignments_use_case(
    *,
    db: Session,
    current_user: User,
    status: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    base_id: Optional[UUID] = None,
) -> list[Assignment]:
    identity = identity_from_user(current_user)
    query = apply_base_scope(db.query(Assignment), identity, Assignment.base_id)
    if status:
        query = query.filter(Assignment.status == normalize_assignment_status(status))
    if start is not None:
        query = query.filter(Assignment.assignment_date >= start)
    if end is not None:
        query = query.filter(Assignment.assignment_date <= end)
    if base_id is not None:
        query = query.filter(Assignment.base_id == base_id)
    return query.order_by(Assignment.assignment_date.desc()).all()


def get_assignment_use_case(*, db: Session, current_user: User, assignment_id: UUID) -> Assignment:
    assignment = get_assignment_or_404(db, assignment_id)
    ensure_base_access(identity_from_user(current_user), assignment.base_id)
    return assignment


def create_assignment_use_case(*, db: Session, current_user: User, data: AssignmentCreate) -> Assignment:
    identity = identity_from_user(current_user)
    asset = require_entity(db, Asset, data.asset_id, code="ASSET_NOT_FOUND", message="Asset not found")
    base_id = data.base_id or asset.base_id

    if isinstance(identity, BaseCommanderIdentity):
        if identity.base_id != base_id:
            raise forbidden("ASSIGNMENT_BASE_DENIED", "You can only create assignments for your assigned base")
    elif not has_access_to_base(identity, base_id):
        raise forbidden("ASSIGNMENT_BASE_DENIED", "Access denied to this base")

    require_entity(db, MilitaryBase, base_id, code="BASE_NOT_FOUND", message="Base not found")
    assignee = require_entity(
        db, User, data.assigned_to_id, code="ASSIGNEE_NOT_FOUND", message="Assigned user not found"
    )
    if asset.quantity < data.quantity:
        raise _insufficient(asset.quantity, data.quantity)

    now = utcnow()
    assignment = Assignment(
        asset_id=asset.id,
        assigned_to_id=assignee.id,
        assigned_by_id=current_user.id,
        base_id=base_id,
        assignment_date=data.assignment_date or now,
        status="active",
        quantity=data.quantity,
        purpose=data.purpose,
        notes=data.notes,
        assignment_number=generate_assignment_number(db, now=now),
    )
    db.add(assignment)
    db.flush()

    asset.quantity -= data.quantity
    add_movement(
        asset,
        quantity=-data.quantity,
        kind="assignment",
        reference_type="assignment",
        reference_id=assignment.id,
        notes=f"Assigned to {assignee.full_name}",
        at=now,
    )
    db.commit()
    db.refresh(assignment)
    logger.info(
        "assignment.created id=%s asset=%s to=%s qty=%s",
        assignment.id, asset.id, assignee.id, assignment.quantity,
    )
    return assignment


def _close_assignment(db: Session, current_user: User, assignment: Assignment, next_status: str) -> Assignment:
    previous_status = assignment.status
    try:
        next_status = validate_status_transition(current_status=assignment.status, next_status=next_status)
    except ValueError as error:
        raise DomainError(
            code="ASSIGNMENT_INVALID_STATUS_TRANSITION",
            http_status=409,
            message=str(error),
        ) from error

    effect = closing_effect(next_status)
    now = utcnow()
    asset = assignment.asset
    if effect.restores_quantity:
        asset.quantity += assignment.quantity

    if next_status == "returned":
        notes = f"Returned by {assignment.assigned_to.full_name}"
    else:
        notes = f"Asset {next_status} - written off"
    add_movement(
        asset,
        quantity=effect.sign * assignment.quantity,
        kind=effect.movement_kind,
        reference_type="assignment",
        reference_id=assignment.id,
        notes=notes,
        at=now,
    )
    assignment.status = next_status
    assignment.return_date = now

    db.commit()
    db.refresh(assignment)
    logger.info(
        "assignment.status id=%s from=%s to=%s by=%s",
        assignment.id, previous_status, next_status, current_user.id,
    )
    return assignment


def return_assignment_use_case(
    *,
    db: Session,
    current_user: User,
    assignment_id: UUID,
    notes: Optional[str] = None,
) -> Assignment:
    assignment = get_assignment_or_404(db, assignment_id)
    ensure_base_access(identity_from_user(current_user), assignment.base_id)
    if notes is not None:
        assignment.notes = notes
    return _close_assignment(db, current_user, assignment, "returned")


def update_assignment_status_use_case(
    *,
    db: Session,
    current_user: User,
    assignment_id: UUID,
    data: AssignmentStatusUpdate,
) -> Assignment:
    assignment = get_assignment_or_404(db, assignment_id)
    ensure_base_access(identity_from_user(current_user), assignment.base_id)
    if data.notes is not None:
        assignment.notes = data.notes
    return _close_assignment(db, current_user, assignment, data.status)


def update_assignment_use_case(
    *,
    db: Session,
    current_user: User,
    assignment_id: UUID,
    data: AssignmentUpdate,
) -> Assignment:
    assignment = get_assignment_or_404(db, assignment_id)
    ensure_base_access(identity_from_user(current_user), assignment.base_id)
    payload = data.model_dump(exclude_unset=True)

    new_quantity = payload.get("quantity")
    if new_quantity is not None and new_quantity != assignment.quantity:
        if assignment.status != "active":
            raise conflict("ASSIGNMENT_NOT_ACTIVE", "Only active assignments can change quantity")
        asset = assignment.asset
        difference = assignment.quantity - new_quantity
        if asset.quantity + difference < 0:
            raise _insufficient(asset.quantity, -difference)
        asset.quantity += difference
        add_movement(
            asset,
            quantity=difference,
            kind="adjustment",
            reference_type="assignment",
            reference_id=assignment.id,
            notes=f"Quantity adjusted from {assignment.quantity} to {new_quantity}",
        )
        assignment.quantity = new_quantity

    if payload.get("assigned_to_id") is not None and payload["assigned_to_id"] != assignment.assigned_to_id:
        require_entity(
            db, User, payload["assigned_to_id"], code="ASSIGNEE_NOT_FOUND", message="Assigned user not found"
        )
        assignment.assigned_to_id = payload["assigned_to_id"]
    if payload.get("purpose"):
        assignment.purpose = payload["purpose"]
    if "notes" in payload:
        assignment.notes = payload["notes"]

    db.commit()
    db.refresh(assignment)
    return assignment


def delete_assignment_use_case(*, db: Session, current_user: User, assignment_id: UUID) -> None:
    assignment = get_assignment_or_404(db, assignment_id)
    ensure_base_access(identity_from_user(current_user), assignment.base_id)

    # Restores regardless of status, so deleting a returned assignment counts the quantity twice.
    asset = assignment.asset
    asset.quantity += assignment.quantity
    add_movement(
        asset,
        quantity=assignment.quantity,
        kind="adjustment",
        reference_type="assignment",
        reference_id=assignment.id,
        notes="Assignment deleted - quantity restored",
    )
    db.delete(assignment)
    db.commit()
    logger.info("assignment.deleted id=%s by=%s", assignment_id, current_user.id)


def assignment_summary_use_case(
    *,
    db: Session,
    current_user: User,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    base_id: Optional[UUID] = None,
) -> dict[str, Any]:
    identity = identity_from_user(current_user)
    query = apply_base_scope(db.query(Assignment), identity, Assignment.base_id)
    if base_id is not None and current_user.role == "admin":
        query = query.filter(Assignment.base_id == base_id)
    if start is not None:
        query = query.filter(Assignment.assignment_date >= start)
    if end is not None:
        query = query.filter(Assignment.assignment_date <= end)
    assignments = query.all()

    summary: dict[str, Any] = {
        "total_assignments": len(assignments),
        "total_quantity": sum(a.quantity or 0 for a in assignments),
        "by_status": {},
        "by_base": {},
        "by_personnel": {},
    }
    for assignment in assignments:
        qty = assignment.quantity or 0
        summary["by_status"][assignment.status] = summary["by_status"].get(assignment.status, 0) + 1

        base_bucket = summary["by_base"].setdefault(
            str(assignment.base_id),
            {
                "name": assignment.base.name if assignment.base else "Unknown Base",
                "total": 0,
                "active": 0,
                "returned": 0,
            },
        )
        base_bucket["total"] += qty
        if assignment.status in ("active", "returned"):
            base_bucket[assignment.status] += qty

        person_bucket = summary["by_personnel"].setdefault(
            str(assignment.assigned_to_id),
            {
                "name": assignment.assigned_to.full_name if assignment.assigned_to else "Unknown Personnel",
                "total": 0,
                "active": 0,
            },
        )
        person_bucket["total"] += qty
        if assignment.status == "active":
            person_bucket["active"] += qty
    return summary
