"""Transfer workflow use-cases."""
from __future__ import annotations

import logging
import random
import time
from typing import Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..domain_errors import DomainError, conflict, forbidden, invalid
from ..identity import (
    BaseCommanderIdentity,
    can_manage_base,
    has_access_to_base,
    identity_from_user,
)
from ..models import Asset, MilitaryBase, Transfer, User
from ..schemas import TransferCreate, TransferStatusUpdate, TransferUpdate
from ..security import apply_base_scope, ensure_can_manage_base, require_entity
from ..services.ledger import add_movement
from ..services.transfer_rules import (
    apply_status_timestamps,
    normalize_transfer_status,
    validate_status_transition,
)
from ..time_utils import utcnow

logger = logging.getLogger(__name__)


def generate_transfer_number() -> str:
    return f"TRF-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def get_transfer_or_404(db: Session, transfer_id: UUID) -> Transfer:
    return require_entity(db, Transfer, transfer_id, code="TRANSFER_NOT_FOUND", message="Transfer not found")


def list_transfers_use_case(
    *,
    db: Session,
    current_user: User,
    status: Optional[str] = None,
    base_id: Optional[UUID] = None,
) -> list[Transfer]:
    identity = identity_from_user(current_user)
    query = apply_base_scope(db.query(Transfer), identity, Transfer.from_base_id, Transfer.to_base_id)
    if status:
        query = query.filter(Transfer.status == normalize_transfer_status(status))
    if base_id:
        query = query.filter(or_(Transfer.from_base_id == base_id, Transfer.to_base_id == base_id))
    return query.order_by(Transfer.created_at.desc()).all()


def list_transfers_by_base_use_case(*, db: Session, current_user: User, base_id: UUID) -> list[Transfer]:
    ensure_can_manage_base(identity_from_user(current_user), base_id)
    return db.query(Transfer).filter(
        or_(Transfer.from_base_id == base_id, Transfer.to_base_id == base_id)
    ).order_by(Transfer.created_at.desc()).all()


def get_transfer_use_case(*, db: Session, current_user: User, transfer_id: UUID) -> Transfer:
    transfer = get_transfer_or_404(db, transfer_id)
    identity = identity_from_user(current_user)
    if not (has_access_to_base(identity, transfer.from_base_id) or has_access_to_base(identity, transfer.to_base_id)):
        raise forbidden("TRANSFER_ACCESS_DENIED", "Access denied to this transfer")
    return transfer


def create_transfer_use_case(*, db: Session, current_user: User, data: TransferCreate) -> Transfer:
    if data.from_base_id == data.to_base_id:
        raise invalid("TRANSFER_SAME_BASE", "Source and destination bases must differ")

    identity = identity_from_user(current_user)
    if isinstance(identity, BaseCommanderIdentity):
        if identity.base_id != data.from_base_id:
            raise forbidden("TRANSFER_SOURCE_DENIED", "You can only create transfers from your base")
    elif not has_access_to_base(identity, data.from_base_id):
        raise forbidden("TRANSFER_SOURCE_DENIED", "Access denied to the source base")

    require_entity(db, MilitaryBase, data.to_base_id, code="BASE_NOT_FOUND", message="Destination base not found")
    asset = require_entity(db, Asset, data.asset_id, code="ASSET_NOT_FOUND", message="Asset not found")
    if asset.base_id != data.from_base_id:
        raise conflict("TRANSFER_ASSET_NOT_AT_SOURCE", "Asset is not located at the source base")
    if asset.quantity < data.quantity:
        raise conflict(
            "INSUFFICIENT_QUANTITY",
            "Insufficient quantity available",
            details={"available": asset.quantity, "requested": data.quantity},
        )

    transfer = Transfer(
        asset_id=asset.id,
        from_base_id=data.from_base_id,
        to_base_id=data.to_base_id,
        quantity=data.quantity,
        reason=data.reason,
        notes=data.notes,
        transfer_date=data.transfer_date or utcnow(),
        initiated_by_id=current_user.id,
        status="pending",
        transfer_number=generate_transfer_number(),
    )
    db.add(transfer)
    db.commit()
    db.refresh(transfer)
    logger.info(
        "transfer.created id=%s asset=%s from=%s to=%s qty=%s",
        transfer.id, transfer.asset_id, transfer.from_base_id, transfer.to_base_id, transfer.quantity,
    )
    return transfer


def _ensure_status_change_allowed(identity, transfer: Transfer, next_status: str) -> None:
    if next_status == "in_transit":
        if isinstance(identity, BaseCommanderIdentity) and identity.base_id != transfer.from_base_id:
            raise forbidden("TRANSFER_STATUS_DENIED", "Only source base can mark as in transit")
    elif next_status == "completed":
        if not can_manage_base(identity, transfer.to_base_id):
            raise forbidden("TRANSFER_STATUS_DENIED", "Only destination base can complete transfer")
    elif next_status == "cancelled":
        if not (can_manage_base(identity, transfer.from_base_id) or can_manage_base(identity, transfer.to_base_id)):
            raise forbidden("TRANSFER_STATUS_DENIED", "Only source or destination base can cancel transfer")


def update_transfer_status_use_case(
    *,
    db: Session,
    current_user: User,
    transfer_id: UUID,
    data: TransferStatusUpdate,
) -> Transfer:
    transfer = get_transfer_or_404(db, transfer_id)
    identity = identity_from_user(current_user)

    try:
        next_status = validate_status_transition(current_status=transfer.status, next_status=data.status)
    except ValueError as error:
        raise DomainError(
            code="TRANSFER_INVALID_STATUS_TRANSITION",
            http_status=409,
            message=str(error),
        ) from error
    _ensure_status_change_allowed(identity, transfer, next_status)

    previous_status = transfer.status
    now = utcnow()
    asset = transfer.asset
    if next_status == "completed":
        transfer.approved_by_id = current_user.id
        asset.base_id = transfer.to_base_id
        add_movement(
            asset,
            quantity=transfer.quantity,
            kind="transfer",
            reference_type="transfer",
            reference_id=transfer.id,
            notes=f"Transfer completed from {transfer.from_base.name}",
            at=now,
        )
    elif next_status == "cancelled":
        # Creation never debited the ledger, so this entry raises net movement by quantity.
        add_movement(
            asset,
            quantity=transfer.quantity,
            kind="transfer",
            reference_type="transfer",
            reference_id=transfer.id,
            notes="Transfer cancelled - quantity restored",
            at=now,
        )

    transfer.status = next_status
    timestamps = apply_status_timestamps(
        next_status=next_status,
        in_transit_at=transfer.in_transit_at,
        completed_at=transfer.completed_at,
        cancelled_at=transfer.cancelled_at,
        at=now,
    )
    for key, value in timestamps.items():
        setattr(transfer, key, value)
    if data.notes is not None:
        transfer.notes = data.notes

    db.commit()
    db.refresh(transfer)
    logger.info(
        "transfer.status id=%s from=%s to=%s by=%s",
        transfer.id, previous_status, next_status, current_user.id,
    )
    return transfer


def update_transfer_use_case(
    *,
    db: Session,
    current_user: User,
    transfer_id: UUID,
    data: TransferUpdate,
) -> Transfer:
    transfer = get_transfer_or_404(db, transfer_id)
    ensure_can_manage_base(
        identity_from_user(current_user),
        transfer.from_base_id,
        "You can only update transfers from your base",
    )
    payload = data.model_dump(exclude_unset=True)
    if "notes" in payload:
        transfer.notes = payload["notes"]
    if payload.get("transfer_date") is not None:
        transfer.transfer_date = payload["transfer_date"]
    db.commit()
    db.refresh(transfer)
    return transfer


def delete_transfer_use_case(*, db: Session, current_user: User, transfer_id: UUID) -> None:
    transfer = get_transfer_or_404(db, transfer_id)
    if transfer.status != "pending":
        raise conflict("TRANSFER_NOT_PENDING", "Only pending transfers can be deleted")
    ensure_can_manage_base(
        identity_from_user(current_user),
        transfer.from_base_id,
        "You can only delete transfers from your base",
    )

    # Same as cancel: nothing was debited at creation, net movement still grows.
    add_movement(
        transfer.asset,
        quantity=transfer.quantity,
        kind="transfer",
        reference_type="transfer",
        reference_id=transfer.id,
        notes="Transfer deleted - quantity restored",
    )
    db.delete(transfer)
    db.commit()
    logger.info("transfer.deleted id=%s by=%s", transfer_id, current_user.id)
