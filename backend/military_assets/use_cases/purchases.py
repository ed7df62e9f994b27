"""Purchase register use-cases. Purchases are records only; the ledger is untouched."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain_errors import conflict
from ..identity import identity_from_user
from ..models import Asset, MilitaryBase, Purchase, User
from ..schemas import PurchaseCreate, PurchaseStatusUpdate
from ..security import apply_base_scope, ensure_base_access, ensure_can_manage_base, require_entity
from ..time_utils import utcnow

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS = {
    "pending": {"completed", "cancelled"},
}


def get_purchase_or_404(db: Session, purchase_id: UUID) -> Purchase:
    return require_entity(db, Purchase, purchase_id, code="PURCHASE_NOT_FOUND", message="Purchase not found")


def list_purchases_use_case(
    *,
    db: Session,
    current_user: User,
    base_id: Optional[UUID] = None,
    status: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[Purchase]:
    identity = identity_from_user(current_user)
    query = apply_base_scope(db.query(Purchase), identity, Purchase.base_id)
    if base_id is not None:
        query = query.filter(Purchase.base_id == base_id)
    if status:
        query = query.filter(Purchase.status == status.strip().lower())
    if start is not None:
        query = query.filter(Purchase.purchase_date >= start)
    if end is not None:
        query = query.filter(Purchase.purchase_date <= end)
    return query.order_by(Purchase.purchase_date.desc()).all()


def get_purchase_use_case(*, db: Session, current_user: User, purchase_id: UUID) -> Purchase:
    purchase = get_purchase_or_404(db, purchase_id)
    ensure_base_access(identity_from_user(current_user), purchase.base_id)
    return purchase


def create_purchase_use_case(*, db: Session, current_user: User, data: PurchaseCreate) -> Purchase:
    ensure_can_manage_base(
        identity_from_user(current_user),
        data.base_id,
        "You do not have permission to record purchases for this base",
    )
    require_entity(db, MilitaryBase, data.base_id, code="BASE_NOT_FOUND", message="Base not found")
    require_entity(db, Asset, data.asset_id, code="ASSET_NOT_FOUND", message="Asset not found")

    exists = db.query(Purchase.id).filter(
        Purchase.purchase_order_number == data.purchase_order_number
    ).first()
    if exists:
        raise conflict("PURCHASE_ORDER_EXISTS", "A purchase with this order number already exists")

    purchase = Purchase(
        asset_id=data.asset_id,
        base_id=data.base_id,
        quantity=data.quantity,
        unit_price=data.unit_price,
        supplier=data.supplier,
        purchase_order_number=data.purchase_order_number,
        purchase_date=data.purchase_date or utcnow(),
        notes=data.notes,
        status="pending",
        created_by_id=current_user.id,
    )
    purchase.recompute_total()
    db.add(purchase)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.exception("purchase.create failed order=%s", data.purchase_order_number)
        raise conflict("PURCHASE_ORDER_EXISTS", "A purchase with this order number already exists")
    db.refresh(purchase)
    logger.info(
        "purchase.created id=%s base=%s qty=%s total=%s",
        purchase.id, purchase.base_id, purchase.quantity, purchase.total_amount,
    )
    return purchase


def update_purchase_status_use_case(
    *,
    db: Session,
    current_user: User,
    purchase_id: UUID,
    data: PurchaseStatusUpdate,
) -> Purchase:
    purchase = get_purchase_or_404(db, purchase_id)
    ensure_can_manage_base(
        identity_from_user(current_user),
        purchase.base_id,
        "You do not have permission to update purchases for this base",
    )
    next_status = data.status.strip().lower()
    if next_status != purchase.status and next_status not in _ALLOWED_TRANSITIONS.get(purchase.status, set()):
        raise conflict(
            "PURCHASE_INVALID_STATUS_TRANSITION",
            f"Invalid status transition from {purchase.status} to {next_status}",
        )

    previous_status = purchase.status
    purchase.status = next_status
    db.commit()
    db.refresh(purchase)
    logger.info(
        "purchase.status id=%s from=%s to=%s by=%s",
        purchase.id, previous_status, next_status, current_user.id,
    )
    return purchase
