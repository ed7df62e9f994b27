"""Asset ledger use-cases: CRUD, movement history and rollups."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..domain_errors import DomainError, conflict
from ..identity import can_manage_base, identity_from_user
from ..models import ASSET_TYPES, Asset, AssetMovement, MilitaryBase, User
from ..schemas import AssetCreate, AssetUpdate
from ..security import apply_base_scope, ensure_base_access, ensure_can_manage_base, require_entity
from ..services.ledger import movement_history, period_metrics
from ..time_utils import start_of_month, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetFilters:
    status: Optional[str] = None
    type: Optional[str] = None
    base_id: Optional[UUID] = None
    search: Optional[str] = None
    min_quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    maintenance_from: Optional[datetime] = None
    maintenance_to: Optional[datetime] = None


def get_asset_or_404(db: Session, asset_id: UUID) -> Asset:
    return require_entity(db, Asset, asset_id, code="ASSET_NOT_FOUND", message="Asset not found")


def _ensure_base_exists(db: Session, base_id: UUID) -> None:
    require_entity(db, MilitaryBase, base_id, code="BASE_NOT_FOUND", message="Base not found")


def _ensure_serial_free(db: Session, serial_number: str, *, exclude_asset_id: UUID | None = None) -> None:
    query = db.query(Asset.id).filter(Asset.serial_number == serial_number)
    if exclude_asset_id is not None:
        query = query.filter(Asset.id != exclude_asset_id)
    if query.first():
        raise conflict("ASSET_SERIAL_EXISTS", "An asset with this serial number already exists")


def list_assets_use_case(*, db: Session, current_user: User, filters: AssetFilters) -> list[Asset]:
    identity = identity_from_user(current_user)
    query = apply_base_scope(db.query(Asset), identity, Asset.base_id)

    if filters.status:
        query = query.filter(Asset.status == filters.status.lower())
    if filters.type:
        query = query.filter(Asset.type == filters.type)
    if filters.base_id:
        query = query.filter(Asset.base_id == filters.base_id)
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.filter(
            or_(
                Asset.name.ilike(pattern),
                Asset.serial_number.ilike(pattern),
                Asset.description.ilike(pattern),
            )
        )
    if filters.min_quantity is not None:
        query = query.filter(Asset.quantity >= filters.min_quantity)
    if filters.max_quantity is not None:
        query = query.filter(Asset.quantity <= filters.max_quantity)
    if filters.maintenance_from is not None:
        query = query.filter(Asset.last_maintenance_date >= filters.maintenance_from)
    if filters.maintenance_to is not None:
        query = query.filter(Asset.last_maintenance_date <= filters.maintenance_to)

    return query.order_by(Asset.created_at.desc()).all()


def list_assets_by_base_use_case(*, db: Session, current_user: User, base_id: UUID) -> list[Asset]:
    ensure_can_manage_base(identity_from_user(current_user), base_id)
    return db.query(Asset).filter(Asset.base_id == base_id).order_by(Asset.created_at.desc()).all()


def get_asset_use_case(*, db: Session, current_user: User, asset_id: UUID) -> Asset:
    asset = get_asset_or_404(db, asset_id)
    if not can_manage_base(identity_from_user(current_user), asset.base_id):
        raise DomainError(
            code="ASSET_ACCESS_DENIED",
            http_status=403,
            message="You do not have permission to access assets in this base",
        )
    return asset


def create_asset_use_case(*, db: Session, current_user: User, data: AssetCreate) -> Asset:
    ensure_can_manage_base(identity_from_user(current_user), data.base_id)
    _ensure_base_exists(db, data.base_id)
    _ensure_serial_free(db, data.serial_number)

    payload = data.model_dump()
    if payload["opening_balance"] is None:
        payload["opening_balance"] = payload["quantity"]
    if payload["purchase_date"] is None:
        payload["purchase_date"] = utcnow()

    asset = Asset(
        **payload,
        net_movement=0,
        created_by_id=current_user.id,
        updated_by_id=current_user.id,
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    logger.info("asset.created id=%s base=%s by=%s", asset.id, asset.base_id, current_user.id)
    return asset


def update_asset_use_case(*, db: Session, current_user: User, asset_id: UUID, data: AssetUpdate) -> Asset:
    identity = identity_from_user(current_user)
    asset = get_asset_or_404(db, asset_id)
    ensure_can_manage_base(identity, asset.base_id)

    payload = data.model_dump(exclude_unset=True)
    new_base_id = payload.get("base_id")
    if new_base_id is not None and new_base_id != asset.base_id:
        ensure_can_manage_base(identity, new_base_id)
        _ensure_base_exists(db, new_base_id)
    if payload.get("serial_number") and payload["serial_number"] != asset.serial_number:
        _ensure_serial_free(db, payload["serial_number"], exclude_asset_id=asset.id)

    nullable = {"description", "supplier", "cost", "purchase_order_number", "last_maintenance_date"}
    for key, value in payload.items():
        if value is not None or key in nullable:
            setattr(asset, key, value)
    asset.updated_by_id = current_user.id
    asset.recompute_closing_balance()

    db.commit()
    db.refresh(asset)
    return asset


def delete_asset_use_case(*, db: Session, current_user: User, asset_id: UUID) -> None:
    asset = get_asset_or_404(db, asset_id)
    ensure_can_manage_base(
        identity_from_user(current_user),
        asset.base_id,
        "You do not have permission to delete assets in this base",
    )
    db.delete(asset)
    db.commit()
    logger.info("asset.deleted id=%s by=%s", asset_id, current_user.id)


def asset_movements_use_case(
    *,
    db: Session,
    current_user: User,
    asset_id: UUID,
    start: Optional[datetime],
    end: Optional[datetime],
) -> list[AssetMovement]:
    asset = get_asset_or_404(db, asset_id)
    ensure_base_access(identity_from_user(current_user), asset.base_id)
    return movement_history(asset, start, end)


def asset_period_metrics_use_case(
    *,
    db: Session,
    current_user: User,
    asset_id: UUID,
    start: Optional[datetime],
    end: Optional[datetime],
) -> dict[str, int]:
    asset = get_asset_or_404(db, asset_id)
    ensure_base_access(identity_from_user(current_user), asset.base_id)
    return period_metrics(asset, start, end)


def asset_metrics_use_case(*, db: Session, current_user: User) -> dict[str, int]:
    """Counts across visible assets; opening = assets that existed before this month."""
    identity = identity_from_user(current_user)
    base_query = apply_base_scope(db.query(Asset), identity, Asset.base_id)

    total = base_query.count()
    assigned = base_query.filter(Asset.status == "assigned").count()
    expended = base_query.filter(Asset.status == "expended").count()
    opening = base_query.filter(Asset.created_at < start_of_month(utcnow())).count()
    closing = total
    return {
        "total_assets": total,
        "assigned_assets": assigned,
        "expended_assets": expended,
        "opening_balance": opening,
        "closing_balance": closing,
        "net_movement": closing - opening,
    }


def asset_summary_use_case(*, db: Session, current_user: User, base_id: Optional[UUID]) -> dict[str, Any]:
    identity = identity_from_user(current_user)
    query = db.query(Asset)
    if base_id is not None:
        ensure_base_access(identity, base_id)
        query = query.filter(Asset.base_id == base_id)
    else:
        query = apply_base_scope(query, identity, Asset.base_id)
    assets = query.all()

    summary: dict[str, Any] = {
        "total_assets": len(assets),
        "total_quantity": sum(a.quantity for a in assets),
        "total_value": float(sum((a.cost or 0) * a.quantity for a in assets)),
        "by_type": {},
        "by_status": {},
        "by_base": {},
    }
    for asset in assets:
        summary["by_type"][asset.type] = summary["by_type"].get(asset.type, 0) + asset.quantity
        summary["by_status"][asset.status] = summary["by_status"].get(asset.status, 0) + asset.quantity
        bucket = summary["by_base"].setdefault(
            str(asset.base_id),
            {"name": asset.base.name if asset.base else None, "total": 0, "by_type": {}, "by_status": {}},
        )
        bucket["total"] += asset.quantity
        bucket["by_type"][asset.type] = bucket["by_type"].get(asset.type, 0) + asset.quantity
        bucket["by_status"][asset.status] = bucket["by_status"].get(asset.status, 0) + asset.quantity
    return summary


def asset_types() -> list[dict[str, str]]:
    return [{"id": t, "name": t.capitalize()} for t in ASSET_TYPES]
