"""Read-only dashboard rollups.

Nothing here writes. Every query is scoped the same way:

- admin: all bases, or the single ``base`` requested;
- base commander: own base only, ``base`` ignored;
- logistics officer: assigned bases, or one of them when ``base`` is given.

The period runs from the first day of the month of ``start`` (or today)
to the end of the day of ``end`` (or today).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from ..config import settings
from ..identity import AdminIdentity, BaseCommanderIdentity, Identity, identity_from_user
from ..models import Asset, Assignment, MilitaryBase, Purchase, Transfer, User
from ..security import ensure_base_access
from ..time_utils import end_of_day, start_of_month, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardQuery:
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    base_id: Optional[UUID] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class _Scope:
    base_ids: Optional[list[UUID]]
    period_start: datetime
    period_end: datetime
    query: DashboardQuery

    def restrict(self, query, *columns):
        if self.base_ids is None:
            return query
        clauses = [column.in_(self.base_ids) for column in columns]
        return query.filter(or_(*clauses)) if len(clauses) > 1 else query.filter(clauses[0])


def _resolve_base_ids(identity: Identity, requested: Optional[UUID]) -> Optional[list[UUID]]:
    if isinstance(identity, AdminIdentity):
        return [requested] if requested else None
    if isinstance(identity, BaseCommanderIdentity):
        return [identity.base_id] if identity.base_id else []
    if requested:
        ensure_base_access(identity, requested)
        return [requested]
    return list(identity.assigned_base_ids)


def _build_scope(identity: Identity, query: DashboardQuery) -> _Scope:
    now = utcnow()
    scope = _Scope(
        base_ids=_resolve_base_ids(identity, query.base_id),
        period_start=start_of_month(query.start or now),
        period_end=end_of_day(query.end or now),
        query=query,
    )
    logger.debug(
        "dashboard.scope user=%s bases=%s start=%s end=%s",
        identity.user_id, scope.base_ids, scope.period_start, scope.period_end,
    )
    return scope


def _asset_query(db: Session, scope: _Scope):
    query = scope.restrict(db.query(Asset), Asset.base_id)
    if scope.query.type:
        query = query.filter(Asset.type == scope.query.type)
    return query


def _in_created_range(query, column, scope: _Scope):
    if scope.query.start is not None and scope.query.end is not None:
        query = query.filter(column >= scope.query.start, column <= scope.query.end)
    return query


def _filter_by_asset_type(query, asset_fk, scope: _Scope):
    if scope.query.type:
        query = query.join(Asset, Asset.id == asset_fk).filter(Asset.type == scope.query.type)
    return query


def _transfer_count(db: Session, scope: _Scope, base_column) -> int:
    query = db.query(Transfer).filter(
        Transfer.transfer_date >= scope.period_start,
        Transfer.transfer_date <= scope.period_end,
    )
    query = scope.restrict(query, base_column)
    return _filter_by_asset_type(query, Transfer.asset_id, scope).count()


def _balances(db: Session, scope: _Scope) -> dict[str, int]:
    opening = _asset_query(db, scope).filter(Asset.created_at < scope.period_start).count()
    closing = _asset_query(db, scope).filter(Asset.created_at <= scope.period_end).count()

    purchase_query = scope.restrict(db.query(Purchase), Purchase.base_id).filter(
        Purchase.purchase_date >= scope.period_start,
        Purchase.purchase_date <= scope.period_end,
    )
    purchases = _filter_by_asset_type(purchase_query, Purchase.asset_id, scope).count()

    status_query = _in_created_range(_asset_query(db, scope), Asset.created_at, scope)
    return {
        "opening_balance": opening,
        "closing_balance": closing,
        "purchases": purchases,
        "transfers_in": _transfer_count(db, scope, Transfer.to_base_id),
        "transfers_out": _transfer_count(db, scope, Transfer.from_base_id),
        "assigned": status_query.filter(Asset.status == "assigned").count(),
        "expended": status_query.filter(Asset.status == "expended").count(),
    }


def _base_breakdown(db: Session, scope: _Scope) -> list[dict[str, Any]]:
    query = (
        db.query(
            MilitaryBase.id,
            MilitaryBase.name,
            func.count(Asset.id).label("total"),
            func.coalesce(func.sum(case((Asset.status == "assigned", 1), else_=0)), 0).label("assigned"),
            func.coalesce(func.sum(case((Asset.status == "expended", 1), else_=0)), 0).label("expended"),
        )
        .select_from(Asset)
        .join(MilitaryBase, MilitaryBase.id == Asset.base_id)
        .group_by(MilitaryBase.id, MilitaryBase.name)
        .order_by(MilitaryBase.name)
    )
    query = scope.restrict(query, Asset.base_id)
    if scope.query.type:
        query = query.filter(Asset.type == scope.query.type)
    query = _in_created_range(query, Asset.created_at, scope)
    return [
        {
            "base_id": row.id,
            "base_name": row.name,
            "total": int(row.total),
            "assigned": int(row.assigned),
            "expended": int(row.expended),
        }
        for row in query.all()
    ]


def _distribution(db: Session, scope: _Scope, column) -> dict[str, int]:
    query = scope.restrict(db.query(column, func.count(Asset.id)), Asset.base_id)
    if scope.query.type:
        query = query.filter(Asset.type == scope.query.type)
    query = _in_created_range(query, Asset.created_at, scope)
    return {key: int(count) for key, count in query.group_by(column).all()}


def _recent(db: Session, scope: _Scope) -> dict[str, list[dict[str, Any]]]:
    limit = settings.RECENT_ACTIVITY_LIMIT
    assets = _in_created_range(_asset_query(db, scope), Asset.created_at, scope)
    transfers = _in_created_range(
        scope.restrict(db.query(Transfer), Transfer.from_base_id, Transfer.to_base_id),
        Transfer.created_at,
        scope,
    )
    assignments = _in_created_range(
        scope.restrict(db.query(Assignment), Assignment.base_id),
        Assignment.created_at,
        scope,
    )
    return {
        "assets": [
            {
                "id": a.id,
                "name": a.name,
                "type": a.type,
                "status": a.status,
                "quantity": a.quantity,
                "base": a.base.name if a.base else None,
                "created_at": a.created_at,
            }
            for a in assets.order_by(Asset.created_at.desc()).limit(limit).all()
        ],
        "transfers": [
            {
                "id": t.id,
                "transfer_number": t.transfer_number,
                "asset": t.asset.name if t.asset else None,
                "from_base": t.from_base.name if t.from_base else None,
                "to_base": t.to_base.name if t.to_base else None,
                "quantity": t.quantity,
                "status": t.status,
                "created_at": t.created_at,
            }
            for t in transfers.order_by(Transfer.created_at.desc()).limit(limit).all()
        ],
        "assignments": [
            {
                "id": a.id,
                "assignment_number": a.assignment_number,
                "asset": a.asset.name if a.asset else None,
                "assigned_to": a.assigned_to.full_name if a.assigned_to else None,
                "base": a.base.name if a.base else None,
                "quantity": a.quantity,
                "status": a.status,
                "created_at": a.created_at,
            }
            for a in assignments.order_by(Assignment.created_at.desc()).limit(limit).all()
        ],
    }


def dashboard_use_case(*, db: Session, current_user: User, query: DashboardQuery) -> dict[str, Any]:
    identity = identity_from_user(current_user)
    scope = _build_scope(identity, query)

    balances = _balances(db, scope)
    balances["net_movement"] = balances["closing_balance"] - balances["opening_balance"]

    bases_query = db.query(MilitaryBase)
    if scope.base_ids is not None:
        bases_query = bases_query.filter(MilitaryBase.id.in_(scope.base_ids))
    counts = {
        "assets": _in_created_range(_asset_query(db, scope), Asset.created_at, scope).count(),
        "transfers": _in_created_range(
            scope.restrict(db.query(Transfer), Transfer.from_base_id, Transfer.to_base_id),
            Transfer.created_at,
            scope,
        ).count(),
        "assignments": _in_created_range(
            scope.restrict(db.query(Assignment), Assignment.base_id),
            Assignment.created_at,
            scope,
        ).count(),
        "bases": bases_query.count(),
    }

    distributions: dict[str, Any] = {
        "type": _distribution(db, scope, Asset.type),
        "status": _distribution(db, scope, Asset.status),
        "base": _base_breakdown(db, scope) if isinstance(identity, AdminIdentity) else [],
    }

    return {
        "user": current_user,
        "period": {"start": scope.period_start, "end": scope.period_end},
        "counts": counts,
        "metrics": balances,
        "recent_activities": _recent(db, scope),
        "distributions": distributions,
    }


def dashboard_metrics_use_case(*, db: Session, current_user: User, query: DashboardQuery) -> dict[str, Any]:
    identity = identity_from_user(current_user)
    scope = _build_scope(identity, query)

    balances = _balances(db, scope)
    # Flow-based, unlike the stock-based figure on the main dashboard.
    balances["net_movement"] = balances["purchases"] + balances["transfers_in"] - balances["transfers_out"]
    balances["base_breakdown"] = _base_breakdown(db, scope) if isinstance(identity, AdminIdentity) else None
    return balances


def dashboard_stats_use_case(*, db: Session, current_user: User) -> dict[str, int]:
    scope = _build_scope(identity_from_user(current_user), DashboardQuery())
    return {
        "total_assets": _asset_query(db, scope).count(),
        "active_assignments": scope.restrict(db.query(Assignment), Assignment.base_id)
        .filter(Assignment.status == "active")
        .count(),
        "pending_transfers": scope.restrict(db.query(Transfer), Transfer.from_base_id, Transfer.to_base_id)
        .filter(Transfer.status == "pending")
        .count(),
        "scheduled_maintenance": _asset_query(db, scope).filter(Asset.status == "maintenance").count(),
    }


def recent_activities_use_case(*, db: Session, current_user: User) -> list[dict[str, Any]]:
    scope = _build_scope(identity_from_user(current_user), DashboardQuery())
    limit = settings.RECENT_ACTIVITY_LIMIT

    assignments = (
        scope.restrict(db.query(Assignment), Assignment.base_id)
        .order_by(Assignment.created_at.desc())
        .limit(limit)
        .all()
    )
    transfers = (
        scope.restrict(db.query(Transfer), Transfer.from_base_id, Transfer.to_base_id)
        .order_by(Transfer.created_at.desc())
        .limit(limit)
        .all()
    )

    items: list[dict[str, Any]] = []
    for a in assignments:
        asset_name = a.asset.name if a.asset else "Unknown asset"
        person = a.assigned_to.full_name if a.assigned_to else "unknown personnel"
        items.append(
            {
                "id": a.id,
                "type": "assignment",
                "title": f"Asset {asset_name} assigned to {person}",
                "description": a.purpose,
                "status": a.status,
                "timestamp": a.created_at,
            }
        )
    for t in transfers:
        asset_name = t.asset.name if t.asset else "Unknown asset"
        source = t.from_base.name if t.from_base else "unknown base"
        destination = t.to_base.name if t.to_base else "unknown base"
        items.append(
            {
                "id": t.id,
                "type": "transfer",
                "title": f"Asset {asset_name} transferred from {source} to {destination}",
                "description": t.reason,
                "status": t.status,
                "timestamp": t.created_at,
            }
        )

    items.sort(key=lambda item: item["timestamp"], reverse=True)
    return items[: settings.ACTIVITY_FEED_LIMIT]
