"""Asset ledger endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    AssetCreate,
    AssetMetricsResponse,
    AssetResponse,
    AssetSummaryResponse,
    AssetUpdate,
    MessageResponse,
    MovementOut,
    PeriodMetrics,
)
from ..time_utils import parse_iso_datetime
from ..use_cases.assets import (
    AssetFilters,
    asset_metrics_use_case,
    asset_movements_use_case,
    asset_period_metrics_use_case,
    asset_summary_use_case,
    asset_types,
    create_asset_use_case,
    delete_asset_use_case,
    get_asset_use_case,
    list_assets_by_base_use_case,
    list_assets_use_case,
    update_asset_use_case,
)

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("", response_model=list[AssetResponse])
def get_assets(
    status: Optional[str] = Query(default=None),
    type: Optional[str] = Query(default=None),
    base: Optional[UUID] = Query(default=None),
    search: Optional[str] = Query(default=None),
    min_quantity: Optional[int] = Query(default=None, alias="minQuantity"),
    max_quantity: Optional[int] = Query(default=None, alias="maxQuantity"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List visible assets. The date range filters on last maintenance."""
    filters = AssetFilters(
        status=status,
        type=type,
        base_id=base,
        search=search,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
        maintenance_from=parse_iso_datetime(start_date, field="startDate"),
        maintenance_to=parse_iso_datetime(end_date, field="endDate"),
    )
    return list_assets_use_case(db=db, current_user=current_user, filters=filters)


@router.get("/base/{base_id}", response_model=list[AssetResponse])
def get_assets_by_base(
    base_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_assets_by_base_use_case(db=db, current_user=current_user, base_id=base_id)


@router.get("/metrics", response_model=AssetMetricsResponse)
def get_asset_metrics(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return asset_metrics_use_case(db=db, current_user=current_user)


@router.get("/metrics/summary", response_model=AssetSummaryResponse)
def get_asset_summary(
    base: Optional[UUID] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return asset_summary_use_case(db=db, current_user=current_user, base_id=base)


@router.get("/types")
def get_asset_types(current_user: User = Depends(get_current_user)):
    return asset_types()


@router.get("/{asset_id}", response_model=AssetResponse)
def get_asset(
    asset_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_asset_use_case(db=db, current_user=current_user, asset_id=asset_id)


@router.get("/{asset_id}/movements", response_model=list[MovementOut])
def get_asset_movements(
    asset_id: UUID,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return asset_movements_use_case(
        db=db,
        current_user=current_user,
        asset_id=asset_id,
        start=parse_iso_datetime(start_date, field="startDate"),
        end=parse_iso_datetime(end_date, field="endDate"),
    )


@router.get("/{asset_id}/metrics", response_model=PeriodMetrics)
def get_asset_period_metrics(
    asset_id: UUID,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return asset_period_metrics_use_case(
        db=db,
        current_user=current_user,
        asset_id=asset_id,
        start=parse_iso_datetime(start_date, field="startDate"),
        end=parse_iso_datetime(end_date, field="endDate"),
    )


@router.post("", response_model=AssetResponse, status_code=201)
def create_asset(
    payload: AssetCreate,
    current_user: User = Depends(PermissionChecker("canManageAssets")),
    db: Session = Depends(get_db),
):
    return create_asset_use_case(db=db, current_user=current_user, data=payload)


@router.put("/{asset_id}", response_model=AssetResponse)
def update_asset(
    asset_id: UUID,
    payload: AssetUpdate,
    current_user: User = Depends(PermissionChecker("canManageAssets")),
    db: Session = Depends(get_db),
):
    return update_asset_use_case(db=db, current_user=current_user, asset_id=asset_id, data=payload)


@router.delete("/{asset_id}", response_model=MessageResponse)
def delete_asset(
    asset_id: UUID,
    current_user: User = Depends(PermissionChecker("canManageAssets")),
    db: Session = Depends(get_db),
):
    delete_asset_use_case(db=db, current_user=current_user, asset_id=asset_id)
    return MessageResponse(message="Asset deleted successfully")
