"""Dashboard endpoints (read-only)."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    ActivityItem,
    DashboardMetricsResponse,
    DashboardResponse,
    DashboardStats,
    UserBrief,
)
from ..time_utils import parse_iso_datetime
from ..use_cases.dashboard import (
    DashboardQuery,
    dashboard_metrics_use_case,
    dashboard_stats_use_case,
    dashboard_use_case,
    recent_activities_use_case,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _dashboard_query(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    base: Optional[UUID] = Query(default=None),
    type: Optional[str] = Query(default=None),
) -> DashboardQuery:
    return DashboardQuery(
        start=parse_iso_datetime(start_date, field="startDate"),
        end=parse_iso_datetime(end_date, field="endDate"),
        base_id=base,
        type=type,
    )


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    query: DashboardQuery = Depends(_dashboard_query),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = dashboard_use_case(db=db, current_user=current_user, query=query)
    data["user"] = UserBrief.model_validate(data["user"])
    return data


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return dashboard_stats_use_case(db=db, current_user=current_user)


@router.get("/activities", response_model=list[ActivityItem])
def get_recent_activities(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return recent_activities_use_case(db=db, current_user=current_user)


@router.get("/metrics", response_model=DashboardMetricsResponse)
def get_dashboard_metrics(
    query: DashboardQuery = Depends(_dashboard_query),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return dashboard_metrics_use_case(db=db, current_user=current_user, query=query)
