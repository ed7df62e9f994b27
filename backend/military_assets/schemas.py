"""Pydantic schemas for API."""
from pydantic import AfterValidator, BaseModel, Field, ConfigDict
from typing import Annotated, Any, Optional
from datetime import datetime
from uuid import UUID

from .config import settings
from .time_utils import as_naive_utc


ROLE_PATTERN = "^(admin|base_commander|logistics_officer)$"
BASE_TYPE_PATTERN = "^(air|naval|army|joint)$"
BASE_STATUS_PATTERN = "^(active|inactive|maintenance)$"
ASSET_TYPE_PATTERN = "^(weapon|vehicle|ammunition|equipment)$"
ASSET_STATUS_PATTERN = "^(available|assigned|maintenance|expended)$"

# Client timestamps may carry an offset; storage is naive UTC.
UtcDatetime = Annotated[datetime, AfterValidator(as_naive_utc)]


# Brief schemas for nested responses
class BaseBrief(BaseModel):
    id: UUID
    name: str
    model_config = ConfigDict(from_attributes=True)


class UserBrief(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    model_config = ConfigDict(from_attributes=True)


class AssetBrief(BaseModel):
    id: UUID
    name: str
    type: str
    serial_number: str
    model_config = ConfigDict(from_attributes=True)


# User schemas
class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    base: Optional[BaseBrief] = None
    assigned_bases: list[BaseBrief] = []
    primary_base: Optional[BaseBrief] = None
    is_active: bool
    last_login: Optional[UtcDatetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    full_name: str = Field(min_length=1, max_length=255)
    role: str = Field(pattern=ROLE_PATTERN)
    base_id: Optional[UUID] = None
    assigned_base_ids: list[UUID] = []
    is_active: bool = True


class UserCreatedResponse(BaseModel):
    user: UserResponse
    temporary_password: str


class UserUpdate(BaseModel):
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    role: Optional[str] = Field(default=None, pattern=ROLE_PATTERN)
    base_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class UserBaseUpdate(BaseModel):
    base_id: Optional[UUID] = None


class BaseIdRequest(BaseModel):
    base_id: UUID


class UserBasesResponse(BaseModel):
    base: Optional[BaseBrief] = None
    assigned_bases: list[BaseBrief] = []
    primary_base: Optional[BaseBrief] = None
    model_config = ConfigDict(from_attributes=True)


# Auth schemas
class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH, max_length=settings.PASSWORD_MAX_LENGTH)
    full_name: str = Field(min_length=1, max_length=255)
    role: Optional[str] = Field(default=None, pattern=ROLE_PATTERN)


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(
        default=None, min_length=settings.PASSWORD_MIN_LENGTH, max_length=settings.PASSWORD_MAX_LENGTH
    )


class AuthData(BaseModel):
    token: str
    user: UserResponse


class AuthResponse(BaseModel):
    success: bool = True
    data: AuthData


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# Base schemas
class BaseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    location: str = Field(min_length=1, max_length=255)
    type: str = Field(pattern=BASE_TYPE_PATTERN)
    status: str = Field(default="active", pattern=BASE_STATUS_PATTERN)
    capacity: int = Field(default=0, ge=0)
    description: Optional[str] = None
    notes: Optional[str] = None


class BaseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[str] = Field(default=None, pattern=BASE_TYPE_PATTERN)
    status: Optional[str] = Field(default=None, pattern=BASE_STATUS_PATTERN)
    capacity: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    notes: Optional[str] = None


class BaseResponse(BaseModel):
    id: UUID
    name: str
    location: str
    type: str
    status: str
    capacity: int
    description: Optional[str] = None
    notes: Optional[str] = None
    commander: Optional[UserBrief] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Asset schemas
class AssetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: str = Field(pattern=ASSET_TYPE_PATTERN)
    serial_number: str = Field(min_length=1, max_length=100)
    base_id: UUID
    location: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: str = Field(default="available", pattern=ASSET_STATUS_PATTERN)
    quantity: int = Field(default=1, ge=0)
    opening_balance: Optional[int] = Field(default=None, ge=0)
    purchase_date: Optional[UtcDatetime] = None
    supplier: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    purchase_order_number: Optional[str] = None
    last_maintenance_date: Optional[UtcDatetime] = None


class AssetUpdate(BaseModel):
    """Merge update; net movement only changes through the movement log."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[str] = Field(default=None, pattern=ASSET_TYPE_PATTERN)
    serial_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    base_id: Optional[UUID] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=ASSET_STATUS_PATTERN)
    quantity: Optional[int] = Field(default=None, ge=0)
    opening_balance: Optional[int] = Field(default=None, ge=0)
    purchase_date: Optional[UtcDatetime] = None
    supplier: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    purchase_order_number: Optional[str] = None
    last_maintenance_date: Optional[UtcDatetime] = None


class AssetResponse(BaseModel):
    id: UUID
    name: str
    type: str
    serial_number: str
    base_id: UUID
    base: Optional[BaseBrief] = None
    location: str
    description: Optional[str] = None
    status: str
    quantity: int
    opening_balance: int
    closing_balance: int
    net_movement: int
    purchase_date: datetime
    supplier: Optional[str] = None
    cost: Optional[float] = None
    purchase_order_number: Optional[str] = None
    last_maintenance_date: Optional[UtcDatetime] = None
    created_by: Optional[UserBrief] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class MovementOut(BaseModel):
    id: UUID
    asset_id: UUID
    date: datetime
    kind: str
    quantity: int
    reference_type: Optional[str] = None
    reference_id: Optional[UUID] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class PeriodMetrics(BaseModel):
    total_transfers: int
    total_assignments: int
    total_returns: int
    net_movement: int
    opening_balance: int
    closing_balance: int


class AssetMetricsResponse(BaseModel):
    total_assets: int
    assigned_assets: int
    expended_assets: int
    opening_balance: int
    closing_balance: int
    net_movement: int


class AssetSummaryResponse(BaseModel):
    total_assets: int
    total_quantity: int
    total_value: float
    by_type: dict[str, int]
    by_status: dict[str, int]
    by_base: dict[str, dict[str, Any]]


# Transfer schemas
class TransferCreate(BaseModel):
    asset_id: UUID
    from_base_id: UUID
    to_base_id: UUID
    quantity: int = Field(gt=0)
    reason: str = Field(min_length=1)
    transfer_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None


class TransferUpdate(BaseModel):
    notes: Optional[str] = None
    transfer_date: Optional[UtcDatetime] = None


class TransferStatusUpdate(BaseModel):
    status: str = Field(pattern="^(pending|in_transit|completed|cancelled)$")
    notes: Optional[str] = None


class TransferResponse(BaseModel):
    id: UUID
    transfer_number: str
    asset: Optional[AssetBrief] = None
    asset_id: UUID
    from_base: Optional[BaseBrief] = None
    to_base: Optional[BaseBrief] = None
    from_base_id: UUID
    to_base_id: UUID
    quantity: int
    transfer_date: datetime
    status: str
    reason: str
    notes: Optional[str] = None
    initiated_by: Optional[UserBrief] = None
    approved_by: Optional[UserBrief] = None
    in_transit_at: Optional[UtcDatetime] = None
    completed_at: Optional[UtcDatetime] = None
    cancelled_at: Optional[UtcDatetime] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Assignment schemas
class AssignmentCreate(BaseModel):
    asset_id: UUID
    assigned_to_id: UUID
    base_id: Optional[UUID] = None
    quantity: int = Field(default=1, gt=0)
    purpose: str = Field(min_length=1)
    assignment_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None


class AssignmentUpdate(BaseModel):
    purpose: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None
    assigned_to_id: Optional[UUID] = None
    quantity: Optional[int] = Field(default=None, gt=0)


class AssignmentStatusUpdate(BaseModel):
    status: str = Field(pattern="^(active|returned|expended|lost|damaged)$")
    notes: Optional[str] = None


class AssignmentReturnRequest(BaseModel):
    notes: Optional[str] = None


class AssignmentResponse(BaseModel):
    id: UUID
    assignment_number: str
    asset: Optional[AssetBrief] = None
    asset_id: UUID
    assigned_to: Optional[UserBrief] = None
    assigned_by: Optional[UserBrief] = None
    base: Optional[BaseBrief] = None
    base_id: UUID
    assignment_date: datetime
    return_date: Optional[UtcDatetime] = None
    status: str
    quantity: int
    purpose: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AssignmentSummaryResponse(BaseModel):
    total_assignments: int
    total_quantity: int
    by_status: dict[str, int]
    by_base: dict[str, dict[str, Any]]
    by_personnel: dict[str, dict[str, Any]]


# Purchase schemas
class PurchaseCreate(BaseModel):
    asset_id: UUID
    base_id: UUID
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)
    supplier: str = Field(min_length=1, max_length=255)
    purchase_order_number: str = Field(min_length=1, max_length=100)
    purchase_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None


class PurchaseStatusUpdate(BaseModel):
    status: str = Field(pattern="^(pending|completed|cancelled)$")


class PurchaseResponse(BaseModel):
    id: UUID
    asset: Optional[AssetBrief] = None
    asset_id: UUID
    base: Optional[BaseBrief] = None
    base_id: UUID
    purchase_date: datetime
    quantity: int
    unit_price: float
    total_amount: float
    supplier: str
    purchase_order_number: str
    status: str
    notes: Optional[str] = None
    created_by_id: UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Dashboard schemas
class DashboardStats(BaseModel):
    total_assets: int
    active_assignments: int
    pending_transfers: int
    scheduled_maintenance: int


class ActivityItem(BaseModel):
    id: UUID
    type: str
    title: str
    description: Optional[str] = None
    status: str
    timestamp: datetime


class DashboardBalances(BaseModel):
    opening_balance: int
    closing_balance: int
    net_movement: int
    purchases: int
    transfers_in: int
    transfers_out: int
    assigned: int
    expended: int


class DashboardMetricsResponse(DashboardBalances):
    base_breakdown: Optional[list[dict[str, Any]]] = None


class DashboardResponse(BaseModel):
    user: UserBrief
    period: dict[str, datetime]
    counts: dict[str, int]
    metrics: DashboardBalances
    recent_activities: dict[str, list[dict[str, Any]]]
    distributions: dict[str, Any]


class HealthCheckResponse(BaseModel):
    status: str
    database: str
    timestamp: datetime
