"""SQLAlchemy models."""
import uuid

from sqlalchemy import (
    Boolean, Column, String, Integer, Float, DateTime, Text,
    ForeignKey, CheckConstraint, Index, Table, Uuid, event
)
from sqlalchemy.orm import relationship

from .database import Base
from .domain_errors import DomainError
from .time_utils import utcnow


USER_ROLES = ("admin", "base_commander", "logistics_officer")
BASE_TYPES = ("air", "naval", "army", "joint")
BASE_STATUSES = ("active", "inactive", "maintenance")
ASSET_TYPES = ("weapon", "vehicle", "ammunition", "equipment")
ASSET_STATUSES = ("available", "assigned", "maintenance", "expended")
MOVEMENT_KINDS = ("transfer", "assignment", "return", "adjustment")
MOVEMENT_REFERENCE_TYPES = ("transfer", "assignment")
TRANSFER_STATUSES = ("pending", "in_transit", "completed", "cancelled")
ASSIGNMENT_STATUSES = ("active", "returned", "expended", "lost", "damaged")
PURCHASE_STATUSES = ("pending", "completed", "cancelled")


user_assigned_bases = Table(
    "user_assigned_bases",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("base_id", Uuid, ForeignKey("bases.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """User model."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="logistics_officer", index=True)
    # Commander affiliation (exactly one base).
    base_id = Column(
        Uuid,
        ForeignKey("bases.id", ondelete="SET NULL", use_alter=True, name="fk_users_base_id"),
        nullable=True,
        index=True,
    )
    # Logistics officer affiliation: primary base drawn from assigned_bases.
    primary_base_id = Column(
        Uuid,
        ForeignKey("bases.id", ondelete="SET NULL", use_alter=True, name="fk_users_primary_base_id"),
        nullable=True,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(role.in_(USER_ROLES), name="chk_user_role"),
    )

    # Relationships
    base = relationship("MilitaryBase", foreign_keys=[base_id])
    primary_base = relationship("MilitaryBase", foreign_keys=[primary_base_id])
    assigned_bases = relationship("MilitaryBase", secondary=user_assigned_bases, lazy="selectin")

    def normalize_affiliation(self) -> None:
        """Drop affiliation fields that do not belong to the user's role."""
        if self.role == "admin":
            self.base_id = None
            self.primary_base_id = None
            self.assigned_bases = []
        elif self.role == "base_commander":
            self.primary_base_id = None
            self.assigned_bases = []
        elif self.role == "logistics_officer":
            self.base_id = None
            assigned_ids = {b.id for b in self.assigned_bases}
            if self.primary_base_id not in assigned_ids:
                self.primary_base_id = next(iter(b.id for b in self.assigned_bases), None)


class MilitaryBase(Base):
    """Physical site that owns assets."""
    __tablename__ = "bases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), unique=True, nullable=False, index=True)
    location = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="active", index=True)
    capacity = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    commander_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL", use_alter=True, name="fk_bases_commander_id"),
        nullable=True,
    )
    created_by_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL", use_alter=True, name="fk_bases_created_by_id"),
        nullable=True,
    )
    updated_by_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL", use_alter=True, name="fk_bases_updated_by_id"),
        nullable=True,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(type.in_(BASE_TYPES), name="chk_base_type"),
        CheckConstraint(status.in_(BASE_STATUSES), name="chk_base_status"),
        CheckConstraint(capacity >= 0, name="chk_base_capacity_non_negative"),
    )

    commander = relationship("User", foreign_keys=[commander_id])
    assets = relationship("Asset", back_populates="base")


class Asset(Base):
    """Inventory line with balance bookkeeping."""
    __tablename__ = "assets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    serial_number = Column(String(100), unique=True, nullable=False, index=True)
    base_id = Column(Uuid, ForeignKey("bases.id"), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="available", index=True)
    quantity = Column(Integer, nullable=False, default=1)
    opening_balance = Column(Integer, nullable=False, default=0)
    closing_balance = Column(Integer, nullable=False, default=0)
    net_movement = Column(Integer, nullable=False, default=0)
    purchase_date = Column(DateTime, nullable=False, default=utcnow)
    supplier = Column(String(255), nullable=True)
    cost = Column(Float, nullable=True)
    purchase_order_number = Column(String(100), nullable=True)
    last_maintenance_date = Column(DateTime, nullable=True)
    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(type.in_(ASSET_TYPES), name="chk_asset_type"),
        CheckConstraint(status.in_(ASSET_STATUSES), name="chk_asset_status"),
        CheckConstraint(quantity >= 0, name="chk_asset_quantity_non_negative"),
        CheckConstraint(opening_balance >= 0, name="chk_asset_opening_balance_non_negative"),
        Index("idx_assets_base_type", "base_id", "type"),
    )

    base = relationship("MilitaryBase", back_populates="assets")
    created_by = relationship("User", foreign_keys=[created_by_id])
    movements = relationship(
        "AssetMovement",
        back_populates="asset",
        order_by="AssetMovement.date",
        cascade="all, delete-orphan",
    )

    def recompute_closing_balance(self) -> None:
        self.closing_balance = (self.opening_balance or 0) + (self.net_movement or 0)


class AssetMovement(Base):
    """Append-only ledger entry; quantity is a signed delta."""
    __tablename__ = "asset_movements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(DateTime, nullable=False, default=utcnow, index=True)
    kind = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    reference_type = Column(String(20), nullable=True)
    reference_id = Column(Uuid, nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(kind.in_(MOVEMENT_KINDS), name="chk_movement_kind"),
        CheckConstraint(
            "reference_type IS NULL OR reference_type IN ('transfer', 'assignment')",
            name="chk_movement_reference_type",
        ),
    )

    asset = relationship("Asset", back_populates="movements")


class Transfer(Base):
    """Inter-base transfer of asset quantity."""
    __tablename__ = "transfers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    from_base_id = Column(Uuid, ForeignKey("bases.id"), nullable=False, index=True)
    to_base_id = Column(Uuid, ForeignKey("bases.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    transfer_date = Column(DateTime, nullable=False, default=utcnow)
    transfer_number = Column(String(50), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    initiated_by_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    approved_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    reason = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    in_transit_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(quantity > 0, name="chk_transfer_quantity_positive"),
        CheckConstraint(status.in_(TRANSFER_STATUSES), name="chk_transfer_status"),
        CheckConstraint(from_base_id != to_base_id, name="chk_transfer_distinct_bases"),
    )

    asset = relationship("Asset")
    from_base = relationship("MilitaryBase", foreign_keys=[from_base_id])
    to_base = relationship("MilitaryBase", foreign_keys=[to_base_id])
    initiated_by = relationship("User", foreign_keys=[initiated_by_id])
    approved_by = relationship("User", foreign_keys=[approved_by_id])


class Assignment(Base):
    """Quantity of an asset checked out to a person."""
    __tablename__ = "assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    assigned_by_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    base_id = Column(Uuid, ForeignKey("bases.id"), nullable=False, index=True)
    assignment_date = Column(DateTime, nullable=False, default=utcnow, index=True)
    return_date = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    quantity = Column(Integer, nullable=False, default=1)
    assignment_number = Column(String(50), unique=True, nullable=False, index=True)
    purpose = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(quantity > 0, name="chk_assignment_quantity_positive"),
        CheckConstraint(status.in_(ASSIGNMENT_STATUSES), name="chk_assignment_status"),
    )

    asset = relationship("Asset")
    base = relationship("MilitaryBase")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    assigned_by = relationship("User", foreign_keys=[assigned_by_id])


class Purchase(Base):
    """Procurement record; does not touch the ledger."""
    __tablename__ = "purchases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    base_id = Column(Uuid, ForeignKey("bases.id"), nullable=False, index=True)
    purchase_date = Column(DateTime, nullable=False, default=utcnow, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False, default=0)
    supplier = Column(String(255), nullable=False)
    purchase_order_number = Column(String(100), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(quantity > 0, name="chk_purchase_quantity_positive"),
        CheckConstraint(unit_price >= 0, name="chk_purchase_unit_price_non_negative"),
        CheckConstraint(status.in_(PURCHASE_STATUSES), name="chk_purchase_status"),
    )

    asset = relationship("Asset")
    base = relationship("MilitaryBase")

    def recompute_total(self) -> None:
        self.total_amount = (self.quantity or 0) * (self.unit_price or 0)


@event.listens_for(Asset, "before_insert")
@event.listens_for(Asset, "before_update")
def _asset_closing_balance(mapper, connection, target: Asset) -> None:
    target.recompute_closing_balance()


@event.listens_for(Purchase, "before_insert")
@event.listens_for(Purchase, "before_update")
def _purchase_total(mapper, connection, target: Purchase) -> None:
    target.recompute_total()


@event.listens_for(AssetMovement, "before_update")
def _movement_is_append_only(mapper, connection, target: AssetMovement) -> None:
    raise DomainError(
        code="MOVEMENT_IMMUTABLE",
        http_status=409,
        message="Asset movements are append-only",
    )
