"""Base registry use-cases."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from ..domain_errors import conflict, forbidden
from ..models import Assignment, Asset, MilitaryBase, Purchase, Transfer, User, user_assigned_bases
from ..schemas import BaseCreate, BaseUpdate
from ..security import require_entity

logger = logging.getLogger(__name__)


def get_base_or_404(db: Session, base_id: UUID) -> MilitaryBase:
    return require_entity(db, MilitaryBase, base_id, code="BASE_NOT_FOUND", message="Base not found")


def list_bases_use_case(*, db: Session) -> list[MilitaryBase]:
    return db.query(MilitaryBase).order_by(MilitaryBase.name.asc()).all()


def create_base_use_case(*, db: Session, current_user: User, data: BaseCreate) -> MilitaryBase:
    if db.query(MilitaryBase.id).filter(MilitaryBase.name == data.name.strip()).first():
        raise conflict("BASE_NAME_EXISTS", "A base with this name already exists")

    base = MilitaryBase(
        **data.model_dump(exclude={"name"}),
        name=data.name.strip(),
        created_by_id=current_user.id,
        updated_by_id=current_user.id,
    )
    db.add(base)
    db.commit()
    db.refresh(base)
    logger.info("base.created id=%s by=%s", base.id, current_user.id)
    return base


def _claim_or_check_commanded_base(db: Session, current_user: User, base: MilitaryBase) -> None:
    if current_user.base_id is None:
        # A commander without a base takes over the first base they edit.
        holder = db.query(User.id).filter(
            User.role == "base_commander",
            User.base_id == base.id,
            User.id != current_user.id,
            User.is_active.is_(True),
        ).first()
        if holder:
            raise forbidden("BASE_COMMANDER_EXISTS", "This base already has a commander assigned")
        current_user.base_id = base.id
        base.commander_id = current_user.id
        logger.info("base.claimed id=%s commander=%s", base.id, current_user.id)
        return
    if current_user.base_id != base.id:
        raise forbidden("BASE_MANAGE_DENIED", "You can only update your assigned base")


def update_base_use_case(*, db: Session, current_user: User, base_id: UUID, data: BaseUpdate) -> MilitaryBase:
    base = get_base_or_404(db, base_id)
    if current_user.role == "base_commander":
        _claim_or_check_commanded_base(db, current_user, base)

    payload = data.model_dump(exclude_unset=True)
    if payload.get("name") and payload["name"].strip() != base.name:
        name = payload["name"].strip()
        if db.query(MilitaryBase.id).filter(MilitaryBase.name == name, MilitaryBase.id != base.id).first():
            raise conflict("BASE_NAME_EXISTS", "A base with this name already exists")
        payload["name"] = name
    for key, value in payload.items():
        if value is not None or key in {"description", "notes"}:
            setattr(base, key, value)
    base.updated_by_id = current_user.id

    db.commit()
    db.refresh(base)
    return base


def _ensure_base_unused(db: Session, base_id: UUID) -> None:
    in_use = (
        db.query(Asset.id).filter(Asset.base_id == base_id).first()
        or db.query(Transfer.id).filter((Transfer.from_base_id == base_id) | (Transfer.to_base_id == base_id)).first()
        or db.query(Assignment.id).filter(Assignment.base_id == base_id).first()
        or db.query(Purchase.id).filter(Purchase.base_id == base_id).first()
    )
    if in_use:
        raise conflict("BASE_IN_USE", "Base still has assets or records attached")


def delete_base_use_case(*, db: Session, current_user: User, base_id: UUID) -> None:
    base = get_base_or_404(db, base_id)
    if current_user.role == "base_commander" and current_user.base_id != base.id:
        raise forbidden("BASE_MANAGE_DENIED", "You can only delete your assigned base")
    _ensure_base_unused(db, base.id)

    db.query(User).filter(User.base_id == base.id).update(
        {User.base_id: None},
        synchronize_session="fetch",
    )
    officers = db.query(User).filter(
        User.role == "logistics_officer",
        User.assigned_bases.any(MilitaryBase.id == base.id),
    ).all()
    db.execute(user_assigned_bases.delete().where(user_assigned_bases.c.base_id == base.id))
    for officer in officers:
        db.expire(officer, ["assigned_bases"])
        if officer.primary_base_id == base.id:
            officer.primary_base_id = None
        officer.normalize_affiliation()

    db.delete(base)
    db.commit()
    logger.info("base.deleted id=%s by=%s", base_id, current_user.id)
