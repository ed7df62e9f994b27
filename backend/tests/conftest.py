from __future__ import annotations

import os

# Point the app at a throwaway database before anything imports the engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")

from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from military_assets.auth import create_user_token, get_password_hash
from military_assets.database import Base, enable_sqlite_foreign_keys, get_db
from military_assets.main import app
from military_assets.models import Asset, MilitaryBase, User

DEFAULT_PASSWORD = "password123"
_password_hash: str | None = None


def _hashed_default_password() -> str:
    global _password_hash
    if _password_hash is None:
        _password_hash = get_password_hash(DEFAULT_PASSWORD)
    return _password_hash


class Factory:
    """Creates committed rows directly through the ORM."""

    password = DEFAULT_PASSWORD

    def __init__(self, db) -> None:
        self.db = db
        self._seq = count(1)

    def base(self, name: str | None = None, **overrides) -> MilitaryBase:
        n = next(self._seq)
        base = MilitaryBase(
            name=name or f"Base {n}",
            location=overrides.pop("location", f"Sector {n}"),
            type=overrides.pop("type", "army"),
            status=overrides.pop("status", "active"),
            capacity=overrides.pop("capacity", 100),
            **overrides,
        )
        self.db.add(base)
        self.db.commit()
        return base

    def user(
        self,
        role: str = "logistics_officer",
        *,
        base: MilitaryBase | None = None,
        assigned: tuple[MilitaryBase, ...] = (),
        email: str | None = None,
        is_active: bool = True,
    ) -> User:
        n = next(self._seq)
        user = User(
            email=email or f"{role}{n}@example.com",
            password_hash=_hashed_default_password(),
            full_name=f"{role.replace('_', ' ').title()} {n}",
            role=role,
            is_active=is_active,
        )
        user.assigned_bases = list(assigned)
        self.db.add(user)
        self.db.flush()
        if role == "base_commander" and base is not None:
            user.base_id = base.id
            base.commander_id = user.id
        user.normalize_affiliation()
        self.db.commit()
        return user

    def asset(self, base: MilitaryBase, *, quantity: int = 10, **overrides) -> Asset:
        n = next(self._seq)
        asset = Asset(
            name=overrides.pop("name", f"Asset {n}"),
            type=overrides.pop("type", "equipment"),
            serial_number=overrides.pop("serial_number", f"SN-{n:05d}"),
            base_id=base.id,
            location=overrides.pop("location", "Depot"),
            status=overrides.pop("status", "available"),
            quantity=quantity,
            opening_balance=overrides.pop("opening_balance", quantity),
            net_movement=0,
            **overrides,
        )
        self.db.add(asset)
        self.db.commit()
        return asset


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def factory(db) -> Factory:
    return Factory(db)


@pytest.fixture()
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _headers
