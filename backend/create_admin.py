#!/usr/bin/env python3
"""Bootstrap the first admin account.

ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_FULL_NAME come from the environment.
Without ADMIN_PASSWORD a temporary password is generated and printed once.
"""
import os

from military_assets.auth import generate_temporary_password, get_password_hash
from military_assets.database import Base, SessionLocal, engine
from military_assets.models import User
from military_assets.use_cases.accounts import normalize_email


def create_admin() -> int:
    Base.metadata.create_all(bind=engine)
    email = normalize_email(os.getenv("ADMIN_EMAIL", "admin@example.com"))
    password = os.getenv("ADMIN_PASSWORD") or generate_temporary_password()
    full_name = os.getenv("ADMIN_FULL_NAME", "Admin")

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            print(f"Admin user {email} already exists")
            return 0

        db.add(
            User(
                email=email,
                password_hash=get_password_hash(password),
                full_name=full_name,
                role="admin",
                is_active=True,
            )
        )
        db.commit()
        print(f"✅ Admin user created: {email}")
        if not os.getenv("ADMIN_PASSWORD"):
            print(f"   Temporary password: {password}")
        return 0
    except Exception as e:
        db.rollback()
        print(f"❌ Error creating admin user: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(create_admin())
