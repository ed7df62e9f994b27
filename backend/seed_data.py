"""Seed database with demo data."""
import uuid
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from military_assets.auth import get_password_hash
from military_assets.database import Base, SessionLocal, engine
from military_assets.models import Asset, MilitaryBase, User
from military_assets.schemas import AssignmentCreate, PurchaseCreate, TransferCreate
from military_assets.use_cases.assignments import create_assignment_use_case
from military_assets.use_cases.purchases import create_purchase_use_case
from military_assets.use_cases.transfers import create_transfer_use_case

ALEMBIC_INI = Path(__file__).resolve().parent / "alembic.ini"


def stamp_baseline():
    """Record a create_all() schema as migrated so later upgrades apply on top."""
    if inspect(engine).has_table("alembic_version"):
        return
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    command.stamp(config, "head")


def seed():
    """Seed database with demo data."""
    Base.metadata.create_all(bind=engine)
    stamp_baseline()
    db = SessionLocal()

    try:
        if db.query(MilitaryBase).first():
            print("Database already seeded, skipping")
            return

        # Create bases
        bases_data = [
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000001'),
                'name': 'Fort Alpha',
                'location': 'Northern Sector',
                'type': 'army',
                'capacity': 5000,
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000002'),
                'name': 'Harbor Bravo',
                'location': 'Eastern Coast',
                'type': 'naval',
                'capacity': 3000,
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000003'),
                'name': 'Airfield Charlie',
                'location': 'Southern Plains',
                'type': 'air',
                'capacity': 2000,
            },
        ]
        bases = []
        for base_data in bases_data:
            base = MilitaryBase(status='active', **base_data)
            db.add(base)
            bases.append(base)
        db.flush()

        # Create users
        users_data = [
            {
                'email': 'admin@example.com',
                'password': 'admin123',
                'full_name': 'System Administrator',
                'role': 'admin',
            },
            {
                'email': 'commander.alpha@example.com',
                'password': 'commander123',
                'full_name': 'Col. Jane Carter',
                'role': 'base_commander',
                'base_id': bases[0].id,
            },
            {
                'email': 'commander.bravo@example.com',
                'password': 'commander123',
                'full_name': 'Capt. Omar Reyes',
                'role': 'base_commander',
                'base_id': bases[1].id,
            },
            {
                'email': 'logistics@example.com',
                'password': 'logistics123',
                'full_name': 'Lt. Sam Okafor',
                'role': 'logistics_officer',
            },
        ]
        users = []
        for user_data in users_data:
            password = user_data.pop('password')
            user = User(password_hash=get_password_hash(password), is_active=True, **user_data)
            db.add(user)
            users.append(user)
        db.flush()

        admin, commander_alpha, commander_bravo, officer = users
        bases[0].commander_id = commander_alpha.id
        bases[1].commander_id = commander_bravo.id
        officer.assigned_bases = [bases[0], bases[2]]
        officer.normalize_affiliation()

        # Create assets
        assets_data = [
            ('M4 Carbine', 'weapon', 'WPN-0001', bases[0], 'Armory A', 120),
            ('Humvee', 'vehicle', 'VEH-0001', bases[0], 'Motor Pool', 12),
            ('5.56mm Rounds (crate)', 'ammunition', 'AMM-0001', bases[0], 'Magazine 2', 400),
            ('Night Vision Goggles', 'equipment', 'EQP-0001', bases[1], 'Supply Depot', 60),
            ('Patrol Boat', 'vehicle', 'VEH-0002', bases[1], 'Dock 3', 4),
            ('Field Radio', 'equipment', 'EQP-0002', bases[2], 'Comms Hangar', 35),
        ]
        assets = []
        for name, asset_type, serial, base, location, quantity in assets_data:
            asset = Asset(
                name=name,
                type=asset_type,
                serial_number=serial,
                base_id=base.id,
                location=location,
                quantity=quantity,
                opening_balance=quantity,
                net_movement=0,
                created_by_id=admin.id,
                updated_by_id=admin.id,
            )
            db.add(asset)
            assets.append(asset)
        db.commit()

        # Workflow records go through the use-cases so the ledger stays consistent.
        create_assignment_use_case(
            db=db,
            current_user=commander_alpha,
            data=AssignmentCreate(
                asset_id=assets[0].id,
                assigned_to_id=officer.id,
                quantity=10,
                purpose='Perimeter patrol rotation',
            ),
        )
        create_transfer_use_case(
            db=db,
            current_user=commander_alpha,
            data=TransferCreate(
                asset_id=assets[2].id,
                from_base_id=bases[0].id,
                to_base_id=bases[2].id,
                quantity=50,
                reason='Resupply for air defence drills',
            ),
        )
        create_purchase_use_case(
            db=db,
            current_user=admin,
            data=PurchaseCreate(
                asset_id=assets[3].id,
                base_id=bases[1].id,
                quantity=20,
                unit_price=1250.0,
                supplier='Optics Corp',
                purchase_order_number='PO-2024-0001',
            ),
        )

        print("✅ Database seeded successfully!")
        print("\nDemo users:")
        print("  admin@example.com/admin123 (Administrator)")
        print("  commander.alpha@example.com/commander123 (Base Commander, Fort Alpha)")
        print("  commander.bravo@example.com/commander123 (Base Commander, Harbor Bravo)")
        print("  logistics@example.com/logistics123 (Logistics Officer)")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
