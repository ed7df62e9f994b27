from __future__ import annotations

from datetime import datetime

from military_assets.models import Asset, AssetMovement
from military_assets.services.ledger import add_movement


def _asset_payload(base_id, serial: str = "WPN-1000", **overrides) -> dict:
    payload = {
        "name": "M4 Carbine",
        "type": "weapon",
        "serial_number": serial,
        "base_id": str(base_id),
        "location": "Armory A",
        "quantity": 40,
    }
    payload.update(overrides)
    return payload


def test_commander_creates_asset_in_own_base(client, factory, auth_headers) -> None:
    base = factory.base()
    commander = factory.user("base_commander", base=base)

    response = client.post("/api/assets", headers=auth_headers(commander), json=_asset_payload(base.id))

    assert response.status_code == 201
    payload = response.json()
    assert payload["opening_balance"] == 40
    assert payload["closing_balance"] == 40
    assert payload["net_movement"] == 0
    assert payload["base"]["id"] == str(base.id)
    assert payload["created_by"]["id"] == str(commander.id)


def test_asset_cannot_be_created_in_foreign_base(client, factory, auth_headers) -> None:
    own, other = factory.base(), factory.base()
    officer = factory.user("logistics_officer", assigned=(own,))

    response = client.post("/api/assets", headers=auth_headers(officer), json=_asset_payload(other.id))

    assert response.status_code == 403
    assert response.json()["code"] == "BASE_MANAGE_DENIED"


def test_duplicate_serial_number_is_conflict(client, factory, auth_headers) -> None:
    admin = factory.user("admin")
    base = factory.base()
    factory.asset(base, serial_number="WPN-1000")

    response = client.post("/api/assets", headers=auth_headers(admin), json=_asset_payload(base.id))

    assert response.status_code == 409
    assert response.json()["code"] == "ASSET_SERIAL_EXISTS"


def test_asset_list_is_scoped_and_filtered(client, factory, auth_headers) -> None:
    own, other = factory.base(), factory.base()
    officer = factory.user("logistics_officer", assigned=(own,))
    radio = factory.asset(own, name="Field Radio", type="equipment", quantity=5)
    factory.asset(own, name="Humvee", type="vehicle", quantity=50)
    factory.asset(other, name="Field Radio Spare", type="equipment", quantity=5)
    headers = auth_headers(officer)

    everything = client.get("/api/assets", headers=headers).json()
    assert len(everything) == 2

    searched = client.get("/api/assets", headers=headers, params={"search": "radio"}).json()
    assert [a["id"] for a in searched] == [str(radio.id)]

    small = client.get("/api/assets", headers=headers, params={"maxQuantity": 10, "type": "equipment"}).json()
    assert [a["id"] for a in small] == [str(radio.id)]


def test_admin_sees_every_base(client, factory, auth_headers) -> None:
    admin = factory.user("admin")
    factory.asset(factory.base())
    factory.asset(factory.base())

    assert len(client.get("/api/assets", headers=auth_headers(admin)).json()) == 2


def test_asset_detail_is_denied_outside_scope(client, factory, auth_headers) -> None:
    own, other = factory.base(), factory.base()
    commander = factory.user("base_commander", base=own)
    foreign = factory.asset(other)

    response = client.get(f"/api/assets/{foreign.id}", headers=auth_headers(commander))

    assert response.status_code == 403
    assert response.json()["code"] == "ASSET_ACCESS_DENIED"


def test_assets_by_base_requires_access(client, factory, auth_headers) -> None:
    own, other = factory.base(), factory.base()
    commander = factory.user("base_commander", base=own)
    factory.asset(own)

    assert len(client.get(f"/api/assets/base/{own.id}", headers=auth_headers(commander)).json()) == 1
    assert client.get(f"/api/assets/base/{other.id}", headers=auth_headers(commander)).status_code == 403


def test_update_keeps_net_movement_and_recomputes_closing(client, db, factory, auth_headers) -> None:
    admin = factory.user("admin")
    base = factory.base()
    asset = factory.asset(base, quantity=10)
    add_movement(asset, quantity=-3, kind="adjustment")
    db.commit()

    response = client.put(
        f"/api/assets/{asset.id}",
        headers=auth_headers(admin),
        json={"opening_balance": 20, "location": "Depot 9", "net_movement": 999},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["net_movement"] == -3
    assert payload["closing_balance"] == 17
    assert payload["location"] == "Depot 9"


def test_moving_asset_requires_access_to_target_base(client, factory, auth_headers) -> None:
    own, other = factory.base(), factory.base()
    commander = factory.user("base_commander", base=own)
    asset = factory.asset(own)

    response = client.put(
        f"/api/assets/{asset.id}", headers=auth_headers(commander), json={"base_id": str(other.id)}
    )

    assert response.status_code == 403


def test_delete_removes_asset_and_its_movements(client, db, factory, auth_headers) -> None:
    admin = factory.user("admin")
    asset = factory.asset(factory.base())
    add_movement(asset, quantity=-1, kind="adjustment")
    db.commit()

    response = client.delete(f"/api/assets/{asset.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Asset, asset.id) is None
    assert db.query(AssetMovement).count() == 0


def test_movement_history_and_period_metrics(client, db, factory, auth_headers) -> None:
    base = factory.base()
    officer = factory.user("logistics_officer", assigned=(base,))
    asset = factory.asset(base, quantity=30)
    add_movement(asset, quantity=-5, kind="assignment", at=datetime(2026, 1, 5))
    add_movement(asset, quantity=5, kind="return", at=datetime(2026, 1, 20))
    add_movement(asset, quantity=8, kind="transfer", at=datetime(2026, 3, 1))
    db.commit()
    headers = auth_headers(officer)

    history = client.get(
        f"/api/assets/{asset.id}/movements",
        headers=headers,
        params={"startDate": "2026-01-01", "endDate": "2026-01-31"},
    )
    assert history.status_code == 200
    assert [m["kind"] for m in history.json()] == ["return", "assignment"]

    metrics = client.get(f"/api/assets/{asset.id}/metrics", headers=headers).json()
    assert metrics["total_transfers"] == 1
    assert metrics["total_assignments"] == 1
    assert metrics["total_returns"] == 1
    assert metrics["net_movement"] == 8
    assert metrics["closing_balance"] == 38


def test_invalid_date_filter_is_rejected(client, factory, auth_headers) -> None:
    admin = factory.user("admin")

    response = client.get("/api/assets", headers=auth_headers(admin), params={"startDate": "last tuesday"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DATE"


def test_asset_metrics_and_summary(client, factory, auth_headers) -> None:
    admin = factory.user("admin")
    alpha, bravo = factory.base("Alpha"), factory.base("Bravo")
    factory.asset(alpha, type="weapon", quantity=10, cost=100.0)
    factory.asset(alpha, type="vehicle", quantity=2, status="assigned")
    factory.asset(bravo, type="weapon", quantity=5, status="expended")
    headers = auth_headers(admin)

    metrics = client.get("/api/assets/metrics", headers=headers).json()
    assert metrics["total_assets"] == 3
    assert metrics["assigned_assets"] == 1
    assert metrics["expended_assets"] == 1
    assert metrics["opening_balance"] == 0
    assert metrics["net_movement"] == 3

    summary = client.get("/api/assets/metrics/summary", headers=headers).json()
    assert summary["total_quantity"] == 17
    assert summary["total_value"] == 1000.0
    assert summary["by_type"] == {"weapon": 15, "vehicle": 2}
    assert summary["by_base"][str(alpha.id)]["total"] == 12

    scoped = client.get("/api/assets/metrics/summary", headers=headers, params={"base": str(bravo.id)}).json()
    assert scoped["total_assets"] == 1


def test_asset_types_catalogue(client, factory, auth_headers) -> None:
    user = factory.user()

    response = client.get("/api/assets/types", headers=auth_headers(user))

    assert {t["id"] for t in response.json()} == {"weapon", "vehicle", "ammunition", "equipment"}
