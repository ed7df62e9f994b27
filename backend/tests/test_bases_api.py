from __future__ import annotations

from military_assets.models import MilitaryBase, User


def _base_payload(name: str = "Fort Delta", **overrides) -> dict:
    payload = {"name": name, "location": "Western Ridge", "type": "army", "capacity": 500}
    payload.update(overrides)
    return payload


def test_admin_creates_and_lists_bases(client, factory, auth_headers) -> None:
    admin = factory.user("admin")
    headers = auth_headers(admin)

    created = client.post("/api/bases", headers=headers, json=_base_payload())
    assert created.status_code == 201
    assert created.json()["status"] == "active"

    listed = client.get("/api/bases", headers=headers)
    assert [b["name"] for b in listed.json()] == ["Fort Delta"]


def test_every_authenticated_user_can_read_bases(client, factory, auth_headers) -> None:
    base = factory.base("Harbor Echo")
    officer = factory.user("logistics_officer")

    response = client.get(f"/api/bases/{base.id}", headers=auth_headers(officer))

    assert response.status_code == 200
    assert response.json()["name"] == "Harbor Echo"


def test_duplicate_base_name_is_conflict(client, factory, auth_headers) -> None:
    admin = factory.user("admin")
    factory.base("Fort Delta")

    response = client.post("/api/bases", headers=auth_headers(admin), json=_base_payload(" Fort Delta "))

    assert response.status_code == 409
    assert response.json()["code"] == "BASE_NAME_EXISTS"


def test_invalid_base_type_is_rejected(client, factory, auth_headers) -> None:
    admin = factory.user("admin")

    response = client.post("/api/bases", headers=auth_headers(admin), json=_base_payload(type="space"))

    assert response.status_code == 400
    assert "type" in response.json()["details"]["errors"]


def test_officer_cannot_create_bases(client, factory, auth_headers) -> None:
    officer = factory.user("logistics_officer")

    response = client.post("/api/bases", headers=auth_headers(officer), json=_base_payload())

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"
    assert response.json()["message"] == "Permission denied: canCreateBases required"


def test_commander_edits_only_own_base(client, factory, auth_headers) -> None:
    own, other = factory.base(), factory.base()
    commander = factory.user("base_commander", base=own)
    headers = auth_headers(commander)

    updated = client.put(f"/api/bases/{own.id}", headers=headers, json={"capacity": 750, "notes": "Winter"})
    assert updated.status_code == 200
    assert updated.json()["capacity"] == 750
    assert updated.json()["notes"] == "Winter"

    denied = client.put(f"/api/bases/{other.id}", headers=headers, json={"capacity": 1})
    assert denied.status_code == 403
    assert denied.json()["code"] == "BASE_MANAGE_DENIED"


def test_commander_without_base_claims_the_base_they_edit(client, db, factory, auth_headers) -> None:
    base = factory.base()
    commander = factory.user("base_commander")

    response = client.put(f"/api/bases/{base.id}", headers=auth_headers(commander), json={"location": "Moved"})

    assert response.status_code == 200
    assert response.json()["commander"]["id"] == str(commander.id)
    db.expire_all()
    assert db.get(User, commander.id).base_id == base.id


def test_claiming_commanded_base_is_denied(client, db, factory, auth_headers) -> None:
    base = factory.base(location="Northern Sector")
    holder = factory.user("base_commander", base=base)
    claimer = factory.user("base_commander")

    response = client.put(f"/api/bases/{base.id}", headers=auth_headers(claimer), json={"location": "Moved"})

    assert response.status_code == 403
    assert response.json()["code"] == "BASE_COMMANDER_EXISTS"
    db.expire_all()
    assert db.get(User, claimer.id).base_id is None
    stored = db.get(MilitaryBase, base.id)
    assert stored.commander_id == holder.id
    assert stored.location == "Northern Sector"


def test_base_in_use_cannot_be_deleted(client, factory, auth_headers) -> None:
    admin = factory.user("admin")
    base = factory.base()
    factory.asset(base)

    response = client.delete(f"/api/bases/{base.id}", headers=auth_headers(admin))

    assert response.status_code == 409
    assert response.json()["code"] == "BASE_IN_USE"


def test_deleting_base_detaches_personnel(client, db, factory, auth_headers) -> None:
    admin = factory.user("admin")
    doomed, remaining = factory.base(), factory.base()
    commander = factory.user("base_commander", base=doomed)
    officer = factory.user("logistics_officer", assigned=(doomed, remaining))

    response = client.delete(f"/api/bases/{doomed.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    db.expire_all()
    assert db.get(User, commander.id).base_id is None
    refreshed = db.get(User, officer.id)
    assert [b.id for b in refreshed.assigned_bases] == [remaining.id]
    assert refreshed.primary_base_id == remaining.id


def test_missing_base_is_404(client, factory, auth_headers) -> None:
    admin = factory.user("admin")
    response = client.get("/api/bases/00000000-0000-0000-0000-00000000dead", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["code"] == "BASE_NOT_FOUND"
