from __future__ import annotations

import pytest

from military_assets.models import Asset, Assignment, User
from military_assets.schemas import AssignmentCreate
from military_assets.use_cases.assignments import create_assignment_use_case


@pytest.fixture()
def post(factory):
    """A base with its commander, an officer and ten units in stock."""
    base = factory.base("Fort Alpha")
    return {
        "base": base,
        "commander": factory.user("base_commander", base=base),
        "officer": factory.user("logistics_officer", assigned=(base,)),
        "asset": factory.asset(base, name="M4 Carbine", quantity=10),
    }


def _assign(client, headers, post, quantity: int = 3, **overrides):
    payload = {
        "asset_id": str(post["asset"].id),
        "assigned_to_id": str(post["officer"].id),
        "quantity": quantity,
        "purpose": "Perimeter patrol",
    }
    payload.update(overrides)
    return client.post("/api/assignments", headers=headers, json=payload)


def _asset(db, post) -> Asset:
    db.expire_all()
    return db.get(Asset, post["asset"].id)


def test_assignment_debits_stock_and_ledger(client, db, post, auth_headers) -> None:
    response = _assign(client, auth_headers(post["commander"]), post)

    assert response.status_code == 201
    payload = response.json()
    assert payload["status"] == "active"
    assert payload["assignment_number"].startswith("ASN-")
    assert payload["assignment_number"].endswith("-001")
    assert payload["base"]["id"] == str(post["base"].id)
    assert payload["assigned_to"]["id"] == str(post["officer"].id)

    asset = _asset(db, post)
    assert asset.quantity == 7
    assert [(m.kind, m.quantity) for m in asset.movements] == [("assignment", -3)]
    assert asset.closing_balance == 7


def test_second_assignment_of_the_day_gets_next_sequence(client, post, auth_headers) -> None:
    headers = auth_headers(post["commander"])
    _assign(client, headers, post, quantity=1)

    second = _assign(client, headers, post, quantity=1).json()

    assert second["assignment_number"].endswith("-002")


def test_over_quantity_assignment_changes_nothing(client, db, post, auth_headers) -> None:
    response = _assign(client, auth_headers(post["commander"]), post, quantity=11)

    assert response.status_code == 409
    payload = response.json()
    assert payload["code"] == "INSUFFICIENT_QUANTITY"
    assert payload["details"] == {"available": 10, "requested": 11}

    asset = _asset(db, post)
    assert asset.quantity == 10
    assert asset.movements == []
    assert db.query(Assignment).count() == 0


def test_return_restores_stock_once(client, db, post, auth_headers) -> None:
    created = _assign(client, auth_headers(post["commander"]), post).json()
    officer_headers = auth_headers(post["officer"])

    returned = client.patch(
        f"/api/assignments/{created['id']}/return", headers=officer_headers, json={"notes": "All accounted for"}
    )
    assert returned.status_code == 200
    assert returned.json()["status"] == "returned"
    assert returned.json()["return_date"] is not None
    assert returned.json()["notes"] == "All accounted for"

    asset = _asset(db, post)
    assert asset.quantity == 10
    assert [(m.kind, m.quantity) for m in asset.movements] == [("assignment", -3), ("return", 3)]
    assert asset.net_movement == 0

    again = client.patch(f"/api/assignments/{created['id']}/return", headers=officer_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "ASSIGNMENT_INVALID_STATUS_TRANSITION"
    assert _asset(db, post).quantity == 10


def test_commander_cannot_close_assignments(client, post, auth_headers) -> None:
    headers = auth_headers(post["commander"])
    created = _assign(client, headers, post).json()

    assert client.patch(f"/api/assignments/{created['id']}/return", headers=headers).status_code == 403


def test_lost_assignment_is_written_off(client, db, post, auth_headers) -> None:
    created = _assign(client, auth_headers(post["commander"]), post).json()

    response = client.patch(
        f"/api/assignments/{created['id']}/status",
        headers=auth_headers(post["officer"]),
        json={"status": "lost"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "lost"
    asset = _asset(db, post)
    assert asset.quantity == 7
    assert [(m.kind, m.quantity) for m in asset.movements] == [("assignment", -3), ("adjustment", -3)]
    assert asset.closing_balance == 4


def test_deleting_returned_assignment_restores_quantity_again(client, db, post, auth_headers) -> None:
    created = _assign(client, auth_headers(post["commander"]), post).json()
    officer_headers = auth_headers(post["officer"])
    client.patch(f"/api/assignments/{created['id']}/return", headers=officer_headers)

    response = client.delete(f"/api/assignments/{created['id']}", headers=officer_headers)

    assert response.status_code == 200
    asset = _asset(db, post)
    assert asset.quantity == 13
    assert asset.movements[-1].kind == "adjustment"
    assert asset.movements[-1].quantity == 3
    assert db.query(Assignment).count() == 0


def test_quantity_change_adjusts_stock(client, db, post, auth_headers) -> None:
    headers = auth_headers(post["commander"])
    created = _assign(client, headers, post).json()

    grown = client.put(f"/api/assignments/{created['id']}", headers=headers, json={"quantity": 5})
    assert grown.status_code == 200
    assert grown.json()["quantity"] == 5
    asset = _asset(db, post)
    assert asset.quantity == 5
    assert asset.movements[-1].quantity == -2

    too_much = client.put(f"/api/assignments/{created['id']}", headers=headers, json={"quantity": 20})
    assert too_much.status_code == 409
    assert too_much.json()["code"] == "INSUFFICIENT_QUANTITY"
    assert _asset(db, post).quantity == 5


def test_closed_assignment_quantity_is_frozen(client, post, auth_headers) -> None:
    created = _assign(client, auth_headers(post["commander"]), post).json()
    officer_headers = auth_headers(post["officer"])
    client.patch(f"/api/assignments/{created['id']}/return", headers=officer_headers)

    response = client.put(f"/api/assignments/{created['id']}", headers=officer_headers, json={"quantity": 1})

    assert response.status_code == 409
    assert response.json()["code"] == "ASSIGNMENT_NOT_ACTIVE"


def test_commander_cannot_assign_for_another_base(client, factory, post, auth_headers) -> None:
    outsider = factory.user("base_commander", base=factory.base("Harbor Bravo"))

    response = _assign(client, auth_headers(outsider), post)

    assert response.status_code == 403
    assert response.json()["code"] == "ASSIGNMENT_BASE_DENIED"


def test_unknown_assignee_is_404(client, post, auth_headers) -> None:
    response = _assign(
        client,
        auth_headers(post["commander"]),
        post,
        assigned_to_id="00000000-0000-0000-0000-0000000000aa",
    )

    assert response.status_code == 404
    assert response.json()["code"] == "ASSIGNEE_NOT_FOUND"


def test_assignment_list_is_scoped(client, factory, post, auth_headers) -> None:
    created = _assign(client, auth_headers(post["commander"]), post).json()
    outsider = factory.user("logistics_officer", assigned=(factory.base("Airfield Charlie"),))

    mine = client.get("/api/assignments", headers=auth_headers(post["officer"]), params={"status": "active"})
    assert [a["id"] for a in mine.json()] == [created["id"]]

    assert client.get("/api/assignments", headers=auth_headers(outsider)).json() == []
    assert client.get(f"/api/assignments/{created['id']}", headers=auth_headers(outsider)).status_code == 403


def test_assignment_summary_groups_by_status_base_and_person(client, post, auth_headers) -> None:
    commander_headers = auth_headers(post["commander"])
    first = _assign(client, commander_headers, post, quantity=2).json()
    _assign(client, commander_headers, post, quantity=3)
    client.patch(f"/api/assignments/{first['id']}/return", headers=auth_headers(post["officer"]))

    summary = client.get("/api/assignments/metrics/summary", headers=commander_headers).json()

    assert summary["total_assignments"] == 2
    assert summary["total_quantity"] == 5
    assert summary["by_status"] == {"returned": 1, "active": 1}
    assert summary["by_base"][str(post["base"].id)] == {
        "name": "Fort Alpha",
        "total": 5,
        "active": 3,
        "returned": 2,
    }
    person = summary["by_personnel"][str(post["officer"].id)]
    assert person["total"] == 5
    assert person["active"] == 3


def test_concurrent_assignments_are_last_writer_wins(db, session_factory, post) -> None:
    first, second = session_factory(), session_factory()
    try:
        stale = second.get(Asset, post["asset"].id)
        assert stale.quantity == 10

        for session, quantity in ((first, 3), (second, 4)):
            create_assignment_use_case(
                db=session,
                current_user=session.get(User, post["commander"].id),
                data=AssignmentCreate(
                    asset_id=post["asset"].id,
                    assigned_to_id=post["officer"].id,
                    quantity=quantity,
                    purpose="Night watch",
                ),
            )
    finally:
        first.close()
        second.close()

    asset = _asset(db, post)
    assert db.query(Assignment).count() == 2
    # The second writer computed from a stale row, so the first debit is lost.
    assert asset.quantity == 6
