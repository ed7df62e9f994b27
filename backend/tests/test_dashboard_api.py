from __future__ import annotations

import pytest


@pytest.fixture()
def theatre(factory):
    alpha, bravo = factory.base("Alpha"), factory.base("Bravo")
    return {
        "alpha": alpha,
        "bravo": bravo,
        "admin": factory.user("admin"),
        "alpha_commander": factory.user("base_commander", base=alpha),
        "officer": factory.user("logistics_officer", assigned=(alpha,)),
        "rifle": factory.asset(alpha, type="weapon", quantity=10),
        "truck": factory.asset(alpha, type="vehicle", quantity=2, status="maintenance"),
        "boat": factory.asset(bravo, type="vehicle", quantity=1),
    }


def _transfer(client, headers, theatre, quantity: int = 2):
    return client.post(
        "/api/transfers",
        headers=headers,
        json={
            "asset_id": str(theatre["rifle"].id),
            "from_base_id": str(theatre["alpha"].id),
            "to_base_id": str(theatre["bravo"].id),
            "quantity": quantity,
            "reason": "Drills",
        },
    ).json()


def _assignment(client, headers, theatre, quantity: int = 1):
    return client.post(
        "/api/assignments",
        headers=headers,
        json={
            "asset_id": str(theatre["rifle"].id),
            "assigned_to_id": str(theatre["officer"].id),
            "quantity": quantity,
            "purpose": "Guard duty",
        },
    ).json()


def test_admin_dashboard_covers_every_base(client, theatre, auth_headers) -> None:
    response = client.get("/api/dashboard", headers=auth_headers(theatre["admin"]))

    assert response.status_code == 200
    payload = response.json()
    assert payload["user"]["id"] == str(theatre["admin"].id)
    assert payload["counts"]["assets"] == 3
    assert payload["counts"]["bases"] == 2
    assert payload["metrics"]["opening_balance"] == 0
    assert payload["metrics"]["closing_balance"] == 3
    assert payload["metrics"]["net_movement"] == 3
    assert payload["distributions"]["type"] == {"weapon": 1, "vehicle": 2}
    assert {row["base_name"]: row["total"] for row in payload["distributions"]["base"]} == {"Alpha": 2, "Bravo": 1}
    assert len(payload["recent_activities"]["assets"]) == 3
    assert payload["period"]["start"].endswith("-01T00:00:00")


def test_dashboard_reads_are_idempotent(client, theatre, auth_headers) -> None:
    headers = auth_headers(theatre["admin"])
    _transfer(client, headers, theatre)

    first = client.get("/api/dashboard", headers=headers).json()
    second = client.get("/api/dashboard", headers=headers).json()

    for key in ("counts", "metrics", "distributions", "recent_activities"):
        assert first[key] == second[key]


def test_commander_dashboard_is_limited_to_own_base(client, theatre, auth_headers) -> None:
    headers = auth_headers(theatre["alpha_commander"])

    payload = client.get("/api/dashboard", headers=headers, params={"base": str(theatre["bravo"].id)}).json()

    assert payload["counts"]["assets"] == 2
    assert payload["counts"]["bases"] == 1
    assert payload["distributions"]["base"] == []
    assert {a["base"] for a in payload["recent_activities"]["assets"]} == {"Alpha"}


def test_officer_cannot_request_unassigned_base(client, theatre, auth_headers) -> None:
    response = client.get(
        "/api/dashboard",
        headers=auth_headers(theatre["officer"]),
        params={"base": str(theatre["bravo"].id)},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "BASE_ACCESS_DENIED"


def test_type_filter_narrows_asset_figures(client, theatre, auth_headers) -> None:
    payload = client.get(
        "/api/dashboard", headers=auth_headers(theatre["admin"]), params={"type": "vehicle"}
    ).json()

    assert payload["counts"]["assets"] == 2
    assert payload["distributions"]["type"] == {"vehicle": 2}


def test_metrics_net_movement_is_flow_based(client, theatre, auth_headers) -> None:
    headers = auth_headers(theatre["admin"])
    _transfer(client, headers, theatre)
    client.post(
        "/api/purchases",
        headers=headers,
        json={
            "asset_id": str(theatre["boat"].id),
            "base_id": str(theatre["bravo"].id),
            "quantity": 1,
            "unit_price": 90000.0,
            "supplier": "Harbor Yards",
            "purchase_order_number": "PO-BOAT-1",
        },
    )

    bravo = client.get("/api/dashboard/metrics", headers=headers, params={"base": str(theatre["bravo"].id)})

    assert bravo.status_code == 200
    payload = bravo.json()
    assert payload["purchases"] == 1
    assert payload["transfers_in"] == 1
    assert payload["transfers_out"] == 0
    assert payload["net_movement"] == 2
    assert [row["base_name"] for row in payload["base_breakdown"]] == ["Bravo"]

    alpha = client.get("/api/dashboard/metrics", headers=headers, params={"base": str(theatre["alpha"].id)}).json()
    assert alpha["transfers_out"] == 1
    assert alpha["net_movement"] == -1


def test_metrics_hide_base_breakdown_from_non_admins(client, theatre, auth_headers) -> None:
    payload = client.get("/api/dashboard/metrics", headers=auth_headers(theatre["officer"])).json()

    assert payload["base_breakdown"] is None


def test_stats_count_scoped_workload(client, theatre, auth_headers) -> None:
    commander_headers = auth_headers(theatre["alpha_commander"])
    _transfer(client, commander_headers, theatre)
    _assignment(client, commander_headers, theatre)

    stats = client.get("/api/dashboard/stats", headers=commander_headers).json()

    assert stats == {
        "total_assets": 2,
        "active_assignments": 1,
        "pending_transfers": 1,
        "scheduled_maintenance": 1,
    }


def test_activity_feed_merges_newest_first(client, theatre, auth_headers) -> None:
    headers = auth_headers(theatre["alpha_commander"])
    _assignment(client, headers, theatre)
    _transfer(client, headers, theatre)

    feed = client.get("/api/dashboard/activities", headers=headers).json()

    assert [item["type"] for item in feed] == ["transfer", "assignment"]
    assert feed[0]["title"] == f"Asset {theatre['rifle'].name} transferred from Alpha to Bravo"
    assert feed[1]["description"] == "Guard duty"


def test_activity_feed_is_scoped(client, factory, theatre, auth_headers) -> None:
    _transfer(client, auth_headers(theatre["alpha_commander"]), theatre)
    outsider = factory.user("base_commander", base=factory.base("Charlie"))

    assert client.get("/api/dashboard/activities", headers=auth_headers(outsider)).json() == []
