from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from military_assets.models import Asset
from military_assets.services.ledger import add_movement, movement_history, period_metrics


def _asset(opening: int = 10) -> Asset:
    return Asset(name="Rifle", quantity=opening, opening_balance=opening, net_movement=0)


def test_add_movement_rolls_into_net_and_closing_balance() -> None:
    asset = _asset(10)

    add_movement(asset, quantity=-3, kind="assignment", at=datetime(2026, 3, 1, 9, 0))
    add_movement(asset, quantity=3, kind="return", at=datetime(2026, 3, 2, 9, 0))
    add_movement(asset, quantity=-2, kind="adjustment", at=datetime(2026, 3, 3, 9, 0))

    assert asset.net_movement == -2
    assert asset.closing_balance == 8
    assert len(asset.movements) == 3


def test_add_movement_records_reference() -> None:
    asset = _asset()
    reference_id = uuid4()

    movement = add_movement(
        asset,
        quantity=5,
        kind="transfer",
        reference_type="transfer",
        reference_id=reference_id,
        notes="Transfer completed from Fort Alpha",
    )

    assert movement.reference_type == "transfer"
    assert movement.reference_id == reference_id
    assert movement.date is not None


def test_add_movement_rejects_unknown_kind() -> None:
    asset = _asset()
    with pytest.raises(ValueError, match="Unknown movement kind"):
        add_movement(asset, quantity=1, kind="purchase")
    assert asset.movements == []
    assert asset.net_movement == 0


def test_movement_history_is_newest_first_and_window_is_inclusive() -> None:
    asset = _asset()
    add_movement(asset, quantity=-1, kind="assignment", at=datetime(2026, 1, 10))
    add_movement(asset, quantity=-2, kind="assignment", at=datetime(2026, 2, 10))
    add_movement(asset, quantity=-3, kind="assignment", at=datetime(2026, 3, 10))

    window = movement_history(asset, datetime(2026, 2, 10), datetime(2026, 3, 10))
    assert [m.quantity for m in window] == [-3, -2]

    everything = movement_history(asset)
    assert [m.quantity for m in everything] == [-3, -2, -1]


def test_movement_history_normalizes_aware_bounds() -> None:
    asset = _asset()
    add_movement(asset, quantity=4, kind="return", at=datetime(2026, 5, 1, 12, 0))

    start = datetime(2026, 5, 1, 11, 0, tzinfo=timezone.utc)
    assert len(movement_history(asset, start=start)) == 1


def test_period_metrics_counts_kinds_inside_window() -> None:
    asset = _asset(20)
    add_movement(asset, quantity=5, kind="transfer", at=datetime(2026, 4, 1))
    add_movement(asset, quantity=-4, kind="assignment", at=datetime(2026, 4, 2))
    add_movement(asset, quantity=4, kind="return", at=datetime(2026, 4, 3))
    add_movement(asset, quantity=-1, kind="assignment", at=datetime(2026, 6, 1))

    metrics = period_metrics(asset, datetime(2026, 4, 1), datetime(2026, 4, 30))

    assert metrics == {
        "total_transfers": 1,
        "total_assignments": 1,
        "total_returns": 1,
        "net_movement": 5,
        "opening_balance": 20,
        "closing_balance": 24,
    }
