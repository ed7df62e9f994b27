"""Asset balance bookkeeping.

Workflows change ledger totals only through ``add_movement``; history and
period metrics are derived from the movement log and never stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from ..models import Asset, AssetMovement, MOVEMENT_KINDS
from ..time_utils import as_naive_utc, utcnow


def add_movement(
    asset: Asset,
    *,
    quantity: int,
    kind: str,
    reference_type: Optional[str] = None,
    reference_id: Optional[UUID] = None,
    notes: Optional[str] = None,
    at: Optional[datetime] = None,
) -> AssetMovement:
    """Append a signed movement and roll it into net/closing balances."""
    if kind not in MOVEMENT_KINDS:
        raise ValueError(f"Unknown movement kind: {kind}")

    movement = AssetMovement(
        date=at or utcnow(),
        kind=kind,
        quantity=quantity,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
    )
    asset.movements.append(movement)
    asset.net_movement = (asset.net_movement or 0) + quantity
    asset.recompute_closing_balance()
    return movement


def movement_history(
    asset: Asset,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[AssetMovement]:
    """Movements within [start, end], newest first."""
    start = as_naive_utc(start)
    end = as_naive_utc(end)
    selected = [
        m for m in asset.movements
        if (start is None or m.date >= start) and (end is None or m.date <= end)
    ]
    return sorted(selected, key=lambda m: m.date, reverse=True)


def period_metrics(
    asset: Asset,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> dict[str, int]:
    movements = movement_history(asset, start, end)
    return {
        "total_transfers": sum(1 for m in movements if m.kind == "transfer"),
        "total_assignments": sum(1 for m in movements if m.kind == "assignment"),
        "total_returns": sum(1 for m in movements if m.kind == "return"),
        "net_movement": sum(m.quantity for m in movements),
        "opening_balance": asset.opening_balance or 0,
        "closing_balance": asset.closing_balance or 0,
    }
