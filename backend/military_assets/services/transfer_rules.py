"""Transfer status invariants."""

from __future__ import annotations

from datetime import datetime

from ..time_utils import utcnow


_TERMINAL_STATUSES: set[str] = {"completed", "cancelled"}
_ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"in_transit", "cancelled"},
    "in_transit": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


def normalize_transfer_status(status: str | None) -> str:
    if not status:
        return "pending"
    return status.strip().lower()


def validate_status_transition(*, current_status: str | None, next_status: str) -> str:
    current = normalize_transfer_status(current_status)
    nxt = normalize_transfer_status(next_status)

    allowed = _ALLOWED_TRANSITIONS.get(current, set())
    if nxt not in allowed:
        raise ValueError(f"Invalid status transition from {current} to {nxt}")
    return nxt


def is_terminal_status(status: str | None) -> bool:
    return normalize_transfer_status(status) in _TERMINAL_STATUSES


def apply_status_timestamps(
    *,
    next_status: str,
    in_transit_at: datetime | None,
    completed_at: datetime | None,
    cancelled_at: datetime | None,
    at: datetime | None = None,
) -> dict[str, datetime | None]:
    ts = at or utcnow()
    nxt = normalize_transfer_status(next_status)

    if nxt == "in_transit" and in_transit_at is None:
        in_transit_at = ts
    if nxt == "completed" and completed_at is None:
        completed_at = ts
    if nxt == "cancelled" and cancelled_at is None:
        cancelled_at = ts

    return {
        "in_transit_at": in_transit_at,
        "completed_at": completed_at,
        "cancelled_at": cancelled_at,
    }
