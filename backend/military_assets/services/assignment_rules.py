"""Assignment status invariants and ledger effects."""

from __future__ import annotations

from typing import NamedTuple


_ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "active": {"returned", "lost", "damaged"},
    "returned": set(),
    "expended": set(),
    "lost": set(),
    "damaged": set(),
}


class StatusEffect(NamedTuple):
    """What closing an assignment does to the ledger."""

    movement_kind: str
    sign: int
    restores_quantity: bool


_CLOSING_EFFECTS: dict[str, StatusEffect] = {
    "returned": StatusEffect("return", +1, True),
    "lost": StatusEffect("adjustment", -1, False),
    "damaged": StatusEffect("adjustment", -1, False),
}


def normalize_assignment_status(status: str | None) -> str:
    if not status:
        return "active"
    return status.strip().lower()


def validate_status_transition(*, current_status: str | None, next_status: str) -> str:
    current = normalize_assignment_status(current_status)
    nxt = normalize_assignment_status(next_status)

    allowed = _ALLOWED_TRANSITIONS.get(current, set())
    if nxt not in allowed:
        raise ValueError(f"Invalid status transition from {current} to {nxt}")
    return nxt


def closing_effect(status: str) -> StatusEffect:
    return _CLOSING_EFFECTS[normalize_assignment_status(status)]


def format_assignment_number(today_count: int, *, year: int, month: int, day: int) -> str:
    """ASN-YYMMDD-NNN where NNN is the day's sequence."""
    return f"ASN-{year % 100:02d}{month:02d}{day:02d}-{today_count + 1:03d}"
