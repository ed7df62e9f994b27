from datetime import datetime

import pytest

from military_assets.services.transfer_rules import (
    apply_status_timestamps,
    is_terminal_status,
    normalize_transfer_status,
    validate_status_transition,
)


@pytest.mark.parametrize(
    ("current", "nxt"),
    [
        ("pending", "in_transit"),
        ("pending", "cancelled"),
        ("in_transit", "completed"),
        ("in_transit", "cancelled"),
    ],
)
def test_allowed_transitions(current: str, nxt: str) -> None:
    assert validate_status_transition(current_status=current, next_status=nxt) == nxt


@pytest.mark.parametrize(
    ("current", "nxt"),
    [
        ("pending", "completed"),
        ("pending", "pending"),
        ("in_transit", "pending"),
        ("completed", "cancelled"),
        ("cancelled", "in_transit"),
    ],
)
def test_rejected_transitions(current: str, nxt: str) -> None:
    with pytest.raises(ValueError, match="Invalid status transition"):
        validate_status_transition(current_status=current, next_status=nxt)


def test_missing_status_is_treated_as_pending() -> None:
    assert normalize_transfer_status(None) == "pending"
    assert normalize_transfer_status(" In_Transit ") == "in_transit"
    assert validate_status_transition(current_status=None, next_status="IN_TRANSIT") == "in_transit"


def test_terminal_statuses() -> None:
    assert is_terminal_status("completed")
    assert is_terminal_status("cancelled")
    assert not is_terminal_status("in_transit")


def test_status_timestamps_are_set_once() -> None:
    first = datetime(2026, 2, 16, 10, 0)
    later = datetime(2026, 2, 17, 10, 0)

    updates = apply_status_timestamps(
        next_status="in_transit",
        in_transit_at=None,
        completed_at=None,
        cancelled_at=None,
        at=first,
    )
    assert updates == {"in_transit_at": first, "completed_at": None, "cancelled_at": None}

    updates = apply_status_timestamps(
        next_status="completed",
        in_transit_at=first,
        completed_at=None,
        cancelled_at=None,
        at=later,
    )
    assert updates["in_transit_at"] == first
    assert updates["completed_at"] == later
