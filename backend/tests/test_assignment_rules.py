import pytest

from military_assets.services.assignment_rules import (
    closing_effect,
    format_assignment_number,
    normalize_assignment_status,
    validate_status_transition,
)


@pytest.mark.parametrize("nxt", ["returned", "lost", "damaged"])
def test_active_assignment_can_be_closed(nxt: str) -> None:
    assert validate_status_transition(current_status="active", next_status=nxt) == nxt


@pytest.mark.parametrize("current", ["returned", "lost", "damaged", "expended"])
def test_closed_assignment_is_final(current: str) -> None:
    with pytest.raises(ValueError, match=f"from {current} to returned"):
        validate_status_transition(current_status=current, next_status="returned")


def test_expended_is_not_a_closing_target() -> None:
    with pytest.raises(ValueError):
        validate_status_transition(current_status="active", next_status="expended")


def test_return_restores_quantity_while_loss_writes_off() -> None:
    returned = closing_effect("returned")
    assert (returned.movement_kind, returned.sign, returned.restores_quantity) == ("return", 1, True)

    for status in ("lost", "damaged"):
        effect = closing_effect(status)
        assert (effect.movement_kind, effect.sign, effect.restores_quantity) == ("adjustment", -1, False)


def test_normalize_defaults_to_active() -> None:
    assert normalize_assignment_status(None) == "active"
    assert normalize_assignment_status(" LOST ") == "lost"


def test_assignment_number_uses_day_sequence() -> None:
    assert format_assignment_number(0, year=2026, month=3, day=7) == "ASN-260307-001"
    assert format_assignment_number(41, year=2026, month=12, day=31) == "ASN-261231-042"
