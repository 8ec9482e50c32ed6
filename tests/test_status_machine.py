# tests/test_status_machine.py
import pytest

from surplus.common.errors import InvalidTransition, Unauthorized
from surplus.domain.enums import ReservationStatus as S, parse_reservation_status
from surplus.reservations.domain.status_machine import (
    TRANSITIONS,
    Party,
    StockEffect,
    get_allowed_transitions,
    is_terminal,
    plan_transition,
)

OWNER = frozenset({Party.OWNER})
CUSTOMER = frozenset({Party.CUSTOMER})


@pytest.mark.parametrize(
    "current,target,parties,effect",
    [
        (S.PENDING, S.CONFIRMED, OWNER, StockEffect.NONE),
        (S.PENDING, S.REJECTED, OWNER, StockEffect.RELEASE),
        (S.PENDING, S.CANCELLED, CUSTOMER, StockEffect.RELEASE),
        (S.CONFIRMED, S.COMPLETED, OWNER, StockEffect.COMMIT),
        (S.CONFIRMED, S.CANCELLED, OWNER, StockEffect.RELEASE),
        (S.CONFIRMED, S.CANCELLED, CUSTOMER, StockEffect.RELEASE),
    ],
)
def test_allowed_edges(current, target, parties, effect):
    plan = plan_transition(current, target, parties)
    assert plan.noop is False
    assert plan.effect == effect
    assert (plan.current, plan.target) == (current, target)


def test_table_has_exactly_five_edges():
    assert set(TRANSITIONS) == {
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.REJECTED),
        (S.PENDING, S.CANCELLED),
        (S.CONFIRMED, S.COMPLETED),
        (S.CONFIRMED, S.CANCELLED),
    }


@pytest.mark.parametrize("status", [S.COMPLETED, S.CANCELLED, S.REJECTED])
def test_terminal_states_have_no_exit(status):
    assert is_terminal(status)
    assert get_allowed_transitions(status) == []
    for target in S:
        if target is status:
            continue
        with pytest.raises(InvalidTransition):
            plan_transition(status, target, OWNER | CUSTOMER)


def test_completed_to_confirmed_is_invalid():
    with pytest.raises(InvalidTransition):
        plan_transition(S.COMPLETED, S.CONFIRMED, OWNER)


def test_pending_to_completed_skips_confirmation():
    with pytest.raises(InvalidTransition):
        plan_transition(S.PENDING, S.COMPLETED, OWNER)


def test_same_status_is_noop_even_for_terminal():
    plan = plan_transition(S.COMPLETED, S.COMPLETED, CUSTOMER)
    assert plan.noop is True
    assert plan.effect == StockEffect.NONE


def test_customer_cannot_confirm_own_reservation():
    with pytest.raises(Unauthorized):
        plan_transition(S.PENDING, S.CONFIRMED, CUSTOMER)


def test_owner_cannot_cancel_pending_reservation():
    # an owner turns down a PENDING reservation with REJECTED
    with pytest.raises(Unauthorized):
        plan_transition(S.PENDING, S.CANCELLED, OWNER)


def test_customer_cancel_confirmed_follows_policy_flag():
    with pytest.raises(Unauthorized):
        plan_transition(S.CONFIRMED, S.CANCELLED, CUSTOMER, allow_customer_cancel_confirmed=False)

    # owner keeps the right regardless
    plan = plan_transition(S.CONFIRMED, S.CANCELLED, OWNER, allow_customer_cancel_confirmed=False)
    assert plan.effect == StockEffect.RELEASE


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("pending", S.PENDING),
        ("Confirmed", S.CONFIRMED),
        ("ACCEPTED", S.CONFIRMED),
        ("accepted", S.CONFIRMED),
        ("CANCELED", S.CANCELLED),
        ("cancelled", S.CANCELLED),
        (" rejected ", S.REJECTED),
        (S.COMPLETED, S.COMPLETED),
    ],
)
def test_parse_reservation_status(raw, expected):
    assert parse_reservation_status(raw) is expected


@pytest.mark.parametrize("raw", ["", "DONE", "no_show", None])
def test_parse_reservation_status_rejects_unknown(raw):
    with pytest.raises(ValueError):
        parse_reservation_status(raw)
