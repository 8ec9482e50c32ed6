"""
Reservation status machine.

Single place that decides whether a reservation may move from one status
to another, who may ask for it, and what it does to stock. The ledger
applies the result; nothing else writes Reservation.status.

    PENDING ──confirm──▶ CONFIRMED ──complete──▶ COMPLETED
       │                    │
       ├──reject──▶ REJECTED│
       └──cancel──▶ CANCELLED ◀──cancel──┘
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Tuple

from surplus.common.errors import InvalidTransition, Unauthorized
from surplus.domain.enums import ReservationStatus


class Party(str, enum.Enum):
    """Relation of the acting user to the reservation."""
    CUSTOMER = "CUSTOMER"
    OWNER = "OWNER"


class StockEffect(str, enum.Enum):
    NONE = "NONE"
    RELEASE = "RELEASE"
    COMMIT = "COMMIT"


@dataclass(frozen=True)
class TransitionRule:
    parties: FrozenSet[Party]
    effect: StockEffect
    action: str


S = ReservationStatus

TRANSITIONS: Dict[Tuple[ReservationStatus, ReservationStatus], TransitionRule] = {
    (S.PENDING, S.CONFIRMED): TransitionRule(frozenset({Party.OWNER}), StockEffect.NONE, "Confirm"),
    (S.PENDING, S.REJECTED): TransitionRule(frozenset({Party.OWNER}), StockEffect.RELEASE, "Reject"),
    (S.PENDING, S.CANCELLED): TransitionRule(frozenset({Party.CUSTOMER}), StockEffect.RELEASE, "Cancel"),
    (S.CONFIRMED, S.COMPLETED): TransitionRule(frozenset({Party.OWNER}), StockEffect.COMMIT, "Complete pickup"),
    (S.CONFIRMED, S.CANCELLED): TransitionRule(
        frozenset({Party.OWNER, Party.CUSTOMER}), StockEffect.RELEASE, "Cancel"
    ),
}

TERMINAL_STATUSES: FrozenSet[ReservationStatus] = frozenset({S.COMPLETED, S.CANCELLED, S.REJECTED})


@dataclass(frozen=True)
class TransitionPlan:
    current: ReservationStatus
    target: ReservationStatus
    effect: StockEffect
    noop: bool = False


def is_terminal(status: ReservationStatus) -> bool:
    return status in TERMINAL_STATUSES


def get_allowed_transitions(current: ReservationStatus) -> List[ReservationStatus]:
    return [to for (frm, to) in TRANSITIONS if frm == current]


def plan_transition(
    current: ReservationStatus,
    target: ReservationStatus,
    parties: FrozenSet[Party],
    *,
    allow_customer_cancel_confirmed: bool = True,
) -> TransitionPlan:
    """
    Validate a requested change and return what must happen.

    - current == target  -> no-op plan (retried request)
    - unknown edge       -> InvalidTransition
    - actor not allowed  -> Unauthorized
    """
    if current == target:
        return TransitionPlan(current=current, target=target, effect=StockEffect.NONE, noop=True)

    rule = TRANSITIONS.get((current, target))
    if rule is None:
        allowed = get_allowed_transitions(current)
        if not allowed:
            raise InvalidTransition(
                f"reservation in {current.value} is final and cannot become {target.value}"
            )
        raise InvalidTransition(
            f"cannot change reservation from {current.value} to {target.value}; "
            f"allowed: {', '.join(s.value for s in allowed)}"
        )

    permitted = set(rule.parties)
    if (current, target) == (S.CONFIRMED, S.CANCELLED) and not allow_customer_cancel_confirmed:
        permitted.discard(Party.CUSTOMER)

    if not permitted & set(parties):
        raise Unauthorized(
            f"{rule.action} ({current.value} -> {target.value}) is not allowed for this user"
        )

    return TransitionPlan(current=current, target=target, effect=rule.effect)
