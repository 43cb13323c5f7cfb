"""Allowed escrow state transitions."""

from .errors import InvalidStateError
from .models import EscrowState

ALLOWED_TRANSITIONS: dict[EscrowState, frozenset[EscrowState]] = {
    EscrowState.WAITING_INVOICE: frozenset({EscrowState.INVOICE_SENT}),
    EscrowState.INVOICE_SENT: frozenset({EscrowState.FUNDS_RESERVED}),
    EscrowState.FUNDS_RESERVED: frozenset({
        EscrowState.ACTIVE_PERIOD,
        EscrowState.PAYOUT_READY,
        EscrowState.PAID_OUT,
        EscrowState.REFUNDED,
    }),
    EscrowState.ACTIVE_PERIOD: frozenset({
        EscrowState.PAYOUT_READY,
        EscrowState.DISPUTE_LOCKED,
        EscrowState.PAID_OUT,
    }),
    EscrowState.PAYOUT_READY: frozenset({
        EscrowState.DISPUTE_LOCKED,
        EscrowState.PAID_OUT,
    }),
    # only left through an administrative resolution
    EscrowState.DISPUTE_LOCKED: frozenset({
        EscrowState.PAYOUT_READY,
        EscrowState.REFUNDED,
    }),
    EscrowState.PAID_OUT: frozenset(),
    EscrowState.REFUNDED: frozenset(),
}


def can_transition(current: EscrowState, target: EscrowState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: EscrowState, target: EscrowState) -> None:
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot move escrow from {current.value} to {target.value}",
            current_state=current,
        )
