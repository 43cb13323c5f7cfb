from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable
from uuid import UUID

from .errors import AlreadyPaidOutError, NotEligibleError
from .ledger import BalanceLedger
from .models import EscrowRecord, EscrowState, HoldStatus, TransactionType
from .state_machine import ensure_transition

WHOLE_UNITS = Decimal("1")


@dataclass(frozen=True)
class FeeSplit:
    amount: Decimal
    platform_fee: Decimal
    payout_amount: Decimal


def split_fee(amount: Decimal, fee_rate: Decimal) -> FeeSplit:
    """Platform fee rounded half-up to whole currency units; the creator gets the rest."""
    fee = (amount * fee_rate).quantize(WHOLE_UNITS, rounding=ROUND_HALF_UP)
    return FeeSplit(amount=amount, platform_fee=fee, payout_amount=amount - fee)


class PayoutEngine:
    """Performs the terminal money movement for an escrow record.

    The caller holds the storage transaction and passes a freshly read record
    row; the checks here are the last thing evaluated before money moves.
    """

    def __init__(self, ledger: BalanceLedger, fee_rate: Decimal, clock: Callable[[], datetime]):
        self.ledger = ledger
        self.fee_rate = fee_rate
        self.clock = clock

    def check_eligible(self, escrow: EscrowRecord, now: datetime) -> None:
        if escrow.state == EscrowState.PAID_OUT:
            raise AlreadyPaidOutError(f"Escrow {escrow.id} has already been paid out")
        if escrow.state == EscrowState.DISPUTE_LOCKED:
            raise NotEligibleError(
                f"Escrow {escrow.id} is locked by a dispute",
                current_state=escrow.state,
            )
        if escrow.hold_status != HoldStatus.RESERVED:
            raise NotEligibleError(
                f"Escrow {escrow.id} no longer holds funds",
                current_state=escrow.state,
            )
        if not escrow.is_payout_eligible(now):
            if escrow.state == EscrowState.ACTIVE_PERIOD:
                detail = f"placement period ends at {escrow.active_ends_at.isoformat()}"
            else:
                detail = f"state is {escrow.state.value}"
            raise NotEligibleError(
                f"Escrow {escrow.id} is not eligible for payout: {detail}",
                current_state=escrow.state,
            )

    def execute(
        self,
        escrow_row: dict,
        advertiser_id: UUID,
        creator_id: UUID,
        actor_id: UUID,
    ) -> FeeSplit:
        now = self.clock()
        escrow = EscrowRecord(**escrow_row)
        self.check_eligible(escrow, now)
        ensure_transition(escrow.state, EscrowState.PAID_OUT)

        split = split_fee(escrow.amount, self.fee_rate)

        with self.ledger.storage.transaction():
            self.ledger.release(advertiser_id, escrow.amount)
            if split.payout_amount > 0:
                self.ledger.credit(creator_id, split.payout_amount)
                self.ledger.append_transaction(
                    creator_id,
                    TransactionType.PAYOUT,
                    split.payout_amount,
                    f"Payout for {escrow.label}",
                    reference_id=escrow.deal_id,
                    reference_type="deal",
                )
            if split.platform_fee > 0:
                self.ledger.append_transaction(
                    creator_id,
                    TransactionType.FEE,
                    split.platform_fee,
                    "Platform fee",
                    reference_id=escrow.deal_id,
                    reference_type="deal",
                )

            escrow_row.update({
                "state": EscrowState.PAID_OUT,
                "hold_status": HoldStatus.RELEASED,
                "platform_fee": split.platform_fee,
                "payout_amount": split.payout_amount,
                "paid_out_at": now,
                "released_at": now,
                "released_by": actor_id,
            })
            # re-validate the row so an inconsistent split aborts the transaction
            EscrowRecord(**escrow_row)

        return split
