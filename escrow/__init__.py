"""
Deal escrow ledger for creator/advertiser deals

This module provides:
- Per-user available/reserved balances and an append-only transaction log
- Invoices whose payment reserves the advertiser's funds in an escrow record
- Escrow lifecycle: FUNDS_RESERVED → ACTIVE_PERIOD / PAYOUT_READY → PAID_OUT,
  with DISPUTE_LOCKED and REFUNDED branches
- A payout engine that splits the platform fee and moves money exactly once
- Post-commit audit, notification and deal-chat side effects
"""

from .models import (
    Balance,
    Deal,
    DisputeOutcome,
    EscrowRecord,
    EscrowState,
    Invoice,
    Transaction,
    TransactionType,
)
from .payouts import split_fee
from .service import EscrowService

__all__ = [
    "Balance",
    "Deal",
    "DisputeOutcome",
    "EscrowRecord",
    "EscrowState",
    "Invoice",
    "Transaction",
    "TransactionType",
    "EscrowService",
    "split_fee",
]
