"""
Unit Tests for the Balance Ledger

Tests cover:
1. Reserve / release / credit / refund arithmetic
2. Insufficient funds
3. Top-up transactions and history
4. Storage snapshots and rollback
5. Money conservation across a full deal
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from escrow.errors import InsufficientFundsError, InvalidAmountError
from escrow.ledger import BalanceLedger
from escrow.models import (
    CreateInvoiceRequest,
    DisputeOutcome,
    LockDisputeRequest,
    ResolveDisputeRequest,
    SubmitProofRequest,
    TopUpRequest,
    TransactionType,
)
from escrow.storage import InMemoryStorage

from .conftest import ADMIN_ID, ADVERTISER_ID, CREATOR_ID


def _ledger() -> BalanceLedger:
    return BalanceLedger(InMemoryStorage(seed=False))


class TestBalanceOperations:
    """Tests for the four balance primitives."""

    def test_reserve_moves_available_to_reserved(self):
        ledger = _ledger()
        user_id = uuid4()
        ledger.top_up(user_id, Decimal("5000"))

        balance = ledger.reserve(user_id, Decimal("2000"))

        assert balance.available == Decimal("3000")
        assert balance.reserved == Decimal("2000")

    def test_reserve_insufficient_funds(self):
        """Reservation fails without touching the balance."""
        ledger = _ledger()
        user_id = uuid4()
        ledger.top_up(user_id, Decimal("500"))

        with pytest.raises(InsufficientFundsError) as exc_info:
            ledger.reserve(user_id, Decimal("2000"))

        assert exc_info.value.available == Decimal("500")
        assert exc_info.value.required == Decimal("2000")
        assert "available 500" in str(exc_info.value)

        balance = ledger.get_balance(user_id)
        assert balance.available == Decimal("500")
        assert balance.reserved == Decimal("0")

    def test_release_never_goes_below_zero(self):
        ledger = _ledger()
        user_id = uuid4()
        ledger.top_up(user_id, Decimal("100"))
        ledger.reserve(user_id, Decimal("100"))

        balance = ledger.release(user_id, Decimal("250"))

        assert balance.reserved == Decimal("0")
        assert balance.available == Decimal("0")

    def test_credit_creates_missing_row(self):
        ledger = _ledger()
        user_id = uuid4()

        balance = ledger.credit(user_id, Decimal("1800"))

        assert balance.available == Decimal("1800")
        assert balance.reserved == Decimal("0")

    def test_refund_returns_reserved_funds(self):
        ledger = _ledger()
        user_id = uuid4()
        ledger.top_up(user_id, Decimal("1000"))
        ledger.reserve(user_id, Decimal("600"))

        balance = ledger.refund(user_id, Decimal("600"))

        assert balance.available == Decimal("1000")
        assert balance.reserved == Decimal("0")

    def test_non_positive_amounts_rejected(self):
        ledger = _ledger()

        with pytest.raises(InvalidAmountError):
            ledger.credit(uuid4(), Decimal("0"))
        with pytest.raises(InvalidAmountError):
            ledger.reserve(uuid4(), Decimal("-5"))

    def test_balance_auto_created_on_read(self):
        ledger = _ledger()
        user_id = uuid4()

        balance = ledger.get_balance(user_id)

        assert balance.available == Decimal("0")
        assert user_id in ledger.storage.balances


class TestTransactionLog:
    """Tests for top-ups and transaction history."""

    def test_top_up_appends_transaction(self):
        ledger = _ledger()
        user_id = uuid4()

        entry = ledger.top_up(user_id, Decimal("300"), "Card top-up")

        assert entry.type == TransactionType.TOPUP
        assert entry.amount == Decimal("300")
        assert entry.description == "Card top-up"
        assert ledger.get_balance(user_id).available == Decimal("300")

    def test_history_is_paginated(self):
        ledger = _ledger()
        user_id = uuid4()
        for amount in ("100", "200", "300"):
            ledger.top_up(user_id, Decimal(amount))

        history = ledger.get_transactions(user_id, limit=2)

        assert history.total_count == 3
        assert len(history.entries) == 2
        assert history.balance.available == Decimal("600")


class TestStorageTransactions:
    """Tests for snapshot handling in the row store."""

    def test_reads_take_no_snapshot(self, monkeypatch):
        ledger = _ledger()
        user_id = uuid4()
        ledger.top_up(user_id, Decimal("100"))
        snapshots = []
        take_snapshot = ledger.storage._snapshot

        def counting_snapshot():
            snapshots.append(1)
            return take_snapshot()

        monkeypatch.setattr(ledger.storage, "_snapshot", counting_snapshot)

        ledger.get_balance(user_id)
        ledger.get_transactions(user_id)
        assert snapshots == []

        ledger.reserve(user_id, Decimal("40"))
        assert snapshots == [1]

    def test_nested_transaction_takes_one_snapshot(self, monkeypatch):
        storage = InMemoryStorage(seed=False)
        ledger = BalanceLedger(storage)
        snapshots = []
        take_snapshot = storage._snapshot

        def counting_snapshot():
            snapshots.append(1)
            return take_snapshot()

        monkeypatch.setattr(storage, "_snapshot", counting_snapshot)

        ledger.top_up(uuid4(), Decimal("100"))

        assert snapshots == [1]

    def test_failed_transaction_restores_tables(self):
        storage = InMemoryStorage(seed=False)
        ledger = BalanceLedger(storage)
        user_id = uuid4()
        ledger.top_up(user_id, Decimal("100"))

        with pytest.raises(RuntimeError):
            with storage.transaction():
                ledger.reserve(user_id, Decimal("60"))
                raise RuntimeError("abort")

        balance = ledger.get_balance(user_id)
        assert balance.available == Decimal("100")
        assert balance.reserved == Decimal("0")


def _system_total(service) -> Decimal:
    balances = sum(
        (row["available"] + row["reserved"] for row in service.storage.balances.values()),
        Decimal("0"),
    )
    fees = sum(
        (t["amount"] for t in service.storage.transactions.values() if t["type"] == TransactionType.FEE),
        Decimal("0"),
    )
    return balances + fees


def _external_flow(service) -> Decimal:
    total = Decimal("0")
    for t in service.storage.transactions.values():
        if t["type"] == TransactionType.TOPUP:
            total += t["amount"]
        elif t["type"] == TransactionType.CHARGE:
            total -= t["amount"]
    return total


class TestConservation:
    """Money only enters through top-ups and leaves through released holds."""

    def test_full_deal_conserves_money(self, service, deal, clock):
        service.top_up(ADVERTISER_ID, TopUpRequest(amount=Decimal("10000")))
        assert _system_total(service) == _external_flow(service)

        paid = []
        for amount in ("2000", "1500", "700"):
            invoice = service.create_invoice(deal.id, CreateInvoiceRequest(amount=Decimal(amount)), CREATOR_ID)
            paid.append(service.pay_invoice(invoice.id, ADVERTISER_ID).escrow)
            assert _system_total(service) == _external_flow(service)

        first, second, third = paid
        service.submit_proof(first.id, SubmitProofRequest(publication_url="https://v.example/1"), CREATOR_ID)
        service.execute_payout(first.id, CREATOR_ID)
        assert _system_total(service) == _external_flow(service)

        service.submit_proof(
            second.id,
            SubmitProofRequest(publication_url="https://v.example/2", placement_duration_days=3),
            CREATOR_ID,
        )
        service.lock_dispute(second.id, LockDisputeRequest(reason="Video removed"), ADVERTISER_ID)
        service.resolve_dispute(
            second.id,
            ResolveDisputeRequest(outcome=DisputeOutcome.REFUND_TO_ADVERTISER),
            ADMIN_ID,
        )
        assert _system_total(service) == _external_flow(service)

        service.release_escrow(third.id, ADVERTISER_ID)
        assert _system_total(service) == _external_flow(service)

        advertiser = service.get_balance(ADVERTISER_ID)
        assert advertiser.reserved == Decimal("0")
        assert advertiser.available == Decimal("10000") - Decimal("4200") + Decimal("1500")
