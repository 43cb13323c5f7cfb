from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID, uuid4

from .errors import InsufficientFundsError, InvalidAmountError
from .models import (
    Balance,
    Transaction,
    TransactionHistoryResponse,
    TransactionStatus,
    TransactionType,
)
from .observability import log_escrow_event
from .storage import InMemoryStorage


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BalanceLedger:
    """Per-user available/reserved funds and the append-only transaction log.

    Every mutation runs inside ``storage.transaction()``; when called from a
    larger service operation it joins that operation's transaction.
    """

    def __init__(
        self,
        storage: InMemoryStorage,
        currency: str = "RUB",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.storage = storage
        self.currency = currency
        self.clock = clock

    def reserve(self, user_id: UUID, amount: Decimal) -> Balance:
        _require_positive(amount)
        with self.storage.transaction():
            row = self._row(user_id)
            if row["available"] < amount:
                raise InsufficientFundsError(required=amount, available=row["available"])
            row["available"] -= amount
            row["reserved"] += amount
            row["updated_at"] = self.clock()
            return Balance(**row)

    def release(self, user_id: UUID, amount: Decimal) -> Balance:
        _require_positive(amount)
        with self.storage.transaction():
            row = self._row(user_id)
            row["reserved"] -= min(row["reserved"], amount)
            row["updated_at"] = self.clock()
            return Balance(**row)

    def credit(self, user_id: UUID, amount: Decimal) -> Balance:
        _require_positive(amount)
        with self.storage.transaction():
            row = self._row(user_id)
            row["available"] += amount
            row["updated_at"] = self.clock()
            return Balance(**row)

    def refund(self, user_id: UUID, amount: Decimal) -> Balance:
        """Move held funds back to available, never more than is reserved."""
        _require_positive(amount)
        with self.storage.transaction():
            row = self._row(user_id)
            moved = min(row["reserved"], amount)
            row["reserved"] -= moved
            row["available"] += moved
            row["updated_at"] = self.clock()
            return Balance(**row)

    def top_up(self, user_id: UUID, amount: Decimal, description: Optional[str] = None) -> Transaction:
        _require_positive(amount)
        with self.storage.transaction():
            self.credit(user_id, amount)
            entry = self.append_transaction(
                user_id,
                TransactionType.TOPUP,
                amount,
                description or "Balance top-up",
            )
        log_escrow_event(
            message="balance topped up",
            actor=user_id,
            extra={"amount": str(amount), "transaction_id": str(entry.id)},
        )
        return entry

    def append_transaction(
        self,
        user_id: UUID,
        tx_type: TransactionType,
        amount: Decimal,
        description: str,
        reference_id: Optional[UUID] = None,
        reference_type: Optional[str] = None,
    ) -> Transaction:
        _require_positive(amount)
        entry_data = {
            "id": uuid4(),
            "user_id": user_id,
            "type": tx_type,
            "amount": amount,
            "status": TransactionStatus.COMPLETED,
            "description": description,
            "reference_id": reference_id,
            "reference_type": reference_type,
            "created_at": self.clock(),
        }
        with self.storage.transaction():
            self.storage.transactions[entry_data["id"]] = entry_data
        return Transaction(**entry_data)

    def get_balance(self, user_id: UUID) -> Balance:
        # Creates a zero row when missing.
        with self.storage.read():
            return Balance(**self._row(user_id))

    def get_transactions(self, user_id: UUID, limit: int = 50, offset: int = 0) -> TransactionHistoryResponse:
        with self.storage.read():
            all_entries = [
                Transaction(**t) for t in self.storage.transactions.values()
                if t["user_id"] == user_id
            ]
            balance = self.get_balance(user_id)
        all_entries.sort(key=lambda t: t.created_at, reverse=True)

        return TransactionHistoryResponse(
            user_id=user_id,
            entries=all_entries[offset:offset + limit],
            total_count=len(all_entries),
            balance=balance,
        )

    def _row(self, user_id: UUID) -> dict:
        row = self.storage.balances.get(user_id)
        if row is None:
            row = {
                "user_id": user_id,
                "available": Decimal("0"),
                "reserved": Decimal("0"),
                "currency": self.currency,
                "updated_at": self.clock(),
            }
            self.storage.balances[user_id] = row
        return row


def _require_positive(amount: Decimal) -> None:
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")
