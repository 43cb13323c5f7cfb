import copy
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator
from uuid import UUID

from .models import DealStatus

ADVERTISER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
CREATOR_ID = UUID("660e8400-e29b-41d4-a716-446655440001")
DEMO_DEAL_ID = UUID("11111111-1111-1111-1111-111111111111")

_TABLES = (
    "users",
    "balances",
    "transactions",
    "deals",
    "invoices",
    "invoice_numbers",
    "escrows",
    "disputes",
)


class InMemoryStorage:
    """Row store shared by every service call.

    Writers go through ``transaction()``: one re-entrant lock serialises them
    and the tables are restored from a snapshot if the block raises, so a
    multi-row operation is either fully visible or not at all. Readers go
    through ``read()``, which takes the same lock without the snapshot and so
    never observes a writer that has not finished.
    """

    def __init__(self, seed: bool = True):
        self.users: dict[UUID, dict] = {}
        self.balances: dict[UUID, dict] = {}
        self.transactions: dict[UUID, dict] = {}
        self.deals: dict[UUID, dict] = {}
        self.invoices: dict[UUID, dict] = {}
        self.invoice_numbers: dict[str, UUID] = {}
        self.escrows: dict[UUID, dict] = {}
        self.disputes: dict[UUID, dict] = {}
        self._lock = threading.RLock()
        self._depth = 0
        if seed:
            self._seed_data()

    def _seed_data(self):
        now = datetime.now(timezone.utc)
        self.users[ADVERTISER_ID] = {
            "id": ADVERTISER_ID, "email": "advertiser@example.com",
            "name": "Acme Advertising", "role": "advertiser", "created_at": now,
        }
        self.users[CREATOR_ID] = {
            "id": CREATOR_ID, "email": "creator@example.com",
            "name": "Jane Creator", "role": "creator", "created_at": now,
        }
        self.deals[DEMO_DEAL_ID] = {
            "id": DEMO_DEAL_ID, "title": "Sponsored video integration",
            "advertiser_id": ADVERTISER_ID, "creator_id": CREATOR_ID,
            "status": DealStatus.BRIEFING, "publication_url": None,
            "created_at": now,
        }

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStorage"]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield self
            except BaseException:
                for name, table in snapshot.items():
                    setattr(self, name, table)
                raise
            finally:
                self._depth = 0

    @contextmanager
    def read(self) -> Iterator["InMemoryStorage"]:
        with self._lock:
            yield self

    def _snapshot(self) -> dict[str, dict]:
        return {name: copy.deepcopy(getattr(self, name)) for name in _TABLES}
