"""
Audit, notification and deal-chat sinks.

The escrow core only ever calls these after its own transaction has
committed. ``SideEffects`` queues the calls during an operation and
``dispatch`` runs them one by one; a failing sink is logged and skipped.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol
from uuid import UUID, uuid4

from .models import AuditLogEntry, DealMessage, Notification
from .observability import logger


class AuditLog(Protocol):
    def append(
        self,
        deal_id: UUID,
        user_id: UUID,
        action: str,
        category: str,
        metadata: Optional[dict] = None,
    ) -> None: ...


class Notifier(Protocol):
    def notify_counterparty(self, deal_id: UUID, acting_user_id: UUID, title: str, message: str) -> None: ...


class DealChat(Protocol):
    def post_system_message(self, deal_id: UUID, sender_id: UUID, content: str) -> None: ...


class InMemoryAuditLog:
    def __init__(self):
        self._entries: list[AuditLogEntry] = []
        self._lock = threading.Lock()

    def append(self, deal_id, user_id, action, category, metadata=None):
        entry = AuditLogEntry(
            id=uuid4(),
            deal_id=deal_id,
            user_id=user_id,
            action=action,
            category=category,
            metadata=metadata or {},
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._entries.append(entry)

    def entries_for(self, deal_id: UUID) -> list[AuditLogEntry]:
        with self._lock:
            return [e for e in self._entries if e.deal_id == deal_id]


class InMemoryNotifier:
    """Stores notifications for the counterparty of the acting user."""

    def __init__(self, resolve_parties: Callable[[UUID], Optional[tuple[UUID, UUID]]]):
        self._resolve_parties = resolve_parties
        self.notifications: list[Notification] = []

    def notify_counterparty(self, deal_id, acting_user_id, title, message):
        parties = self._resolve_parties(deal_id)
        if parties is None:
            return
        advertiser_id, creator_id = parties
        counterparty_id = creator_id if acting_user_id == advertiser_id else advertiser_id
        self.notifications.append(Notification(
            id=uuid4(),
            user_id=counterparty_id,
            title=title,
            message=message,
            link=f"/deals/{deal_id}",
            created_at=datetime.now(timezone.utc),
        ))

    def for_user(self, user_id: UUID) -> list[Notification]:
        return [n for n in self.notifications if n.user_id == user_id]


class InMemoryDealChat:
    def __init__(self):
        self.messages: list[DealMessage] = []

    def post_system_message(self, deal_id, sender_id, content):
        self.messages.append(DealMessage(
            id=uuid4(),
            deal_id=deal_id,
            sender_id=sender_id,
            content=content,
            created_at=datetime.now(timezone.utc),
        ))

    def for_deal(self, deal_id: UUID) -> list[DealMessage]:
        return [m for m in self.messages if m.deal_id == deal_id]


class SideEffects:
    def __init__(self, audit_log: AuditLog, notifier: Notifier, chat: DealChat):
        self.audit_log = audit_log
        self.notifier = notifier
        self.chat = chat
        self._queue: list[tuple[str, Callable[..., Any], tuple]] = []

    def audit(self, deal_id, user_id, action, metadata=None, category="payments"):
        self._queue.append(("audit", self.audit_log.append, (deal_id, user_id, action, category, metadata)))

    def notify(self, deal_id, user_id, title, message):
        self._queue.append(("notify", self.notifier.notify_counterparty, (deal_id, user_id, title, message)))

    def chat_message(self, deal_id, user_id, content):
        self._queue.append(("chat", self.chat.post_system_message, (deal_id, user_id, content)))

    def dispatch(self) -> None:
        queue, self._queue = self._queue, []
        for name, call, args in queue:
            try:
                call(*args)
            except Exception:
                logger.exception("%s side effect failed for deal %s", name, args[0])
