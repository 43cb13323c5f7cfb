import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID, uuid4

from .collaborators import (
    AuditLog,
    DealChat,
    InMemoryAuditLog,
    InMemoryDealChat,
    InMemoryNotifier,
    Notifier,
    SideEffects,
)
from .config import Settings, get_settings
from .errors import (
    AlreadyPaidError,
    DealNotFoundError,
    EscrowNotFoundError,
    InsufficientFundsError,
    InvalidRequestError,
    InvalidStateError,
    InvoiceNotFoundError,
    UnauthorizedError,
)
from .ledger import BalanceLedger
from .models import (
    AuditLogEntry,
    Balance,
    CreateInvoiceRequest,
    Deal,
    DealProgress,
    DealStatus,
    Dispute,
    DisputeOutcome,
    DisputeStatus,
    EscrowRecord,
    EscrowState,
    HoldStatus,
    Invoice,
    InvoicePaymentResponse,
    InvoiceStatus,
    LockDisputeRequest,
    OpenDealRequest,
    ReserveEscrowRequest,
    ResolveDisputeRequest,
    SubmitProofRequest,
    TopUpRequest,
    Transaction,
    TransactionHistoryResponse,
    TransactionType,
)
from .observability import log_escrow_event
from .payouts import PayoutEngine
from .state_machine import ensure_transition
from .storage import InMemoryStorage


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EscrowService:
    def __init__(
        self,
        storage: Optional[InMemoryStorage] = None,
        settings: Optional[Settings] = None,
        audit_log: Optional[AuditLog] = None,
        notifier: Optional[Notifier] = None,
        chat: Optional[DealChat] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or get_settings()
        self.storage = storage or InMemoryStorage(seed=self.settings.seed_demo_data)
        self.clock = clock
        self.audit_log = audit_log or InMemoryAuditLog()
        self.notifier = notifier or InMemoryNotifier(self._deal_parties)
        self.chat = chat or InMemoryDealChat()
        self.ledger = BalanceLedger(self.storage, currency=self.settings.currency, clock=clock)
        self.payouts = PayoutEngine(self.ledger, self.settings.platform_fee_rate, clock)

    # Deals

    def open_deal(self, request: OpenDealRequest) -> Deal:
        deal_data = {
            "id": uuid4(),
            "title": request.title,
            "advertiser_id": request.advertiser_id,
            "creator_id": request.creator_id,
            "status": DealStatus.PENDING,
            "publication_url": None,
            "created_at": self.clock(),
        }
        with self.storage.transaction():
            self.storage.deals[deal_data["id"]] = deal_data
        return Deal(**deal_data)

    def get_deal(self, deal_id: UUID) -> Deal:
        with self.storage.read():
            return Deal(**self._deal_row(deal_id))

    def get_deal_progress(self, deal_id: UUID) -> DealProgress:
        with self.storage.read():
            self._deal_row(deal_id)
            escrows = self.list_escrows(deal_id)
            invoices = self.list_invoices(deal_id)
        if escrows:
            latest = escrows[0]
            now = self.clock()
            return DealProgress(
                deal_id=deal_id,
                state=latest.state,
                escrow_id=latest.id,
                payout_eligible=latest.is_payout_eligible(now),
                seconds_remaining=latest.seconds_remaining(now),
            )
        if any(i.status == InvoiceStatus.PENDING for i in invoices):
            return DealProgress(deal_id=deal_id, state=EscrowState.INVOICE_SENT)
        return DealProgress(deal_id=deal_id, state=EscrowState.WAITING_INVOICE)

    # Balances

    def top_up(self, user_id: UUID, request: TopUpRequest) -> Transaction:
        return self.ledger.top_up(user_id, request.amount, request.description)

    def get_balance(self, user_id: UUID) -> Balance:
        return self.ledger.get_balance(user_id)

    def get_transactions(self, user_id: UUID, limit: int = 50, offset: int = 0) -> TransactionHistoryResponse:
        return self.ledger.get_transactions(user_id, limit, offset)

    # Invoices

    def create_invoice(self, deal_id: UUID, request: CreateInvoiceRequest, actor_id: UUID) -> Invoice:
        effects = self._effects()
        with self.storage.transaction():
            deal = Deal(**self._deal_row(deal_id))
            self._require_creator(deal, actor_id)

            pending = [
                i for i in self.storage.invoices.values()
                if i["deal_id"] == deal_id and i["status"] == InvoiceStatus.PENDING
            ]
            if pending:
                log_escrow_event(
                    message="deal already has pending invoices",
                    deal_id=deal_id,
                    actor=actor_id,
                    extra={"pending_count": len(pending)},
                    level=logging.WARNING,
                )

            invoice_data = {
                "id": uuid4(),
                "deal_id": deal_id,
                "invoice_number": self._next_invoice_number(),
                "amount": request.amount,
                "comment": request.comment,
                "due_date": request.due_date,
                "status": InvoiceStatus.PENDING,
                "created_by": actor_id,
                "paid_by": None,
                "paid_at": None,
                "created_at": self.clock(),
            }
            invoice = Invoice(**invoice_data)
            self.storage.invoices[invoice.id] = invoice_data
            self.storage.invoice_numbers[invoice.invoice_number] = invoice.id
            self.storage.deals[deal_id]["status"] = DealStatus.WAITING_PAYMENT

        content = f"Invoice {invoice.invoice_number} sent for {invoice.amount} {self.settings.currency}"
        if invoice.comment:
            content += f"\nComment: {invoice.comment}"
        effects.chat_message(deal_id, actor_id, content)
        effects.audit(
            deal_id, actor_id,
            f"Invoice {invoice.invoice_number} sent for {invoice.amount}",
            metadata={"invoice_id": str(invoice.id), "amount": str(invoice.amount)},
        )
        effects.notify(
            deal_id, actor_id, "Invoice to pay",
            f"Received invoice {invoice.invoice_number} for {invoice.amount} {self.settings.currency}",
        )
        effects.dispatch()
        log_escrow_event(
            message="invoice created",
            deal_id=deal_id,
            actor=actor_id,
            extra={"invoice_number": invoice.invoice_number, "amount": str(invoice.amount)},
        )
        return invoice

    def pay_invoice(self, invoice_id: UUID, actor_id: UUID) -> InvoicePaymentResponse:
        effects = self._effects()
        try:
            with self.storage.transaction():
                invoice_data = self.storage.invoices.get(invoice_id)
                if not invoice_data:
                    raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
                invoice = Invoice(**invoice_data)
                deal = Deal(**self._deal_row(invoice.deal_id))
                self._require_advertiser(deal, actor_id)

                if invoice.status == InvoiceStatus.PAID:
                    raise AlreadyPaidError(f"Invoice {invoice.invoice_number} is already paid")

                self.ledger.reserve(actor_id, invoice.amount)
                escrow = self._insert_escrow(
                    deal_id=deal.id,
                    label=f"Payment for invoice {invoice.invoice_number}",
                    amount=invoice.amount,
                    invoice_id=invoice.id,
                )

                now = self.clock()
                invoice_data.update({"status": InvoiceStatus.PAID, "paid_by": actor_id, "paid_at": now})
                self.storage.deals[deal.id]["status"] = DealStatus.IN_PROGRESS
                invoice = Invoice(**invoice_data)
        except (AlreadyPaidError, InsufficientFundsError) as e:
            log_escrow_event(message=str(e), actor=actor_id, level=logging.WARNING)
            raise

        effects.chat_message(
            deal.id, actor_id,
            f"Invoice {invoice.invoice_number} paid. Funds reserved ({invoice.amount} "
            f"{self.settings.currency}). Deal moved to in progress.",
        )
        effects.audit(
            deal.id, actor_id,
            f"Payment for invoice {invoice.invoice_number} confirmed",
            metadata={"invoice_id": str(invoice.id), "escrow_id": str(escrow.id)},
        )
        effects.notify(
            deal.id, actor_id, "Payment confirmed",
            f"Invoice {invoice.invoice_number} paid. Funds are reserved.",
        )
        effects.dispatch()
        log_escrow_event(
            message="invoice paid, funds reserved",
            deal_id=deal.id,
            escrow_id=escrow.id,
            actor=actor_id,
            extra={"amount": str(invoice.amount)},
        )
        return InvoicePaymentResponse(
            invoice=invoice,
            escrow=escrow,
            message="Invoice paid, funds reserved",
        )

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        with self.storage.read():
            invoice_data = self.storage.invoices.get(invoice_id)
            if not invoice_data:
                raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
            return Invoice(**invoice_data)

    def list_invoices(self, deal_id: UUID) -> list[Invoice]:
        with self.storage.read():
            invoices = [Invoice(**i) for i in self.storage.invoices.values() if i["deal_id"] == deal_id]
        invoices.sort(key=lambda i: i.created_at, reverse=True)
        return invoices

    # Escrow records

    def reserve_escrow(self, deal_id: UUID, request: ReserveEscrowRequest, actor_id: UUID) -> EscrowRecord:
        """Fund a milestone directly, without an invoice."""
        effects = self._effects()
        with self.storage.transaction():
            deal = Deal(**self._deal_row(deal_id))
            self._require_advertiser(deal, actor_id)
            self.ledger.reserve(actor_id, request.amount)
            escrow = self._insert_escrow(
                deal_id=deal_id,
                label=request.label,
                amount=request.amount,
                milestone_id=request.milestone_id,
            )

        effects.audit(
            deal_id, actor_id,
            f"Funds reserved: {request.amount} - {request.label}",
            metadata={"escrow_id": str(escrow.id)},
        )
        effects.dispatch()
        log_escrow_event(
            message="milestone funds reserved",
            deal_id=deal_id,
            escrow_id=escrow.id,
            actor=actor_id,
            extra={"amount": str(request.amount)},
        )
        return escrow

    def submit_proof(self, escrow_id: UUID, request: SubmitProofRequest, actor_id: UUID) -> EscrowRecord:
        effects = self._effects()
        with self.storage.transaction():
            escrow_row = self._escrow_row(escrow_id)
            escrow = EscrowRecord(**escrow_row)
            deal = Deal(**self._deal_row(escrow.deal_id))
            self._require_creator(deal, actor_id)

            if escrow.state != EscrowState.FUNDS_RESERVED or escrow.hold_status != HoldStatus.RESERVED:
                raise InvalidStateError(
                    f"Proof can only be submitted for reserved funds, escrow is {escrow.state.value}",
                    current_state=escrow.state,
                )

            now = self.clock()
            days = request.placement_duration_days
            if days:
                target = EscrowState.ACTIVE_PERIOD
                ends_at = now + timedelta(days=days)
            else:
                target = EscrowState.PAYOUT_READY
                ends_at = now
            ensure_transition(escrow.state, target)

            escrow_row.update({
                "state": target,
                "publication_url": request.publication_url,
                "proof_screenshot_path": request.screenshot_path,
                "active_started_at": now,
                "active_ends_at": ends_at,
            })
            escrow = EscrowRecord(**escrow_row)
            self.storage.deals[deal.id]["publication_url"] = request.publication_url

        if days:
            period = f"\nPlacement period: {days} days"
        else:
            period = "\nNo placement period required, ready for payout"
        effects.chat_message(deal.id, actor_id, f"Proof of publication: {request.publication_url}{period}")
        effects.audit(
            deal.id, actor_id,
            f"Proof of publication: {request.publication_url}",
            metadata={"escrow_id": str(escrow.id), "placement_duration_days": days},
        )
        effects.notify(
            deal.id, actor_id, "Publication confirmed",
            f"The creator confirmed the publication: {request.publication_url}",
        )
        effects.dispatch()
        log_escrow_event(
            message="publication proof submitted",
            deal_id=deal.id,
            escrow_id=escrow.id,
            actor=actor_id,
            extra={"state": escrow.state.value},
        )
        return escrow

    def confirm_publication(self, escrow_id: UUID, actor_id: UUID) -> None:
        escrow = self.get_escrow(escrow_id)
        deal = self.get_deal(escrow.deal_id)
        self._require_advertiser(deal, actor_id)

        effects = self._effects()
        effects.chat_message(deal.id, actor_id, "The advertiser confirmed the publication")
        effects.audit(
            deal.id, actor_id,
            "The advertiser confirmed the publication",
            metadata={"escrow_id": str(escrow.id)},
        )
        effects.dispatch()

    def lock_dispute(self, escrow_id: UUID, request: LockDisputeRequest, actor_id: UUID) -> EscrowRecord:
        reason = request.reason.strip()
        effects = self._effects()
        with self.storage.transaction():
            escrow_row = self._escrow_row(escrow_id)
            escrow = EscrowRecord(**escrow_row)
            deal = Deal(**self._deal_row(escrow.deal_id))
            self._require_advertiser(deal, actor_id)

            if not reason:
                raise InvalidRequestError("A dispute needs a reason")
            if escrow.hold_status != HoldStatus.RESERVED:
                raise InvalidStateError(
                    f"Escrow {escrow.id} no longer holds funds and cannot be disputed",
                    current_state=escrow.state,
                )
            if not escrow.can_lock_dispute():
                raise InvalidStateError(
                    f"Cannot dispute escrow in {escrow.state.value} state. "
                    "Only ACTIVE_PERIOD or PAYOUT_READY escrows can be disputed.",
                    current_state=escrow.state,
                )
            ensure_transition(escrow.state, EscrowState.DISPUTE_LOCKED)

            escrow_row["state"] = EscrowState.DISPUTE_LOCKED
            escrow = EscrowRecord(**escrow_row)
            dispute_data = {
                "id": uuid4(),
                "deal_id": deal.id,
                "escrow_id": escrow.id,
                "raised_by": actor_id,
                "reason": reason,
                "status": DisputeStatus.OPEN,
                "outcome": None,
                "resolved_by": None,
                "resolved_at": None,
                "created_at": self.clock(),
            }
            self.storage.disputes[dispute_data["id"]] = dispute_data
            self.storage.deals[deal.id]["status"] = DealStatus.DISPUTED

        effects.chat_message(deal.id, actor_id, f"Payout suspended. Reason: {reason}")
        effects.audit(
            deal.id, actor_id,
            f"Payout suspended: {reason}",
            metadata={"escrow_id": str(escrow.id), "dispute_id": str(dispute_data["id"])},
        )
        effects.notify(deal.id, actor_id, "Payout suspended", f"The advertiser opened an issue: {reason}")
        effects.dispatch()
        log_escrow_event(
            message="escrow locked by dispute",
            deal_id=deal.id,
            escrow_id=escrow.id,
            actor=actor_id,
            level=logging.WARNING,
        )
        return escrow

    def resolve_dispute(self, escrow_id: UUID, request: ResolveDisputeRequest, actor_id: UUID) -> EscrowRecord:
        if actor_id != self.settings.platform_actor_id:
            raise UnauthorizedError("Only the platform administrator can resolve disputes")

        effects = self._effects()
        with self.storage.transaction():
            escrow_row = self._escrow_row(escrow_id)
            escrow = EscrowRecord(**escrow_row)
            deal = Deal(**self._deal_row(escrow.deal_id))
            if escrow.state != EscrowState.DISPUTE_LOCKED:
                raise InvalidStateError(
                    f"Escrow {escrow.id} is not under dispute ({escrow.state.value})",
                    current_state=escrow.state,
                )

            now = self.clock()
            if request.outcome == DisputeOutcome.RELEASE_TO_CREATOR:
                target = EscrowState.PAYOUT_READY
                ensure_transition(escrow.state, target)
                escrow_row["state"] = target
            else:
                target = EscrowState.REFUNDED
                ensure_transition(escrow.state, target)
                if escrow.hold_status == HoldStatus.RESERVED:
                    self.ledger.refund(deal.advertiser_id, escrow.amount)
                    self.ledger.append_transaction(
                        deal.advertiser_id,
                        TransactionType.REFUND,
                        escrow.amount,
                        f"Refund for {escrow.label}",
                        reference_id=deal.id,
                        reference_type="deal",
                    )
                escrow_row.update({
                    "state": target,
                    "hold_status": HoldStatus.RELEASED,
                    "released_at": escrow_row["released_at"] or now,
                    "released_by": escrow_row["released_by"] or actor_id,
                })
            escrow = EscrowRecord(**escrow_row)

            for dispute in self.storage.disputes.values():
                if dispute["escrow_id"] == escrow.id and dispute["status"] == DisputeStatus.OPEN:
                    dispute.update({
                        "status": DisputeStatus.RESOLVED,
                        "outcome": request.outcome,
                        "resolved_by": actor_id,
                        "resolved_at": now,
                    })
            self._refresh_deal_status(deal.id)

        note = f" ({request.note})" if request.note else ""
        effects.chat_message(deal.id, actor_id, f"Dispute resolved: {request.outcome.value}{note}")
        effects.audit(
            deal.id, actor_id,
            f"Dispute resolved: {request.outcome.value}",
            metadata={"escrow_id": str(escrow.id), "note": request.note},
        )
        effects.dispatch()
        log_escrow_event(
            message="dispute resolved",
            deal_id=deal.id,
            escrow_id=escrow.id,
            actor=actor_id,
            extra={"outcome": request.outcome.value},
        )
        return escrow

    def execute_payout(self, escrow_id: UUID, actor_id: UUID) -> EscrowRecord:
        effects = self._effects()
        try:
            with self.storage.transaction():
                escrow_row = self._escrow_row(escrow_id)
                deal = Deal(**self._deal_row(escrow_row["deal_id"]))
                self._require_party_or_platform(deal, actor_id)

                split = self.payouts.execute(escrow_row, deal.advertiser_id, deal.creator_id, actor_id)
                escrow = EscrowRecord(**escrow_row)
                self._refresh_deal_status(deal.id)
        except InvalidStateError as e:
            log_escrow_event(
                message=str(e),
                escrow_id=escrow_id,
                actor=actor_id,
                level=logging.WARNING,
            )
            raise

        currency = self.settings.currency
        effects.chat_message(
            deal.id, actor_id,
            f"Payout completed: {split.payout_amount} {currency} (fee: {split.platform_fee} {currency})",
        )
        effects.audit(
            deal.id, actor_id,
            f"Payout: {split.payout_amount}",
            metadata={
                "escrow_id": str(escrow.id),
                "platform_fee": str(split.platform_fee),
                "payout_amount": str(split.payout_amount),
            },
        )
        effects.notify(deal.id, actor_id, "Payout completed", f"Payout of {split.payout_amount} {currency} credited")
        effects.dispatch()
        log_escrow_event(
            message="payout executed",
            deal_id=deal.id,
            escrow_id=escrow.id,
            actor=actor_id,
            extra={"platform_fee": str(split.platform_fee), "payout_amount": str(split.payout_amount)},
        )
        return escrow

    def release_escrow(self, escrow_id: UUID, actor_id: UUID) -> EscrowRecord:
        """Stop holding the funds without crediting anyone."""
        effects = self._effects()
        with self.storage.transaction():
            escrow_row = self._escrow_row(escrow_id)
            escrow = EscrowRecord(**escrow_row)
            deal = Deal(**self._deal_row(escrow.deal_id))
            self._require_advertiser(deal, actor_id)

            if escrow.hold_status != HoldStatus.RESERVED or escrow.is_terminal():
                raise InvalidStateError(
                    f"Escrow {escrow.id} does not hold funds ({escrow.state.value})",
                    current_state=escrow.state,
                )

            self.ledger.release(deal.advertiser_id, escrow.amount)
            self.ledger.append_transaction(
                deal.advertiser_id,
                TransactionType.CHARGE,
                escrow.amount,
                f"Released hold for {escrow.label}",
                reference_id=deal.id,
                reference_type="deal",
            )
            escrow_row.update({
                "hold_status": HoldStatus.RELEASED,
                "released_at": self.clock(),
                "released_by": actor_id,
            })
            escrow = EscrowRecord(**escrow_row)
            self._refresh_deal_status(deal.id)

        effects.audit(
            deal.id, actor_id,
            f"Funds released: {escrow.amount} - {escrow.label}",
            metadata={"escrow_id": str(escrow.id)},
        )
        effects.dispatch()
        log_escrow_event(
            message="escrow hold released",
            deal_id=deal.id,
            escrow_id=escrow.id,
            actor=actor_id,
            extra={"amount": str(escrow.amount)},
        )
        return escrow

    def get_escrow(self, escrow_id: UUID) -> EscrowRecord:
        with self.storage.read():
            return EscrowRecord(**self._escrow_row(escrow_id))

    def list_escrows(self, deal_id: UUID) -> list[EscrowRecord]:
        with self.storage.read():
            escrows = [EscrowRecord(**e) for e in self.storage.escrows.values() if e["deal_id"] == deal_id]
        escrows.sort(key=lambda e: e.reserved_at, reverse=True)
        return escrows

    def list_disputes(self, deal_id: UUID) -> list[Dispute]:
        with self.storage.read():
            return [Dispute(**d) for d in self.storage.disputes.values() if d["deal_id"] == deal_id]

    def get_audit_log(self, deal_id: UUID) -> list[AuditLogEntry]:
        if not isinstance(self.audit_log, InMemoryAuditLog):
            return []
        return self.audit_log.entries_for(deal_id)

    # Helpers

    def _effects(self) -> SideEffects:
        return SideEffects(self.audit_log, self.notifier, self.chat)

    def _deal_row(self, deal_id: UUID) -> dict:
        deal_data = self.storage.deals.get(deal_id)
        if not deal_data:
            raise DealNotFoundError(f"Deal {deal_id} not found")
        return deal_data

    def _escrow_row(self, escrow_id: UUID) -> dict:
        escrow_data = self.storage.escrows.get(escrow_id)
        if not escrow_data:
            raise EscrowNotFoundError(f"Escrow {escrow_id} not found")
        return escrow_data

    def _deal_parties(self, deal_id: UUID) -> Optional[tuple[UUID, UUID]]:
        with self.storage.read():
            deal_data = self.storage.deals.get(deal_id)
            if not deal_data:
                return None
            return deal_data["advertiser_id"], deal_data["creator_id"]

    def _insert_escrow(
        self,
        deal_id: UUID,
        label: str,
        amount: Decimal,
        invoice_id: Optional[UUID] = None,
        milestone_id: Optional[UUID] = None,
    ) -> EscrowRecord:
        escrow_data = {
            "id": uuid4(),
            "deal_id": deal_id,
            "invoice_id": invoice_id,
            "milestone_id": milestone_id,
            "label": label,
            "amount": amount,
            "state": EscrowState.FUNDS_RESERVED,
            "hold_status": HoldStatus.RESERVED,
            "reserved_at": self.clock(),
            "active_started_at": None,
            "active_ends_at": None,
            "publication_url": None,
            "proof_screenshot_path": None,
            "platform_fee": None,
            "payout_amount": None,
            "paid_out_at": None,
            "released_at": None,
            "released_by": None,
        }
        escrow = EscrowRecord(**escrow_data)
        self.storage.escrows[escrow.id] = escrow_data
        return escrow

    def _next_invoice_number(self) -> str:
        stamp = self.clock().strftime("%Y%m%d")
        while True:
            number = f"{self.settings.invoice_prefix}-{stamp}-{uuid4().hex[:6].upper()}"
            if number not in self.storage.invoice_numbers:
                return number

    def _refresh_deal_status(self, deal_id: UUID) -> None:
        escrows = [EscrowRecord(**e) for e in self.storage.escrows.values() if e["deal_id"] == deal_id]
        if escrows and all(e.is_settled() for e in escrows):
            status = DealStatus.COMPLETED
        elif any(e.state == EscrowState.DISPUTE_LOCKED and not e.is_settled() for e in escrows):
            status = DealStatus.DISPUTED
        else:
            status = DealStatus.IN_PROGRESS
        self.storage.deals[deal_id]["status"] = status

    def _require_creator(self, deal: Deal, actor_id: UUID) -> None:
        if not deal.is_party(actor_id):
            raise UnauthorizedError(f"User {actor_id} is not a party to deal {deal.id}")
        if actor_id != deal.creator_id:
            raise UnauthorizedError("Only the creator of the deal can do this")

    def _require_advertiser(self, deal: Deal, actor_id: UUID) -> None:
        if not deal.is_party(actor_id):
            raise UnauthorizedError(f"User {actor_id} is not a party to deal {deal.id}")
        if actor_id != deal.advertiser_id:
            raise UnauthorizedError("Only the advertiser of the deal can do this")

    def _require_party_or_platform(self, deal: Deal, actor_id: UUID) -> None:
        if actor_id != self.settings.platform_actor_id and not deal.is_party(actor_id):
            raise UnauthorizedError(f"User {actor_id} is not a party to deal {deal.id}")
