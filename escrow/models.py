from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TransactionType(str, Enum):
    TOPUP = "topup"
    CHARGE = "charge"
    REFUND = "refund"
    PAYOUT = "payout"
    FEE = "fee"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class DealStatus(str, Enum):
    PENDING = "pending"
    BRIEFING = "briefing"
    WAITING_PAYMENT = "waiting_payment"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DISPUTED = "disputed"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class EscrowState(str, Enum):
    WAITING_INVOICE = "WAITING_INVOICE"
    INVOICE_SENT = "INVOICE_SENT"
    FUNDS_RESERVED = "FUNDS_RESERVED"
    ACTIVE_PERIOD = "ACTIVE_PERIOD"
    PAYOUT_READY = "PAYOUT_READY"
    PAID_OUT = "PAID_OUT"
    REFUNDED = "REFUNDED"
    DISPUTE_LOCKED = "DISPUTE_LOCKED"


MAX_PLACEMENT_DAYS = 3650


class HoldStatus(str, Enum):
    RESERVED = "reserved"
    RELEASED = "released"


class DisputeStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class DisputeOutcome(str, Enum):
    RELEASE_TO_CREATOR = "release_to_creator"
    REFUND_TO_ADVERTISER = "refund_to_advertiser"


# Requests

class OpenDealRequest(BaseModel):
    title: str = Field(..., min_length=1)
    advertiser_id: UUID
    creator_id: UUID


class TopUpRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = None


class CreateInvoiceRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    comment: Optional[str] = None
    due_date: Optional[date] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "amount": 45000,
            "comment": "Integration in the March episode",
            "due_date": "2026-03-01",
        }
    })


class ReserveEscrowRequest(BaseModel):
    label: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    milestone_id: Optional[UUID] = None


class SubmitProofRequest(BaseModel):
    publication_url: str = Field(..., min_length=1)
    placement_duration_days: Optional[int] = Field(default=None, gt=0, le=MAX_PLACEMENT_DAYS)
    screenshot_path: Optional[str] = None


class LockDisputeRequest(BaseModel):
    reason: str = Field(..., description="Why the payout is being halted")


class ResolveDisputeRequest(BaseModel):
    outcome: DisputeOutcome
    note: Optional[str] = None


# Records

class Balance(BaseModel):
    user_id: UUID
    available: Decimal = Decimal("0")
    reserved: Decimal = Decimal("0")
    currency: str = "RUB"
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def total(self) -> Decimal:
        return self.available + self.reserved


class Transaction(BaseModel):
    id: UUID
    user_id: UUID
    type: TransactionType
    amount: Decimal = Field(..., gt=0)
    status: TransactionStatus = TransactionStatus.COMPLETED
    description: str
    reference_id: Optional[UUID] = None
    reference_type: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Deal(BaseModel):
    id: UUID
    title: str
    advertiser_id: UUID
    creator_id: UUID
    status: DealStatus = DealStatus.PENDING
    publication_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def is_party(self, user_id: UUID) -> bool:
        return user_id in (self.advertiser_id, self.creator_id)

    def counterparty_of(self, user_id: UUID) -> Optional[UUID]:
        if user_id == self.advertiser_id:
            return self.creator_id
        if user_id == self.creator_id:
            return self.advertiser_id
        return None


class Invoice(BaseModel):
    id: UUID
    deal_id: UUID
    invoice_number: str
    amount: Decimal = Field(..., gt=0)
    comment: Optional[str] = None
    due_date: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    created_by: UUID
    paid_by: Optional[UUID] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EscrowRecord(BaseModel):
    id: UUID
    deal_id: UUID
    invoice_id: Optional[UUID] = None
    milestone_id: Optional[UUID] = None
    label: str
    amount: Decimal = Field(..., gt=0)
    state: EscrowState
    hold_status: HoldStatus = HoldStatus.RESERVED
    reserved_at: datetime
    active_started_at: Optional[datetime] = None
    active_ends_at: Optional[datetime] = None
    publication_url: Optional[str] = None
    proof_screenshot_path: Optional[str] = None
    platform_fee: Optional[Decimal] = None
    payout_amount: Optional[Decimal] = None
    paid_out_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    released_by: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def _check_state_fields(self) -> "EscrowRecord":
        if self.state == EscrowState.ACTIVE_PERIOD and self.active_ends_at is None:
            raise ValueError("ACTIVE_PERIOD record requires active_ends_at")
        if self.state == EscrowState.PAID_OUT:
            if self.platform_fee is None or self.payout_amount is None or self.paid_out_at is None:
                raise ValueError("PAID_OUT record requires platform_fee, payout_amount and paid_out_at")
            if self.platform_fee + self.payout_amount != self.amount:
                raise ValueError("platform_fee + payout_amount must equal amount")
        elif self.platform_fee is not None or self.payout_amount is not None:
            raise ValueError("fee split is only recorded on PAID_OUT records")
        return self

    def is_terminal(self) -> bool:
        return self.state in (EscrowState.PAID_OUT, EscrowState.REFUNDED)

    def is_payout_eligible(self, now: datetime) -> bool:
        if self.hold_status != HoldStatus.RESERVED:
            return False
        if self.state == EscrowState.PAYOUT_READY:
            return True
        return (
            self.state == EscrowState.ACTIVE_PERIOD
            and self.active_ends_at is not None
            and now >= self.active_ends_at
        )

    def can_lock_dispute(self) -> bool:
        return (
            self.hold_status == HoldStatus.RESERVED
            and self.state in (EscrowState.ACTIVE_PERIOD, EscrowState.PAYOUT_READY)
        )

    def is_settled(self) -> bool:
        """No money is held for this record any more."""
        return self.is_terminal() or self.hold_status == HoldStatus.RELEASED

    def seconds_remaining(self, now: datetime) -> Optional[int]:
        if self.state != EscrowState.ACTIVE_PERIOD or self.active_ends_at is None:
            return None
        return max(0, int((self.active_ends_at - now).total_seconds()))


class Dispute(BaseModel):
    id: UUID
    deal_id: UUID
    escrow_id: UUID
    raised_by: UUID
    reason: str
    status: DisputeStatus = DisputeStatus.OPEN
    outcome: Optional[DisputeOutcome] = None
    resolved_by: Optional[UUID] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogEntry(BaseModel):
    id: UUID
    deal_id: UUID
    user_id: UUID
    action: str
    category: str = "payments"
    metadata: dict = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DealMessage(BaseModel):
    id: UUID
    deal_id: UUID
    sender_id: UUID
    sender_name: str = "System"
    content: str
    created_at: datetime


class Notification(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    message: str
    type: str = "deal"
    link: Optional[str] = None
    created_at: datetime


# Responses

class DealProgress(BaseModel):
    deal_id: UUID
    state: EscrowState
    escrow_id: Optional[UUID] = None
    payout_eligible: bool = False
    seconds_remaining: Optional[int] = None


class TransactionHistoryResponse(BaseModel):
    user_id: UUID
    entries: list[Transaction]
    total_count: int
    balance: Balance


class InvoicePaymentResponse(BaseModel):
    invoice: Invoice
    escrow: EscrowRecord
    message: str
