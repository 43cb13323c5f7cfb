from typing import NoReturn
from uuid import UUID

from fastapi import FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .errors import (
    AlreadyPaidError,
    AlreadyPaidOutError,
    DealNotFoundError,
    EscrowNotFoundError,
    EscrowServiceError,
    InvoiceNotFoundError,
    UnauthorizedError,
)
from .models import (
    AuditLogEntry,
    Balance,
    CreateInvoiceRequest,
    Deal,
    DealProgress,
    Dispute,
    EscrowRecord,
    Invoice,
    InvoicePaymentResponse,
    LockDisputeRequest,
    OpenDealRequest,
    ReserveEscrowRequest,
    ResolveDisputeRequest,
    SubmitProofRequest,
    TopUpRequest,
    Transaction,
    TransactionHistoryResponse,
)
from .observability import configure_logging
from .service import EscrowService

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Deal Escrow API",
    description="Invoice, escrow and payout ledger for creator/advertiser deals",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

escrow_service = EscrowService(settings=settings)


def _raise_http(e: EscrowServiceError) -> NoReturn:
    if isinstance(e, (DealNotFoundError, InvoiceNotFoundError, EscrowNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, UnauthorizedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, (AlreadyPaidError, AlreadyPaidOutError)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "deal-escrow"}


@app.post("/deals", response_model=Deal, status_code=status.HTTP_201_CREATED, tags=["Deals"])
def open_deal(request: OpenDealRequest) -> Deal:
    return escrow_service.open_deal(request)


@app.get("/deals/{deal_id}", response_model=Deal, tags=["Deals"])
def get_deal(deal_id: UUID) -> Deal:
    try:
        return escrow_service.get_deal(deal_id)
    except DealNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Deal {deal_id} not found")


@app.get("/deals/{deal_id}/progress", response_model=DealProgress, tags=["Deals"])
def get_deal_progress(deal_id: UUID) -> DealProgress:
    try:
        return escrow_service.get_deal_progress(deal_id)
    except DealNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Deal {deal_id} not found")


@app.get("/deals/{deal_id}/audit", response_model=list[AuditLogEntry], tags=["Deals"])
def get_audit_log(deal_id: UUID) -> list[AuditLogEntry]:
    return escrow_service.get_audit_log(deal_id)


@app.get("/deals/{deal_id}/disputes", response_model=list[Dispute], tags=["Deals"])
def list_disputes(deal_id: UUID) -> list[Dispute]:
    return escrow_service.list_disputes(deal_id)


@app.post(
    "/deals/{deal_id}/invoices",
    response_model=Invoice,
    status_code=status.HTTP_201_CREATED,
    tags=["Invoices"],
)
def create_invoice(
    deal_id: UUID,
    request: CreateInvoiceRequest,
    x_user_id: UUID = Header(...),
) -> Invoice:
    try:
        return escrow_service.create_invoice(deal_id, request, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.get("/deals/{deal_id}/invoices", response_model=list[Invoice], tags=["Invoices"])
def list_invoices(deal_id: UUID) -> list[Invoice]:
    return escrow_service.list_invoices(deal_id)


@app.post("/invoices/{invoice_id}/pay", response_model=InvoicePaymentResponse, tags=["Invoices"])
def pay_invoice(invoice_id: UUID, x_user_id: UUID = Header(...)) -> InvoicePaymentResponse:
    try:
        return escrow_service.pay_invoice(invoice_id, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.post(
    "/deals/{deal_id}/escrows",
    response_model=EscrowRecord,
    status_code=status.HTTP_201_CREATED,
    tags=["Escrow"],
)
def reserve_escrow(
    deal_id: UUID,
    request: ReserveEscrowRequest,
    x_user_id: UUID = Header(...),
) -> EscrowRecord:
    try:
        return escrow_service.reserve_escrow(deal_id, request, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.get("/deals/{deal_id}/escrows", response_model=list[EscrowRecord], tags=["Escrow"])
def list_escrows(deal_id: UUID) -> list[EscrowRecord]:
    return escrow_service.list_escrows(deal_id)


@app.get("/escrows/{escrow_id}", response_model=EscrowRecord, tags=["Escrow"])
def get_escrow(escrow_id: UUID) -> EscrowRecord:
    try:
        return escrow_service.get_escrow(escrow_id)
    except EscrowNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Escrow {escrow_id} not found")


@app.post("/escrows/{escrow_id}/proof", response_model=EscrowRecord, tags=["Escrow"])
def submit_proof(
    escrow_id: UUID,
    request: SubmitProofRequest,
    x_user_id: UUID = Header(...),
) -> EscrowRecord:
    try:
        return escrow_service.submit_proof(escrow_id, request, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.post("/escrows/{escrow_id}/confirm", status_code=status.HTTP_204_NO_CONTENT, tags=["Escrow"])
def confirm_publication(escrow_id: UUID, x_user_id: UUID = Header(...)) -> None:
    try:
        escrow_service.confirm_publication(escrow_id, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.post("/escrows/{escrow_id}/dispute", response_model=EscrowRecord, tags=["Escrow"])
def lock_dispute(
    escrow_id: UUID,
    request: LockDisputeRequest,
    x_user_id: UUID = Header(...),
) -> EscrowRecord:
    try:
        return escrow_service.lock_dispute(escrow_id, request, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.post("/escrows/{escrow_id}/resolve", response_model=EscrowRecord, tags=["Escrow"])
def resolve_dispute(
    escrow_id: UUID,
    request: ResolveDisputeRequest,
    x_user_id: UUID = Header(...),
) -> EscrowRecord:
    try:
        return escrow_service.resolve_dispute(escrow_id, request, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.post("/escrows/{escrow_id}/payout", response_model=EscrowRecord, tags=["Escrow"])
def execute_payout(escrow_id: UUID, x_user_id: UUID = Header(...)) -> EscrowRecord:
    try:
        return escrow_service.execute_payout(escrow_id, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.post("/escrows/{escrow_id}/release", response_model=EscrowRecord, tags=["Escrow"])
def release_escrow(escrow_id: UUID, x_user_id: UUID = Header(...)) -> EscrowRecord:
    try:
        return escrow_service.release_escrow(escrow_id, x_user_id)
    except EscrowServiceError as e:
        _raise_http(e)


@app.post(
    "/users/{user_id}/topup",
    response_model=Transaction,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
)
def top_up(user_id: UUID, request: TopUpRequest) -> Transaction:
    try:
        return escrow_service.top_up(user_id, request)
    except EscrowServiceError as e:
        _raise_http(e)


@app.get("/users/{user_id}/balance", response_model=Balance, tags=["Users"])
def get_user_balance(user_id: UUID) -> Balance:
    return escrow_service.get_balance(user_id)


@app.get("/users/{user_id}/transactions", response_model=TransactionHistoryResponse, tags=["Users"])
def get_user_transactions(user_id: UUID, limit: int = 50, offset: int = 0) -> TransactionHistoryResponse:
    return escrow_service.get_transactions(user_id, limit, offset)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
