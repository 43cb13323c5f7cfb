from decimal import Decimal
from typing import Optional

from .models import EscrowState


class EscrowServiceError(Exception):
    pass


class InvalidRequestError(EscrowServiceError):
    pass


class InvalidAmountError(InvalidRequestError):
    pass


class InsufficientFundsError(EscrowServiceError):
    def __init__(self, required: Decimal, available: Decimal):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient funds: available {available}, required {required}")


class DealNotFoundError(EscrowServiceError):
    pass


class InvoiceNotFoundError(EscrowServiceError):
    pass


class EscrowNotFoundError(EscrowServiceError):
    pass


class UnauthorizedError(EscrowServiceError):
    pass


class AlreadyPaidError(EscrowServiceError):
    pass


class AlreadyPaidOutError(EscrowServiceError):
    pass


class InvalidStateError(EscrowServiceError):
    def __init__(self, message: str, current_state: Optional[EscrowState] = None):
        self.current_state = current_state
        super().__init__(message)


class NotEligibleError(InvalidStateError):
    """Payout refused: the record is locked, still in its period, or no longer holds funds."""
