"""Domain errors raised by the ledger services.

Every error carries the HTTP status and the message shown to the caller. The
message must never contain identifiers of entities the caller does not own.
"""

RETRY_LATER_PAYMENT = "Failed to process the payment, please try again later"
RETRY_LATER_DEPOSIT = "Failed to process the deposit, please try again later"


class LedgerError(Exception):
    """Base class for all failures surfaced to API callers."""

    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        """Initialize the error with an optional caller-facing message."""
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(LedgerError):
    """Entity is missing or is not visible to the caller."""

    status_code = 404
    default_message = "Not found"


class AlreadyPaidError(LedgerError):
    status_code = 409
    default_message = "The job is already paid."


class InsufficientFundsError(LedgerError):
    status_code = 400
    default_message = "No sufficient funds in balance."


class InvalidAmountError(LedgerError):
    status_code = 400
    default_message = 'Invalid request. "amount" is undefined or invalid.'


class ForbiddenError(LedgerError):
    status_code = 403
    default_message = "Target balance is not found."


class LimitExceededError(LedgerError):
    status_code = 400
    default_message = "A client can't deposit more than 25% his total of jobs to pay."


class ConflictError(LedgerError):
    """A versioned update matched no rows because the row changed after it was read."""

    status_code = 409
    default_message = RETRY_LATER_PAYMENT


class PersistenceError(LedgerError):
    """Unexpected storage failure. The underlying error is logged, never returned."""

    status_code = 503
    default_message = RETRY_LATER_PAYMENT
