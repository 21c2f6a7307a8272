"""Deposits into a client's own balance, capped by what the client still owes."""

from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from app.core.db import LedgerStore, Profile
from app.core.errors import (
    RETRY_LATER_DEPOSIT,
    ConflictError,
    ForbiddenError,
    LimitExceededError,
    NotFoundError,
    PersistenceError,
)
from app.core.utils import get_logger
from app.services.transfer import coerce_amount

logger = get_logger("contracts-ledger.deposits")

DEFAULT_LIMIT_RATIO = Decimal("0.25")


class DepositLimiter:
    """Accepts a deposit only up to a fraction of the caller's unpaid job total.

    When the caller owes nothing the limit is zero and every deposit is
    rejected. That follows directly from the rule and is kept as is.
    """

    def __init__(
        self,
        store: LedgerStore,
        limit_ratio: Decimal = DEFAULT_LIMIT_RATIO,
        max_attempts: int = 3,
    ) -> None:
        """Initialize the limiter with a store, the allowed ratio and the conflict retry budget."""
        self.store = store
        self.limit_ratio = Decimal(limit_ratio)
        self.max_attempts = max(1, max_attempts)

    def deposit_limit(self, client_id: int) -> Decimal:
        """Largest deposit currently allowed for ``client_id``."""
        return self.store.sum_unpaid_for_client(client_id) * self.limit_ratio

    def deposit(self, caller_id: int, target_id: int, amount: object) -> Profile:
        """Credit ``amount`` to the caller's own balance and return the updated profile."""
        if target_id != caller_id:
            raise ForbiddenError
        value = coerce_amount(amount)

        # Advisory read, outside the transaction: it does not touch balances.
        total_unpaid = self.store.sum_unpaid_for_client(caller_id)
        if value > total_unpaid * self.limit_ratio:
            logger.warning(
                f"Deposit above {self._percent()}% of unpaid jobs. "
                f"User: {caller_id} AmountToPay: {total_unpaid} Deposit: {value}"
            )
            raise LimitExceededError(
                f"A client can't deposit more than {self._percent()}% his total of jobs to pay."
            )

        for attempt in range(1, self.max_attempts + 1):
            try:
                self._credit(caller_id, value)
                break
            except ConflictError:
                logger.warning(
                    f"Deposit conflict. User: {caller_id} Amount: {value} Attempt: {attempt}/{self.max_attempts}"
                )
                if attempt == self.max_attempts:
                    raise

        logger.info(f"Deposited {value} to the balance of the user {caller_id}")
        return self.store.get_profile(caller_id)

    def _credit(self, caller_id: int, value: Decimal) -> None:
        try:
            with self.store.transaction():
                profile = self.store.get_profile(caller_id)
                if profile is None:
                    raise NotFoundError("Profile not found")
                if self.store.update_balance(caller_id, profile.balance + value, profile.updated_at) is None:
                    raise ConflictError(RETRY_LATER_DEPOSIT)
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to process the deposit. User: {caller_id} Amount: {value}")
            raise PersistenceError(RETRY_LATER_DEPOSIT) from exc

    def _percent(self) -> str:
        return format(float(self.limit_ratio * 100), "g")
