"""Balance transfer engine: the only code path that moves money between two profiles."""

import math
from datetime import datetime
from decimal import Decimal, InvalidOperation

from app.core.db import LedgerStore, Profile
from app.core.errors import ConflictError, ForbiddenError, InsufficientFundsError, InvalidAmountError, NotFoundError
from app.core.utils import CENT, get_logger, to_decimal

logger = get_logger("contracts-ledger.transfer")


def coerce_amount(value: object) -> Decimal:
    """Validate a monetary amount and return it as an exact Decimal.

    Only JSON numbers and Decimals are accepted. Raises InvalidAmountError for
    missing, boolean, string, non-finite, zero or negative values, and for
    amounts finer than one cent, which are never rounded.
    """
    if isinstance(value, bool) or not isinstance(value, int | float | Decimal):
        raise InvalidAmountError
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidAmountError
    amount = to_decimal(value)
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError
    try:
        whole_cents = amount == amount.quantize(CENT)
    except InvalidOperation as exc:
        raise InvalidAmountError from exc
    if not whole_cents:
        raise InvalidAmountError
    return amount


class BalanceTransferEngine:
    """Debit one profile and credit another inside a single store transaction.

    Both writes are conditional on the ``updated_at`` value each row had when
    it was read. A write that matches no row means someone else changed the
    profile in between; the whole transaction is rolled back and ConflictError
    is raised so the caller can start over from fresh reads.
    """

    def __init__(self, store: LedgerStore) -> None:
        """Initialize the engine with the store it writes through."""
        self.store = store

    def transfer(
        self,
        payer: Profile,
        payee_id: int,
        amount: object,
        payee_version: datetime | None = None,
    ) -> None:
        """Move ``amount`` from ``payer`` (as previously read) to ``payee_id``.

        When ``payee_version`` is omitted the payee is re-read inside the
        transaction and guarded on the version seen there.
        """
        value = coerce_amount(amount)
        payer_id = payer.id
        payer_balance = payer.balance
        payer_version = payer.updated_at
        if payer_id == payee_id:
            raise ForbiddenError("A profile cannot transfer funds to itself.")
        if payer_balance < value:
            raise InsufficientFundsError

        with self.store.transaction():
            if self.store.update_balance(payer_id, payer_balance - value, payer_version) is None:
                logger.warning(f"Version conflict debiting profile {payer_id}")
                raise ConflictError

            payee = self.store.get_profile(payee_id)
            if payee is None:
                raise NotFoundError("Payee profile not found")
            expected = payee_version if payee_version is not None else payee.updated_at
            if self.store.update_balance(payee_id, payee.balance + value, expected) is None:
                logger.warning(f"Version conflict crediting profile {payee_id}")
                raise ConflictError

        logger.debug(f"Transferred {value} from profile {payer_id} to profile {payee_id}")
