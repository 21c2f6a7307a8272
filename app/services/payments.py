"""Job payment orchestration: authorize the paying client, then transfer the job price."""

from sqlalchemy.exc import SQLAlchemyError

from app.core.db import Job, LedgerStore
from app.core.errors import (
    RETRY_LATER_PAYMENT,
    AlreadyPaidError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    PersistenceError,
)
from app.core.utils import get_logger, utcnow
from app.services.transfer import BalanceTransferEngine

logger = get_logger("contracts-ledger.payments")

JOB_NOT_FOUND = "The job is not found or you do not have enough privileges to access it."


class JobPaymentOrchestrator:
    """Pays a job from its contract's client to its contractor, exactly once."""

    def __init__(
        self,
        store: LedgerStore,
        transfers: BalanceTransferEngine | None = None,
        max_attempts: int = 3,
    ) -> None:
        """Initialize the orchestrator with a store and, optionally, a transfer engine."""
        self.store = store
        self.transfers = transfers or BalanceTransferEngine(store)
        self.max_attempts = max(1, max_attempts)

    def pay_for_job(self, caller_id: int, job_id: int) -> Job:
        """Pay ``job_id`` on behalf of ``caller_id`` and return the paid job.

        Every attempt re-reads the job and the caller's profile, so a version
        conflict is retried from scratch. A retry after another request paid
        the job reports AlreadyPaidError.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._attempt(caller_id, job_id)
            except ConflictError:
                logger.warning(
                    f"Payment conflict. User: {caller_id} Job: {job_id} Attempt: {attempt}/{self.max_attempts}"
                )
                if attempt == self.max_attempts:
                    raise

    def _attempt(self, caller_id: int, job_id: int) -> Job:
        job = self.store.get_job_for_client(job_id, caller_id)
        if job is None:
            raise NotFoundError(JOB_NOT_FOUND)
        if job.paid:
            raise AlreadyPaidError
        profile = self.store.get_profile(caller_id)
        if profile is None:
            raise NotFoundError(JOB_NOT_FOUND)
        price = job.price
        if profile.balance < price:
            raise InsufficientFundsError
        contractor_id = job.contract.contractor_id

        try:
            with self.store.transaction():
                self.transfers.transfer(profile, contractor_id, price)
                # Only an unpaid row matches, so a concurrent payment shows up as a conflict.
                if not self.store.mark_job_paid(job_id, utcnow()):
                    raise ConflictError
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to process the payment. User: {caller_id} Job: {job_id}")
            raise PersistenceError(RETRY_LATER_PAYMENT) from exc

        logger.info(f"Job {job_id} paid: {price} moved from profile {caller_id} to profile {contractor_id}")
        return self.store.get_job_for_client(job_id, caller_id)
