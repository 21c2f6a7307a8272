"""Tests for the job payment orchestrator."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.core.db import ContractStatus
from app.core.errors import (
    RETRY_LATER_PAYMENT,
    AlreadyPaidError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    PersistenceError,
)
from app.services.payments import JOB_NOT_FOUND, JobPaymentOrchestrator
from app.services.transfer import BalanceTransferEngine

CLIENT_ID, CONTRACTOR_ID, OUTSIDER_ID, JOB_ID = 1, 2, 3, 1


class InterferingTransferEngine(BalanceTransferEngine):
    """Transfer engine that lets a concurrent deposit land just before its first writes."""

    def __init__(self, store, rival, interfere_times=1):
        super().__init__(store)
        self.rival = rival
        self.interfere_times = interfere_times
        self.calls = 0

    def transfer(self, payer, payee_id, amount, payee_version=None):
        self.calls += 1
        if self.calls <= self.interfere_times:
            with self.rival.transaction():
                current = self.rival.get_profile(payer.id)
                self.rival.update_balance(payer.id, current.balance + Decimal("5"), current.updated_at)
        super().transfer(payer, payee_id, amount, payee_version)


class BrokenTransferEngine(BalanceTransferEngine):
    def transfer(self, payer, payee_id, amount, payee_version=None):
        raise OperationalError("UPDATE profiles", {}, Exception("disk I/O error"))


def expect_ledger(store, client: str, contractor: str, paid: bool) -> None:
    """Check both balances and the job's paid flag as committed."""
    got = (
        store.get_profile(CLIENT_ID).balance,
        store.get_profile(CONTRACTOR_ID).balance,
        store.get_job_for_client(JOB_ID, CLIENT_ID).paid,
    )
    expected = (Decimal(client), Decimal(contractor), paid)
    if got != expected:
        msg = f"Expected client/contractor/paid {expected}, got {got}"
        raise AssertionError(msg)


def expect_message(excinfo, expected: str) -> None:
    if excinfo.value.message != expected:
        msg = f"Expected message {expected!r}, got {excinfo.value.message!r}"
        raise AssertionError(msg)


class TestPayForJob:
    """Paying a job moves its price from client to contractor exactly once."""

    def test_client_pays_contractor(self, market, store, fresh_store):
        market(client_balance="50", contractor_balance="0", price="50")
        total_before = store.total_balance()

        job = JobPaymentOrchestrator(store).pay_for_job(CLIENT_ID, JOB_ID)

        if not job.paid or job.payment_date is None:
            msg = "Expected the returned job to be paid with a payment date"
            raise AssertionError(msg)
        other = fresh_store()
        expect_ledger(other, "0.00", "50.00", paid=True)
        if other.total_balance() != total_before:
            msg = f"Expected total {total_before} to be conserved, got {other.total_balance()}"
            raise AssertionError(msg)

    def test_insufficient_funds_changes_nothing(self, market, store, fresh_store):
        market(client_balance="10", price="50")

        with pytest.raises(InsufficientFundsError):
            JobPaymentOrchestrator(store).pay_for_job(CLIENT_ID, JOB_ID)

        expect_ledger(fresh_store(), "10.00", "0.00", paid=False)

    def test_second_payment_reports_already_paid(self, market, store, fresh_store):
        market(client_balance="200", price="50")
        payments = JobPaymentOrchestrator(store)

        payments.pay_for_job(CLIENT_ID, JOB_ID)
        with pytest.raises(AlreadyPaidError):
            payments.pay_for_job(CLIENT_ID, JOB_ID)

        expect_ledger(fresh_store(), "150.00", "50.00", paid=True)

    @pytest.mark.parametrize("caller_id", [CONTRACTOR_ID, OUTSIDER_ID])
    def test_only_the_contract_client_can_pay(self, market, store, caller_id):
        market()
        with pytest.raises(NotFoundError) as excinfo:
            JobPaymentOrchestrator(store).pay_for_job(caller_id, JOB_ID)
        expect_message(excinfo, JOB_NOT_FOUND)

    def test_missing_job_looks_the_same_as_someone_elses(self, market, store):
        market()
        with pytest.raises(NotFoundError) as excinfo:
            JobPaymentOrchestrator(store).pay_for_job(CLIENT_ID, 999)
        expect_message(excinfo, JOB_NOT_FOUND)

    def test_contract_status_does_not_block_payment(self, market, store):
        market(status=ContractStatus.TERMINATED)
        if not JobPaymentOrchestrator(store).pay_for_job(CLIENT_ID, JOB_ID).paid:
            msg = "Expected a job on a terminated contract to be payable"
            raise AssertionError(msg)

    def test_conflict_is_retried_from_fresh_reads(self, market, store, fresh_store):
        market(client_balance="50", price="50")
        engine = InterferingTransferEngine(store, fresh_store())

        JobPaymentOrchestrator(store, transfers=engine, max_attempts=3).pay_for_job(CLIENT_ID, JOB_ID)

        if engine.calls != 2:
            msg = f"Expected one retry after the conflict, got {engine.calls} transfer calls"
            raise AssertionError(msg)
        expect_ledger(fresh_store(), "5.00", "50.00", paid=True)

    def test_conflict_surfaces_when_retries_run_out(self, market, store, fresh_store):
        market(client_balance="50", price="50")
        engine = InterferingTransferEngine(store, fresh_store(), interfere_times=2)

        with pytest.raises(ConflictError) as excinfo:
            JobPaymentOrchestrator(store, transfers=engine, max_attempts=2).pay_for_job(CLIENT_ID, JOB_ID)

        expect_message(excinfo, RETRY_LATER_PAYMENT)
        expect_ledger(fresh_store(), "60.00", "0.00", paid=False)

    def test_storage_failure_is_hidden_behind_a_generic_error(self, market, store, fresh_store):
        market()

        with pytest.raises(PersistenceError) as excinfo:
            JobPaymentOrchestrator(store, transfers=BrokenTransferEngine(store)).pay_for_job(CLIENT_ID, JOB_ID)

        expect_message(excinfo, RETRY_LATER_PAYMENT)
        expect_ledger(fresh_store(), "50.00", "0.00", paid=False)
