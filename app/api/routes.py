"""FastAPI endpoints for the Contracts Ledger API.

This module defines the contract and job queries, the pay-for-job and deposit
endpoints, and the health check. Domain failures are raised as LedgerError and
rendered by the handler registered in ``main.create_app``.
"""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_caller_profile, get_deposit_limiter, get_payment_orchestrator, get_store
from app.core.db import LedgerStore, Profile
from app.core.errors import NotFoundError
from app.core.models import ContractOut, DepositIn, JobOut, ProfileOut, SuccessOut
from app.core.utils import get_logger
from app.services.deposits import DepositLimiter
from app.services.payments import JobPaymentOrchestrator

router = APIRouter()
logger = get_logger("contracts-ledger.api")


@router.get(
    "/contracts/{contract_id}",
    response_model=ContractOut,
    summary="Get a contract of the caller",
    description=(
        "Return the contract if the caller is its client or its contractor.\n\n"
        "**Response:**\n"
        "- 200 OK: The contract.\n"
        "- 404 Not Found: The contract does not exist or does not belong to the caller."
    ),
    responses={
        404: {
            "description": "Contract not found.",
            "content": {"application/json": {"example": {"detail": "Contract not found"}}},
        },
    },
)
def get_contract(
    contract_id: int,
    profile: Profile = Depends(get_caller_profile),
    store: LedgerStore = Depends(get_store),
) -> ContractOut:
    """Fetch a contract if it belongs to the caller."""
    contract = store.get_contract_for_profile(contract_id, profile.id)
    if contract is None:
        raise NotFoundError("Contract not found")
    return contract


@router.get(
    "/contracts",
    response_model=list[ContractOut],
    summary="List the caller's open contracts",
    description="Return every non-terminated contract where the caller is the client or the contractor.",
)
def list_contracts(
    profile: Profile = Depends(get_caller_profile),
    store: LedgerStore = Depends(get_store),
) -> list[ContractOut]:
    """List non-terminated contracts belonging to the caller."""
    return store.list_contracts_for_profile(profile.id)


@router.get(
    "/jobs/unpaid",
    response_model=list[JobOut],
    summary="List the caller's unpaid jobs",
    description="Return unpaid jobs on in-progress contracts where the caller is the client or the contractor.",
)
def list_unpaid_jobs(
    profile: Profile = Depends(get_caller_profile),
    store: LedgerStore = Depends(get_store),
) -> list[JobOut]:
    """List unpaid jobs for the caller, for active contracts only."""
    return store.list_jobs_for_profile(profile.id, paid=False)


@router.post(
    "/jobs/{job_id}/pay",
    response_model=SuccessOut,
    summary="Pay for a job",
    description=(
        "Move the job price from the caller's balance to the contractor's balance and mark the job paid. "
        "Only the contract's client can pay, and only if the balance covers the price.\n\n"
        "**Response:**\n"
        "- 200 OK: `{ 'success': true }`.\n"
        "- 400 Bad Request: Insufficient funds.\n"
        "- 404 Not Found: The job does not exist or the caller is not its client.\n"
        "- 409 Conflict: The job is already paid, or a concurrent update won; retry the request.\n"
        "- 503 Service Unavailable: Storage failure; retry later."
    ),
    responses={
        400: {"description": "Insufficient funds."},
        404: {"description": "Job not found or not payable by the caller."},
        409: {"description": "Already paid or concurrent modification."},
        503: {"description": "Storage failure."},
    },
)
def pay_for_job(
    job_id: int,
    profile: Profile = Depends(get_caller_profile),
    payments: JobPaymentOrchestrator = Depends(get_payment_orchestrator),
) -> SuccessOut:
    """Pay for a job as the contract's client."""
    logger.info(f"Pay request: user={profile.id}, job_id={job_id}")
    payments.pay_for_job(profile.id, job_id)
    return SuccessOut()


@router.post(
    "/balances/deposit/{user_id}",
    response_model=SuccessOut,
    summary="Deposit into the caller's balance",
    description=(
        "Add `amount` to the caller's balance. `user_id` must be the caller's own id, and the amount "
        "may not exceed 25% of the total price of the caller's unpaid jobs at the moment of the deposit.\n\n"
        "**Request body:** `{ 'amount': number }`"
    ),
    responses={
        400: {"description": "Invalid amount or deposit limit exceeded."},
        403: {"description": "Target balance is not the caller's."},
        409: {"description": "Concurrent modification; retry the request."},
        503: {"description": "Storage failure."},
    },
)
def deposit(
    user_id: int,
    payload: DepositIn,
    profile: Profile = Depends(get_caller_profile),
    deposits: DepositLimiter = Depends(get_deposit_limiter),
) -> SuccessOut:
    """Deposit money into the caller's own balance."""
    logger.info(f"Deposit request: user={profile.id}, target={user_id}, amount={payload.amount}")
    deposits.deposit(profile.id, user_id, payload.amount)
    return SuccessOut()


@router.get(
    "/profiles/me",
    response_model=ProfileOut,
    summary="Get the caller's profile",
    description="Return the profile resolved from the `profile_id` header, including its current balance.",
)
def get_me(profile: Profile = Depends(get_caller_profile)) -> ProfileOut:
    """Return the caller's profile."""
    return profile


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
