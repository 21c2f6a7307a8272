"""FastAPI dependencies for DI (settings, store, caller profile, services).

The engine and session factory live on ``app.state``; every request gets its
own session wrapped in a LedgerStore, and the core services are built around
that store.
"""

from collections.abc import Iterator

from fastapi import Depends, Header, HTTPException, Request

from app.core.db import LedgerStore, Profile
from app.core.settings import Settings
from app.services.deposits import DepositLimiter
from app.services.payments import JobPaymentOrchestrator


def get_settings(request: Request) -> Settings:
    """Provide the settings the application was created with."""
    return request.app.state.settings


def get_store(request: Request) -> Iterator[LedgerStore]:
    """Provide a LedgerStore on a fresh session, closed when the request ends."""
    store = LedgerStore(request.app.state.session_factory())
    try:
        yield store
    finally:
        store.close()


def get_caller_profile(
    profile_id: str | None = Header(default=None, alias="profile_id", convert_underscores=False),
    store: LedgerStore = Depends(get_store),
) -> Profile:
    """Resolve the calling profile from the ``profile_id`` header, or reject with 401."""
    if not profile_id or not profile_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Unauthorized")
    profile = store.get_profile(int(profile_id))
    if profile is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return profile


def get_payment_orchestrator(
    store: LedgerStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> JobPaymentOrchestrator:
    """Provide a JobPaymentOrchestrator bound to the request's store."""
    return JobPaymentOrchestrator(store, max_attempts=settings.max_conflict_retries)


def get_deposit_limiter(
    store: LedgerStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> DepositLimiter:
    """Provide a DepositLimiter bound to the request's store."""
    return DepositLimiter(store, limit_ratio=settings.deposit_limit_ratio, max_attempts=settings.max_conflict_retries)
