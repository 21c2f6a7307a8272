"""Pydantic models for the Contracts Ledger API.

This module defines the request and response bodies exposed over HTTP. The
response models are read straight from the ORM rows in ``app.core.db``.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, PlainSerializer

from app.core.db import ContractStatus, ProfileRole

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ProfileOut(BaseModel):
    """Pydantic model representing a caller's profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    profession: str
    role: ProfileRole
    balance: Money
    created_at: datetime
    updated_at: datetime


class ContractOut(BaseModel):
    """Pydantic model representing a contract."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    terms: str
    status: ContractStatus
    client_id: int
    contractor_id: int
    created_at: datetime
    updated_at: datetime


class JobOut(BaseModel):
    """Pydantic model representing a job, with the contract it belongs to."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    price: Money
    paid: bool
    payment_date: datetime | None = None
    contract_id: int
    created_at: datetime
    updated_at: datetime
    contract: ContractOut


class DepositIn(BaseModel):
    """Deposit request body. The raw JSON amount is validated by the deposit limiter."""

    amount: Any = None


class SuccessOut(BaseModel):
    success: bool = True
