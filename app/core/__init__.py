"""Core package: provides models, database helpers, settings, errors, and shared utilities."""

from .db import Contract, ContractStatus, Job, LedgerStore, Profile, ProfileRole  # noqa: F401
from .errors import LedgerError  # noqa: F401
from .models import ContractOut, JobOut, ProfileOut  # noqa: F401
from .settings import Settings  # noqa: F401
