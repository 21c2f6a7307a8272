"""DB models, engine setup and the LedgerStore helper for the Contracts Ledger."""

import enum
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    contains_eager,
    mapped_column,
    relationship,
    sessionmaker,
)

from app.core.utils import next_version, utcnow

MONEY = Numeric(12, 2)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    """Declarative base for the ledger tables."""


class ProfileRole(str, enum.Enum):
    """Role of a profile in the marketplace."""

    CLIENT = "client"
    CONTRACTOR = "contractor"


class ContractStatus(str, enum.Enum):
    """Lifecycle status of a contract."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    TERMINATED = "terminated"


class Profile(Base):
    """An account holding a balance. ``updated_at`` doubles as the optimistic-lock version."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    profession: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[ProfileRole] = mapped_column(
        Enum(ProfileRole, native_enum=False, values_callable=_enum_values), nullable=False
    )
    balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class Contract(Base):
    """Binds one client profile and one contractor profile."""

    __tablename__ = "contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    terms: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ContractStatus] = mapped_column(
        Enum(ContractStatus, native_enum=False, values_callable=_enum_values), nullable=False
    )
    client_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False, index=True)
    contractor_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    client: Mapped[Profile] = relationship(foreign_keys=[client_id])
    contractor: Mapped[Profile] = relationship(foreign_keys=[contractor_id])


class Job(Base):
    """A billable unit of work under a contract."""

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    contract_id: Mapped[int] = mapped_column(ForeignKey("contracts.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    contract: Mapped[Contract] = relationship()


def get_engine(database_url: str, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for the given database URL."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are opened and used on different threadpool workers.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_database(engine: Engine) -> None:
    """Create all ledger tables that do not exist yet."""
    Base.metadata.create_all(engine)


class LedgerStore:
    """Typed persistence operations for profiles, contracts and jobs on one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        """Initialize the LedgerStore with a SQLAlchemy session."""
        self.session = session
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator["LedgerStore"]:
        """Run the enclosed block atomically.

        Nested blocks join the outermost one. The outermost block commits on
        success and rolls back everything on any exception.
        """
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.session.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self.session.commit()

    @property
    def in_transaction(self) -> bool:
        """Whether a ``transaction()`` block is currently open."""
        return self._depth > 0

    # Profiles

    def get_profile(self, profile_id: int) -> Profile | None:
        """Load a profile, bypassing any stale copy held by the session."""
        stmt = select(Profile).where(Profile.id == profile_id).execution_options(populate_existing=True)
        return self.session.scalars(stmt).first()

    def update_balance(self, profile_id: int, new_balance: Decimal, expected_version: datetime) -> datetime | None:
        """Set a profile's balance only if its ``updated_at`` still equals ``expected_version``.

        Returns the new version marker, or ``None`` when no row matched.
        """
        version = next_version(expected_version)
        stmt = (
            update(Profile)
            .where(Profile.id == profile_id, Profile.updated_at == expected_version)
            .values(balance=new_balance, updated_at=version)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            return None
        return version

    def total_balance(self) -> Decimal:
        """Sum of all profile balances."""
        total = self.session.scalar(select(func.sum(Profile.balance)))
        return total if total is not None else Decimal("0")

    # Contracts

    def get_contract_for_profile(self, contract_id: int, profile_id: int) -> Contract | None:
        """Load a contract only if the profile is its client or contractor."""
        stmt = select(Contract).where(
            Contract.id == contract_id,
            or_(Contract.client_id == profile_id, Contract.contractor_id == profile_id),
        )
        return self.session.scalars(stmt).first()

    def list_contracts_for_profile(
        self, profile_id: int, exclude_status: ContractStatus | None = ContractStatus.TERMINATED
    ) -> list[Contract]:
        """List the profile's contracts on either side, optionally skipping one status."""
        stmt = select(Contract).where(or_(Contract.client_id == profile_id, Contract.contractor_id == profile_id))
        if exclude_status is not None:
            stmt = stmt.where(Contract.status != exclude_status)
        return list(self.session.scalars(stmt.order_by(Contract.id)))

    # Jobs

    def list_jobs_for_profile(
        self, profile_id: int, paid: bool, contract_status: ContractStatus | None = ContractStatus.IN_PROGRESS
    ) -> list[Job]:
        """List jobs by paid state on the profile's contracts, optionally filtered by contract status."""
        stmt = (
            select(Job)
            .join(Job.contract)
            .options(contains_eager(Job.contract))
            .where(
                Job.paid.is_(paid),
                or_(Contract.client_id == profile_id, Contract.contractor_id == profile_id),
            )
        )
        if contract_status is not None:
            stmt = stmt.where(Contract.status == contract_status)
        return list(self.session.scalars(stmt.order_by(Job.id)))

    def get_job_for_client(self, job_id: int, client_id: int) -> Job | None:
        """Load a job with its contract only if ``client_id`` is the contract's client."""
        stmt = (
            select(Job)
            .join(Job.contract)
            .options(contains_eager(Job.contract))
            .where(Job.id == job_id, Contract.client_id == client_id)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def sum_unpaid_for_client(self, client_id: int) -> Decimal:
        """Total price of unpaid jobs on every contract where ``client_id`` is the client."""
        stmt = (
            select(func.sum(Job.price))
            .join(Job.contract)
            .where(Contract.client_id == client_id, Job.paid.is_(False))
        )
        total = self.session.scalar(stmt)
        return total if total is not None else Decimal("0")

    def mark_job_paid(self, job_id: int, payment_date: datetime) -> bool:
        """Flip a job to paid. Only an unpaid job matches."""
        stmt = (
            update(Job)
            .where(Job.id == job_id, Job.paid.is_(False))
            .values(paid=True, payment_date=payment_date, updated_at=payment_date)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def close(self) -> None:
        """Close the SQLAlchemy session."""
        self.session.close()
