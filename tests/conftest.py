"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.db import (
    Contract,
    ContractStatus,
    Job,
    LedgerStore,
    Profile,
    ProfileRole,
    get_engine,
    get_session_factory,
    init_database,
)
from app.core.seed import seed_database
from app.core.settings import Settings
from main import create_app

CLIENT_ID = 1
CONTRACTOR_ID = 2
OUTSIDER_ID = 3
CONTRACT_ID = 1
JOB_ID = 1


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    """Create a temporary SQLite database with the ledger tables."""
    engine = get_engine(f"sqlite:///{tmp_path / 'ledger.sqlite3'}")
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return get_session_factory(engine)


@pytest.fixture
def store(session_factory: sessionmaker[Session]) -> Iterator[LedgerStore]:
    """A LedgerStore on its own session."""
    store = LedgerStore(session_factory())
    yield store
    store.close()


@pytest.fixture
def fresh_store(session_factory: sessionmaker[Session]) -> Iterator[Callable[[], LedgerStore]]:
    """Open a new LedgerStore on a separate session, for reading committed state or racing writes."""
    opened: list[LedgerStore] = []

    def _open() -> LedgerStore:
        opened.append(LedgerStore(session_factory()))
        return opened[-1]

    yield _open
    for other in opened:
        other.close()


@pytest.fixture
def market(session_factory: sessionmaker[Session]) -> Callable[..., None]:
    """Build a small marketplace: one client, one contractor, an outsider, one contract and one job.

    Keyword arguments override the client/contractor balances, the job price,
    its paid flag and the contract status.
    """

    def _build(
        client_balance: str = "50",
        contractor_balance: str = "0",
        price: str = "50",
        paid: bool = False,
        status: ContractStatus = ContractStatus.IN_PROGRESS,
    ) -> None:
        session = session_factory()
        try:
            session.add_all(
                [
                    Profile(
                        id=CLIENT_ID,
                        first_name="Cora",
                        last_name="Client",
                        profession="Founder",
                        role=ProfileRole.CLIENT,
                        balance=Decimal(client_balance),
                    ),
                    Profile(
                        id=CONTRACTOR_ID,
                        first_name="Remy",
                        last_name="Contractor",
                        profession="Programmer",
                        role=ProfileRole.CONTRACTOR,
                        balance=Decimal(contractor_balance),
                    ),
                    Profile(
                        id=OUTSIDER_ID,
                        first_name="Otto",
                        last_name="Outsider",
                        profession="Designer",
                        role=ProfileRole.CLIENT,
                        balance=Decimal("100"),
                    ),
                ]
            )
            session.add(
                Contract(
                    id=CONTRACT_ID,
                    terms="build the thing",
                    status=status,
                    client_id=CLIENT_ID,
                    contractor_id=CONTRACTOR_ID,
                )
            )
            session.add(
                Job(id=JOB_ID, description="work", price=Decimal(price), paid=paid, contract_id=CONTRACT_ID)
            )
            session.commit()
        finally:
            session.close()

    return _build


@pytest.fixture
def api_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary database and log directory."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'api.sqlite3'}",
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def client(api_settings: Settings) -> Iterator[TestClient]:
    """TestClient over an app whose database holds the demo marketplace."""
    app = create_app(api_settings)
    with TestClient(app) as test_client:
        session = app.state.session_factory()
        try:
            seed_database(session)
        finally:
            session.close()
        yield test_client
