"""Demo marketplace data: four clients, four contractors, their contracts and jobs."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.db import Contract, ContractStatus, Job, Profile, ProfileRole

PROFILES = [
    (1, "Harry", "Potter", "Wizard", ProfileRole.CLIENT, "1150"),
    (2, "Mr", "Robot", "Hacker", ProfileRole.CLIENT, "231.11"),
    (3, "John", "Snow", "Knows nothing", ProfileRole.CLIENT, "451.3"),
    (4, "Ash", "Kethcum", "Pokemon master", ProfileRole.CLIENT, "1.3"),
    (5, "John", "Lenon", "Musician", ProfileRole.CONTRACTOR, "64"),
    (6, "Linus", "Torvalds", "Programmer", ProfileRole.CONTRACTOR, "1214"),
    (7, "Alan", "Turing", "Programmer", ProfileRole.CONTRACTOR, "22"),
    (8, "Aragorn", "II Elessar Telcontarar", "Fighter", ProfileRole.CONTRACTOR, "314"),
]

# (id, status, client_id, contractor_id)
CONTRACTS = [
    (1, ContractStatus.TERMINATED, 1, 5),
    (2, ContractStatus.IN_PROGRESS, 1, 6),
    (3, ContractStatus.IN_PROGRESS, 2, 6),
    (4, ContractStatus.IN_PROGRESS, 2, 7),
    (5, ContractStatus.NEW, 3, 8),
    (6, ContractStatus.IN_PROGRESS, 3, 7),
    (7, ContractStatus.IN_PROGRESS, 4, 7),
    (8, ContractStatus.IN_PROGRESS, 4, 6),
    (9, ContractStatus.IN_PROGRESS, 4, 8),
]

PAYMENT_DATE = datetime(2020, 8, 15, 19, 11, 26, 737000)

# (id, price, contract_id, paid)
JOBS = [
    (1, "200", 1, False),
    (2, "201", 2, False),
    (3, "202", 3, False),
    (4, "200", 4, False),
    (5, "200", 7, False),
    (6, "2020", 7, True),
    (7, "200", 2, True),
    (8, "200", 3, True),
    (9, "200", 1, True),
    (10, "200", 5, True),
    (11, "21", 1, True),
    (12, "21", 2, True),
    (13, "121", 3, True),
    (14, "121", 3, True),
]


def seed_database(session: Session) -> None:
    """Insert the demo profiles, contracts and jobs and commit."""
    for profile_id, first_name, last_name, profession, role, balance in PROFILES:
        session.add(
            Profile(
                id=profile_id,
                first_name=first_name,
                last_name=last_name,
                profession=profession,
                role=role,
                balance=Decimal(balance),
            )
        )
    for contract_id, status, client_id, contractor_id in CONTRACTS:
        session.add(
            Contract(
                id=contract_id,
                terms="bla bla bla",
                status=status,
                client_id=client_id,
                contractor_id=contractor_id,
            )
        )
    for job_id, price, contract_id, paid in JOBS:
        session.add(
            Job(
                id=job_id,
                description="work",
                price=Decimal(price),
                contract_id=contract_id,
                paid=paid,
                payment_date=PAYMENT_DATE if paid else None,
            )
        )
    session.commit()
