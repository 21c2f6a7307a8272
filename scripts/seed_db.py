"""Recreate the ledger database and load the demo marketplace data.

Usage:
    python scripts/seed_db.py [--database-url sqlite:///./database.sqlite3]
"""

import argparse

from app.core.db import Base, get_engine, get_session_factory
from app.core.seed import seed_database
from app.core.settings import get_settings
from app.core.utils import get_logger

logger = get_logger("contracts-ledger.seed")


def main() -> None:
    """Drop and recreate all tables, then seed them."""
    parser = argparse.ArgumentParser(description="Seed the contracts ledger database")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL (defaults to DATABASE_URL setting)")
    args = parser.parse_args()

    database_url = args.database_url or get_settings().database_url
    engine = get_engine(database_url)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    session = get_session_factory(engine)()
    try:
        seed_database(session)
    finally:
        session.close()
    engine.dispose()
    logger.info(f"Seeded database at {database_url}")


if __name__ == "__main__":
    main()
