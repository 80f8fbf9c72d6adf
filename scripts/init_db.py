"""
Create the customers table on a fresh development database.

The production table already exists and is owned by the database; this
never alters an existing table.

Usage:
    python scripts/init_db.py [--seed]
"""

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.config import load_settings
from app.crm.db import make_engine, session_scope
from app.crm.models import Base, CustomerRecord


def init_db(*, database_url: str | None = None, seed: bool = False) -> None:
    db_url = (database_url or load_settings().database_url).strip()
    engine = make_engine(db_url)
    Base.metadata.create_all(bind=engine)
    print("customers table ready", flush=True)

    if not seed:
        return
    with session_scope(engine) as s:
        if s.query(CustomerRecord).count():
            print("customers table not empty; skipping seed", flush=True)
            return
        s.add(
            CustomerRecord(
                first_name="Jane",
                last_name="Doe",
                birth_date=datetime(1990, 5, 2),
                gender="Female",
                email="jane.doe@example.com",
                address="1 Main St",
            )
        )
    print("seeded 1 demo customer", flush=True)


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--seed", action="store_true", help="insert a demo customer into an empty table")
    parser.add_argument("--database-url", default=os.environ.get("DATABASE_URL"))
    args = parser.parse_args()
    init_db(database_url=args.database_url, seed=args.seed)


if __name__ == "__main__":
    main()
