"""
Simple script to create the threads and messages tables.
The gateway also does this on startup; run it to prepare a database ahead of time.

Usage: python create_tables.py [DATABASE_URL]
"""
import sys
from typing import Dict, Optional

from sqlalchemy import inspect

from config import get_settings
from database import Database
from models import Base


def create_tables(url: Optional[str]) -> Dict[str, bool]:
    """Create the schema and report which tables exist afterwards."""
    database = Database(url)
    try:
        engine = database.connect()
        inspector = inspect(engine)
        return {name: inspector.has_table(name) for name in Base.metadata.tables}
    finally:
        database.dispose()


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else get_settings().database_url
    if not url:
        print("✗ DATABASE_URL is not set")
        sys.exit(1)

    print("Creating database tables...")
    results = create_tables(url)
    for table, exists in results.items():
        if exists:
            print(f"✓ {table.capitalize()} table created successfully!")
        else:
            print(f"✗ Failed to create {table} table")
    sys.exit(0 if all(results.values()) else 1)
