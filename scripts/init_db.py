"""Create or upgrade the registration store and summarise what it holds."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import func, inspect, select

from rafflereel.db.engine import get_sessionmaker, make_engine
from rafflereel.models import Registration

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def migrate(target_revision: str = "head", database_url: Optional[str] = None) -> None:
    """Bring the registration store up to ``target_revision``."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    if database_url:
        # ConfigParser interpolation treats '%' specially.
        alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    command.upgrade(alembic_cfg, target_revision)


def report(database_url: Optional[str] = None) -> None:
    """Print the tables present and how many registrations are stored."""
    engine = make_engine(database_url)
    tables = sorted(inspect(engine).get_table_names())
    print("Current tables:", ", ".join(tables))
    if Registration.__tablename__ in tables:
        with get_sessionmaker(engine)() as session:
            count = session.scalar(select(func.count()).select_from(Registration))
        print(f"Stored registrations: {count}")
    engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--db-url", help="database URL (defaults to DB_URL)")
    parser.add_argument("--revision", default="head", help="target Alembic revision")
    args = parser.parse_args()

    migrate(args.revision, args.db_url)
    report(args.db_url)


if __name__ == "__main__":
    main()
