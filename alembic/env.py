"""Alembic environment for the registration store.

The database URL is taken, in order, from ``alembic -x db_url=...``, from a
``sqlalchemy.url`` set programmatically (see ``scripts/init_db.py``), and
finally from ``DB_URL`` via :mod:`rafflereel.db.engine`.
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))
load_dotenv(ROOT_DIR / ".env")

from rafflereel.db.engine import DEFAULT_SQLITE_URL, make_engine  # noqa: E402
from rafflereel.db.utils import resolve_sqlite_url  # noqa: E402
from rafflereel.models import Base  # noqa: E402 - import registers the tables

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("db_url")
    if override:
        return resolve_sqlite_url(override, ROOT_DIR)
    configured = config.get_main_option("sqlalchemy.url")
    if configured:
        return resolve_sqlite_url(configured, ROOT_DIR)
    return DEFAULT_SQLITE_URL


DATABASE_URL = _database_url()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit SQL for the registration schema without connecting."""

    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=_is_sqlite(DATABASE_URL),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = make_engine(database_url=DATABASE_URL)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
                render_as_batch=connection.dialect.name == "sqlite",
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
