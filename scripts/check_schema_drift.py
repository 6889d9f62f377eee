from __future__ import annotations

import sys

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext
from sqlalchemy.exc import SQLAlchemyError

from rafflereel.db.engine import make_engine
from rafflereel.models import Base


def _describe(ops, depth: int = 0) -> list[str]:
    lines: list[str] = []
    for op in ops:
        lines.append(f"{'  ' * depth}- {op}")
        lines.extend(_describe(getattr(op, "ops", None) or [], depth + 1))
    return lines


def main() -> int:
    """Compare the live registration store against the ORM models.

    Exit status is 0 when they match, 1 on drift and 2 when the check
    itself could not run.
    """
    engine = make_engine()
    target = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "compare_server_default": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            upgrade_ops = ag_api.produce_migrations(context, Base.metadata).upgrade_ops
    except SQLAlchemyError as exc:
        print(f"Schema drift check: ERROR for {target}: {exc}", file=sys.stderr)
        return 2

    if upgrade_ops is None or upgrade_ops.is_empty():
        print(f"Schema drift check: OK for {target}.")
        return 0
    print(f"Schema drift check: FAILED for {target}. Run `alembic revision --autogenerate`:")
    print("\n".join(_describe(upgrade_ops.ops)))
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
