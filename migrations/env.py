"""Alembic migration environment.

Uses the engine and metadata of the photoview package so that migrations
run against the exact database the application does.
"""

from __future__ import annotations

from alembic import context
from sqlmodel import SQLModel

from photoview.database import get_engine

# Register every table on SQLModel.metadata before alembic inspects it
from photoview import models as _models  # noqa: F401

target_metadata = SQLModel.metadata


def run_migrations_online() -> None:
    """Run migrations with a real database connection."""
    with get_engine().connect() as conn:
        context.configure(
            connection=conn,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    raise RuntimeError(
        "Offline migration mode is not supported. "
        "Run without --sql."
    )
else:
    run_migrations_online()
