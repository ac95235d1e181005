"""Schema migrations for the Photoview database.

alembic is imported only here; the CLI goes through the functions below.
Revisions live in `migrations/versions`. A database first built by
`init_db()` has every table but no revision recorded, so it is stamped at
head before any later upgrade runs against it.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

from alembic import command as alembic_command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from . import database
from .config import PROJECT_ROOT
from .logging_config import get_logger

logger = get_logger(__name__)


def _alembic_cfg() -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    # Absolute, so the CLI works from any working directory
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    return cfg


def head_revision() -> str:
    return ScriptDirectory.from_config(_alembic_cfg()).get_current_head() or "unknown"


def current_revision() -> Optional[str]:
    """Revision recorded in the database; None if it is missing or unstamped."""
    if not database.DB_PATH.exists():
        return None
    with database.get_engine().connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def backup_database() -> Optional[Path]:
    """Copy photoview.db to photoview.db.bak, replacing an older backup."""
    db_path = database.DB_PATH
    if not db_path.exists():
        return None
    backup_path = db_path.with_suffix(".db.bak")
    shutil.copy2(db_path, backup_path)
    logger.info(f"Database backed up to {backup_path}")
    return backup_path


def run_migrations(backup: bool = True) -> None:
    """Upgrade the database to the head revision."""
    if backup:
        backup_database()
    alembic_command.upgrade(_alembic_cfg(), "head")


def stamp_if_needed() -> None:
    """Record the head revision in a database that has none yet."""
    if not database.DB_PATH.exists() or current_revision() is not None:
        return
    alembic_command.stamp(_alembic_cfg(), "head")
    logger.info(f"Stamped {database.DB_PATH.name} at revision {head_revision()}")


def get_status() -> tuple[Optional[str], str]:
    """Return (current revision, head revision)."""
    return current_revision(), head_revision()
