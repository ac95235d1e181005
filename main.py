"""Photoview scanner CLI entry point."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

import typer
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from photoview.config import DEFAULT_CONFIG_PATH, PhotoviewConfig, load_config, write_default_config
from photoview.database import get_engine, init_db, reset_database
from photoview.logging_config import setup_logging
from photoview.migrations import get_status, run_migrations, stamp_if_needed
from photoview.processing import cleanup_orphaned_cache, generate_thumbnails
from photoview.repository import Repository
from photoview.scanner import UserNotFoundError, scan_user


__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Photoview photo library scanner")
logger = logging.getLogger("photoview")


def _ensure_config() -> PhotoviewConfig:
    try:
        config = load_config()
    except FileNotFoundError:
        typer.echo("[ERROR] config.ini not found. Run: photoview init")
        raise typer.Exit(code=1)
    setup_logging(config.logging)
    return config


def _prepare_database() -> None:
    init_db()
    stamp_if_needed()


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config.ini"),
) -> None:
    """Initialize config.ini with default settings."""
    if DEFAULT_CONFIG_PATH.exists() and not force:
        typer.echo(f"[ERROR] {DEFAULT_CONFIG_PATH} already exists. Use --force to overwrite.")
        raise typer.Exit(code=1)
    path = write_default_config()
    typer.echo(f"[OK] Config created at {path}")


@app.command("add-user")
def add_user(
    username: str = typer.Argument(..., help="Name of the new user"),
    root: Path = typer.Option(..., "--root", help="Path to the user's photo folder"),
) -> None:
    """Register a user and the photo root that scans will walk."""
    _ensure_config()
    _prepare_database()

    root_path = root.expanduser().resolve()
    if not root_path.is_dir():
        typer.echo(f"[ERROR] Not a directory: {root_path}")
        raise typer.Exit(code=1)

    with Session(get_engine()) as session:
        repo = Repository(session)
        try:
            user = repo.create_user(username, root_path)
            repo.commit()
        except IntegrityError:
            typer.echo(f"[ERROR] User '{username}' already exists.")
            raise typer.Exit(code=1)
        typer.echo(f"[OK] User '{user.username}' created with id {user.id}")


@app.command()
def users() -> None:
    """List registered users."""
    _ensure_config()
    _prepare_database()

    with Session(get_engine()) as session:
        for user in Repository(session).list_users():
            typer.echo(f"  {user.id:>4}  {user.username:<20} {user.root_path}")


@app.command()
def scan(
    user_id: Optional[int] = typer.Argument(None, help="Id of the user to scan"),
    all_users: bool = typer.Option(False, "--all", help="Scan every registered user"),
) -> None:
    """Scan photo roots and update the database."""
    config = _ensure_config()
    _prepare_database()

    if all_users:
        with Session(get_engine()) as session:
            user_ids = [user.id for user in Repository(session).list_users()]
    elif user_id is not None:
        user_ids = [user_id]
    else:
        typer.echo("[ERROR] Give a user id or --all.")
        raise typer.Exit(code=1)

    workers = []
    for uid in user_ids:
        try:
            workers.append(scan_user(uid, config))
        except UserNotFoundError as exc:
            typer.echo(f"[ERROR] {exc}")
            raise typer.Exit(code=1)

    # Scan threads are daemons; keep the process alive until they finish
    for worker in workers:
        worker.join()

    typer.echo(
        f"✓ Scan completed for {len(workers)} user(s). See {config.logging.file} for details."
    )


@app.command()
def thumbnails(
    regenerate: bool = typer.Option(False, "--regenerate", help="Regenerate all thumbnails"),
) -> None:
    """Generate missing (or all) thumbnails."""
    config = _ensure_config()
    _prepare_database()
    rendered = generate_thumbnails(config, regenerate=regenerate)
    typer.echo(f"[INFO] Rendered {rendered} thumbnails")


@app.command()
def cleanup() -> None:
    """Remove cache folders of albums that no longer exist."""
    config = _ensure_config()
    _prepare_database()
    deleted = cleanup_orphaned_cache(config)
    typer.echo(f"[INFO] Removed {deleted} orphaned cache folders")


@app.command()
def stats() -> None:
    """Show library statistics."""
    _ensure_config()
    _prepare_database()

    with Session(get_engine()) as session:
        repo = Repository(session)
        total_users = repo.count_users()
        total_albums = repo.count_albums()
        total_photos = repo.count_photos()
        thumbs_generated = repo.count_photos(thumbnails_only=True)

    percent = (thumbs_generated / total_photos * 100) if total_photos else 0

    typer.echo("Library Statistics:")
    typer.echo(f"  Users: {total_users}")
    typer.echo(f"  Albums: {total_albums}")
    typer.echo(f"  Photos: {total_photos}")
    typer.echo(
        f"  Thumbnails generated: {thumbs_generated} / {total_photos} "
        f"({percent:.0f}%)"
    )


@app.command()
def migrate(
    check: bool = typer.Option(False, "--check", help="Print status and exit (1 if not at head)"),
) -> None:
    """Run pending database migrations (or check status with --check)."""
    _ensure_config()
    init_db()

    current, head = get_status()

    if check:
        if current == head:
            typer.echo(f"[OK] Database at {head} (head).")
            raise typer.Exit(code=0)
        typer.echo(f"[WARN] Database behind, current: {current}, head: {head}")
        raise typer.Exit(code=1)

    if current == head:
        logger.info(f"Database already at {head} (head). Nothing to do.")
        raise typer.Exit(code=0)

    logger.info(f"Migrating database {current} -> {head} ...")
    run_migrations(backup=True)
    logger.info("Migration complete.")


@app.command()
def reset(
    confirm: bool = typer.Option(False, "--confirm", help="Confirm destructive reset"),
) -> None:
    """Reset the database and delete the image cache."""
    if not confirm:
        typer.echo("[ERROR] This will delete your database and image cache. Use --confirm.")
        raise typer.Exit(code=1)

    config = _ensure_config()

    reset_database()
    if config.cache_dir.exists():
        shutil.rmtree(config.cache_dir)

    typer.echo("[INFO] Database and image cache reset. Add users again with add-user.")


if __name__ == "__main__":
    app()
