"""Utility functions for Photoview."""

from __future__ import annotations

import shutil
from pathlib import Path

from .logging_config import get_logger

logger = get_logger(__name__)


def short_path(path: Path) -> str:
    """Return abbreviated path showing only parent folder + filename.

    Example: /very/long/path/to/folder/photo.jpg -> folder/photo.jpg
    """
    return f"{path.parent.name}/{path.name}"


def album_cache_dir(cache_dir: Path, album_id: int) -> Path:
    """Return the derived-cache folder of an album."""
    return cache_dir / str(album_id)


def photo_cache_dir(cache_dir: Path, album_id: int, photo_id: int) -> Path:
    return album_cache_dir(cache_dir, album_id) / str(photo_id)


def delete_album_cache(album_id: int, cache_dir: Path) -> bool:
    """Remove an album's derived-cache folder.

    Returns True when the folder is gone afterwards (including when it never
    existed), False if removal failed.
    """
    path = album_cache_dir(cache_dir, album_id)
    if not path.exists():
        return True
    try:
        shutil.rmtree(path)
    except OSError as exc:
        logger.error(f"Could not delete unused cache folder {path}: {exc}")
        return False
    return True
