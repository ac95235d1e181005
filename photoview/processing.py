"""Photo processing for Photoview.

Registers a Photo row for an image found by the scanner and renders its
derived files with Pillow under `image-cache/{album_id}/{photo_id}/`:

- `thumbnail.jpg` for every photo
- `highres.jpg` for formats a browser cannot display directly (TIFF, CR2)
"""

from __future__ import annotations

import shutil
from pathlib import Path

from PIL import Image, ImageOps
from sqlmodel import Session

from .config import PhotoviewConfig
from .database import get_engine
from .filetypes import WEB_MIMETYPES
from .logging_config import get_logger
from .models import Photo
from .repository import Repository
from .utils import photo_cache_dir, short_path

logger = get_logger(__name__)

THUMBNAIL_NAME = "thumbnail.jpg"
HIGHRES_NAME = "highres.jpg"


def _save_thumbnail(
    source: Path,
    thumb_path: Path,
    width: int,
    height: int,
    quality: int,
) -> None:
    thumb_path.parent.mkdir(parents=True, exist_ok=True)
    with Image.open(source) as im:
        im = ImageOps.exif_transpose(im).convert("RGB")
        im.thumbnail((width, height))
        im.save(thumb_path, format="JPEG", quality=quality, optimize=True)


def _save_highres(source: Path, highres_path: Path, quality: int) -> None:
    highres_path.parent.mkdir(parents=True, exist_ok=True)
    with Image.open(source) as im:
        im = ImageOps.exif_transpose(im).convert("RGB")
        im.save(highres_path, format="JPEG", quality=quality)


def render_photo(photo: Photo, config: PhotoviewConfig) -> bool:
    """Render the derived files of a photo. Returns True on success.

    Decoding failures are logged, never raised: a photo Pillow cannot read
    stays registered without a thumbnail.
    """
    source = Path(photo.path)
    target_dir = photo_cache_dir(config.cache_dir, photo.album_id, photo.id)
    try:
        _save_thumbnail(
            source,
            target_dir / THUMBNAIL_NAME,
            config.thumbnails.width,
            config.thumbnails.height,
            config.thumbnails.quality,
        )
        if photo.content_type not in WEB_MIMETYPES:
            _save_highres(source, target_dir / HIGHRES_NAME, config.thumbnails.quality)
    except Exception as exc:
        logger.error(f"Failed to render {short_path(source)} ({photo.content_type}): {exc}")
        return False
    return True


def process_image(
    session: Session,
    photo_path: Path,
    album_id: int,
    content_type: str,
    config: PhotoviewConfig,
) -> Photo:
    """Register a photo in its album and render its thumbnail.

    Runs inside the caller's transaction; the caller commits or rolls back.
    A photo already registered for the album is returned unchanged.
    Database errors propagate.
    """
    repo = Repository(session)

    photo = repo.get_photo(album_id, photo_path)
    if photo is not None:
        return photo

    photo = repo.add_photo(album_id=album_id, path=photo_path, content_type=content_type)
    if render_photo(photo, config):
        repo.set_thumbnail_generated(photo, True)

    status = "✓" if photo.thumbnail_generated else "✗"
    logger.debug(f"{status} {short_path(photo_path)} ({content_type})")
    return photo


def generate_thumbnails(config: PhotoviewConfig, regenerate: bool = False) -> int:
    """Render missing (or all) thumbnails based on DB contents.

    Returns the number of photos rendered.
    """
    rendered = 0
    with Session(get_engine()) as session:
        repo = Repository(session)

        if regenerate:
            logger.info("Regenerating all thumbnails...")
            photos = repo.get_all_photos()
        else:
            logger.info("Generating missing thumbnails...")
            photos = repo.get_photos_missing_thumbnails()

        total = len(photos)
        logger.info(f"{total} photos to process for thumbnails")

        for idx, photo in enumerate(photos, start=1):
            path = Path(photo.path)
            logger.debug(f"[{idx}/{total}] {short_path(path)}")
            if not path.exists():
                logger.warning(f"Photo file not found on disk: {path}")
                continue

            if render_photo(photo, config):
                repo.set_thumbnail_generated(photo, True)
                repo.commit()
                rendered += 1

    logger.info("Thumbnail generation complete.")
    return rendered


def cleanup_orphaned_cache(config: PhotoviewConfig) -> int:
    """Remove album cache folders that don't have a corresponding album in DB.

    Returns count of removed folders.
    """
    cache_dir = config.cache_dir
    if not cache_dir.exists():
        return 0

    with Session(get_engine()) as session:
        valid_ids = Repository(session).get_all_album_ids()

    deleted = 0
    for album_dir in cache_dir.iterdir():
        if not album_dir.is_dir():
            continue
        if album_dir.name.isdigit() and int(album_dir.name) in valid_ids:
            continue
        try:
            shutil.rmtree(album_dir)
            deleted += 1
        except OSError as exc:
            logger.error(f"Failed to remove cache folder {album_dir}: {exc}")

    return deleted
