"""Tests for photo registration, thumbnails and cache maintenance."""

from pathlib import Path

import pytest
from PIL import Image
from sqlmodel import Session

from conftest import make_image
from photoview.processing import (
    HIGHRES_NAME,
    THUMBNAIL_NAME,
    cleanup_orphaned_cache,
    generate_thumbnails,
    process_image,
)
from photoview.repository import Repository
from photoview.utils import album_cache_dir, delete_album_cache, photo_cache_dir


@pytest.fixture
def album_id(db_engine, user, photo_root):
    with Session(db_engine) as session:
        repo = Repository(session)
        repo.insert_album_if_absent(
            title=photo_root.name, parent_id=None, owner_id=user.id, path=photo_root
        )
        new_id = repo.get_album_id(user.id, photo_root)
        repo.commit()
    return new_id


def test_process_image_registers_photo_and_thumbnail(db_engine, config, album_id, photo_root):
    image = make_image(photo_root / "beach.jpg", size=(2000, 1000))

    with Session(db_engine) as session:
        photo = process_image(session, image, album_id, "image/jpeg", config)
        session.commit()
        photo_id = photo.id
        assert photo.title == "beach.jpg"
        assert photo.thumbnail_generated is True

    thumb = photo_cache_dir(config.cache_dir, album_id, photo_id) / THUMBNAIL_NAME
    assert thumb.is_file()
    with Image.open(thumb) as im:
        assert max(im.size) <= config.thumbnails.width
    assert not (thumb.parent / HIGHRES_NAME).exists()


def test_process_image_is_a_noop_for_known_photo(db_engine, config, album_id, photo_root):
    image = make_image(photo_root / "beach.jpg")

    with Session(db_engine) as session:
        first = process_image(session, image, album_id, "image/jpeg", config)
        session.commit()
        first_id = first.id
    with Session(db_engine) as session:
        second = process_image(session, image, album_id, "image/jpeg", config)
        session.commit()
        assert second.id == first_id
        assert len(Repository(session).get_photos_for_album(album_id)) == 1


def test_non_web_format_gets_highres_copy(db_engine, config, album_id, photo_root):
    image = make_image(photo_root / "scan.tif", fmt="TIFF")

    with Session(db_engine) as session:
        photo = process_image(session, image, album_id, "image/tiff", config)
        session.commit()
        target = photo_cache_dir(config.cache_dir, album_id, photo.id)

    assert (target / THUMBNAIL_NAME).is_file()
    assert (target / HIGHRES_NAME).is_file()


def test_undecodable_photo_is_kept_without_thumbnail(db_engine, config, album_id, photo_root):
    raw = photo_root / "IMG_0001.CR2"
    raw.write_bytes(b"II*\x00\x10\x00\x00\x00CR\x02\x00" + b"\x00" * 300)

    with Session(db_engine) as session:
        photo = process_image(session, raw, album_id, "image/x-canon-cr2", config)
        session.commit()
        assert photo.id is not None
        assert photo.thumbnail_generated is False


def test_generate_thumbnails_renders_missing(db_engine, config, album_id, photo_root):
    image = make_image(photo_root / "late.png", fmt="PNG")
    with Session(db_engine) as session:
        repo = Repository(session)
        photo = repo.add_photo(album_id=album_id, path=image, content_type="image/png")
        repo.commit()
        photo_id = photo.id

    assert generate_thumbnails(config) == 1
    assert (photo_cache_dir(config.cache_dir, album_id, photo_id) / THUMBNAIL_NAME).is_file()
    assert generate_thumbnails(config) == 0


def test_cleanup_orphaned_cache(db_engine, config, album_id):
    kept = album_cache_dir(config.cache_dir, album_id)
    kept.mkdir(parents=True)
    orphan = album_cache_dir(config.cache_dir, album_id + 100)
    (orphan / "1").mkdir(parents=True)
    stray = config.cache_dir / "not-an-album"
    stray.mkdir()

    assert cleanup_orphaned_cache(config) == 2
    assert kept.is_dir()
    assert not orphan.exists()
    assert not stray.exists()


def test_delete_album_cache_missing_folder_counts_as_removed(tmp_path):
    assert delete_album_cache(42, tmp_path / "image-cache") is True


def test_delete_album_cache_removes_tree(tmp_path):
    cache_dir = tmp_path / "image-cache"
    (album_cache_dir(cache_dir, 7) / "3").mkdir(parents=True)
    (album_cache_dir(cache_dir, 7) / "3" / THUMBNAIL_NAME).write_bytes(b"x")

    assert delete_album_cache(7, cache_dir) is True
    assert not Path(album_cache_dir(cache_dir, 7)).exists()
