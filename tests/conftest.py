from pathlib import Path

import pytest
from PIL import Image
from sqlmodel import Session

from photoview.config import CacheConfig, PhotoviewConfig, ScannerConfig
from photoview.database import init_db, make_engine
from photoview.repository import Repository


def make_image(path: Path, fmt: str = "JPEG", size=(16, 16)) -> Path:
    """Write a small real image so content sniffing sees a genuine header."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color="red").save(path, format=fmt)
    return path


def load_user(user_id: int):
    from photoview.database import get_engine

    with Session(get_engine()) as session:
        return Repository(session).get_user(user_id)


@pytest.fixture
def db_engine(tmp_path, monkeypatch):
    # Point DB_PATH and engine to a temp file
    db_file = tmp_path / "photoview.db"
    monkeypatch.setattr("photoview.database.DB_PATH", db_file, raising=True)
    test_engine = make_engine(f"sqlite:///{db_file}")
    monkeypatch.setattr("photoview.database.engine", test_engine, raising=True)
    init_db()
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def config(tmp_path) -> PhotoviewConfig:
    return PhotoviewConfig(
        cache=CacheConfig(path=tmp_path / "image-cache"),
        scanner=ScannerConfig(),
    )


@pytest.fixture
def photo_root(tmp_path) -> Path:
    root = tmp_path / "photos"
    root.mkdir()
    return root


@pytest.fixture
def user(db_engine, photo_root):
    with Session(db_engine) as session:
        repo = Repository(session)
        created = repo.create_user("alice", photo_root)
        repo.commit()
        user_id = created.id
    return load_user(user_id)
