"""Data Access Layer for Photoview.

Encapsulates database operations using SQLModel/SQLAlchemy. Callers own
the session and decide when to commit, so every scan step can run in its
own transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Collection, List, Optional

from sqlalchemy import delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select, col, func

from .models import Album, Photo, User


class Repository:
    """Data access layer keyed by absolute path strings."""

    def __init__(self, session: Session):
        self.session = session

    def commit(self) -> None:
        """Commit the current transaction. Callers control when to commit."""
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    # --- Users ---

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def create_user(self, username: str, root_path: Path) -> User:
        user = User(username=username, root_path=str(root_path))
        self.session.add(user)
        self.session.flush()
        self.session.refresh(user)
        return user

    def list_users(self) -> List[User]:
        return self.session.exec(select(User).order_by(User.id)).all()

    # --- Albums ---

    def insert_album_if_absent(
        self,
        *,
        title: str,
        parent_id: Optional[int],
        owner_id: int,
        path: Path,
    ) -> None:
        """Insert an album row unless (owner_id, path) already exists.

        An existing row is left untouched, including its parent_id.
        """
        statement = (
            sqlite_insert(Album)
            .values(
                title=title,
                parent_id=parent_id,
                owner_id=owner_id,
                path=str(path),
                created_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["owner_id", "path"])
        )
        self.session.execute(statement)

    def get_album_id(self, owner_id: int, path: Path) -> Optional[int]:
        statement = select(Album.id).where(
            Album.owner_id == owner_id, Album.path == str(path)
        )
        return self.session.exec(statement).first()

    def get_albums_for_owner(self, owner_id: int) -> List[Album]:
        return self.session.exec(
            select(Album).where(Album.owner_id == owner_id).order_by(Album.path)
        ).all()

    def get_stale_album_ids(
        self, owner_id: int, scanned_paths: Collection[str]
    ) -> List[int]:
        """Return ids of the owner's albums whose path is not in scanned_paths."""
        statement = select(Album.id).where(
            Album.owner_id == owner_id,
            col(Album.path).not_in(list(scanned_paths)),
        )
        return self.session.exec(statement).all()

    def delete_albums(self, album_ids: Collection[int]) -> None:
        """Delete albums (and their photos) by id, one statement each."""
        ids = list(album_ids)
        if not ids:
            return
        self.session.execute(delete(Photo).where(col(Photo.album_id).in_(ids)))
        self.session.execute(delete(Album).where(col(Album.id).in_(ids)))

    def get_all_album_ids(self) -> set[int]:
        """Return every album id (for orphan cache cleanup)."""
        return set(self.session.exec(select(Album.id)).all())

    # --- Photos ---

    def get_photo(self, album_id: int, path: Path) -> Optional[Photo]:
        statement = select(Photo).where(
            Photo.album_id == album_id, Photo.path == str(path)
        )
        return self.session.exec(statement).first()

    def add_photo(
        self, *, album_id: int, path: Path, content_type: str
    ) -> Photo:
        photo = Photo(
            title=path.name,
            path=str(path),
            content_type=content_type,
            album_id=album_id,
        )
        self.session.add(photo)
        self.session.flush()
        self.session.refresh(photo)
        return photo

    def set_thumbnail_generated(self, photo: Photo, generated: bool = True) -> None:
        photo.thumbnail_generated = generated
        self.session.add(photo)
        self.session.flush()

    def get_photos_for_album(self, album_id: int) -> List[Photo]:
        return self.session.exec(
            select(Photo).where(Photo.album_id == album_id).order_by(Photo.path)
        ).all()

    def get_all_photos(self) -> List[Photo]:
        return self.session.exec(select(Photo)).all()

    def get_photos_missing_thumbnails(self) -> List[Photo]:
        return self.session.exec(
            select(Photo).where(Photo.thumbnail_generated == False)  # noqa: E712
        ).all()

    # --- Statistics ---

    def count_users(self) -> int:
        return self.session.exec(select(func.count()).select_from(User)).one()

    def count_albums(self) -> int:
        return self.session.exec(select(func.count()).select_from(Album)).one()

    def count_photos(self, thumbnails_only: bool = False) -> int:
        statement = select(func.count()).select_from(Photo)
        if thumbnails_only:
            statement = statement.where(Photo.thumbnail_generated == True)  # noqa: E712
        return self.session.exec(statement).one()
