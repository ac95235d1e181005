"""SQLModel database models for Photoview."""

from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel, Relationship


class UserBase(SQLModel):
    username: str = Field(unique=True, index=True)
    root_path: str


class User(UserBase, table=True):
    __tablename__ = "users"
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    albums: List["Album"] = Relationship(back_populates="owner")


class AlbumBase(SQLModel):
    title: str
    path: str = Field(index=True)
    owner_id: int = Field(foreign_key="users.id", index=True)
    parent_id: Optional[int] = Field(
        default=None, foreign_key="albums.id", ondelete="SET NULL"
    )


class Album(AlbumBase, table=True):
    __tablename__ = "albums"
    # path is the natural key, but only within one owner
    __table_args__ = (UniqueConstraint("owner_id", "path", name="uq_albums_owner_path"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    owner: Optional[User] = Relationship(back_populates="albums")
    parent: Optional["Album"] = Relationship(
        back_populates="children",
        sa_relationship_kwargs={"remote_side": "Album.id"}
    )
    children: List["Album"] = Relationship(back_populates="parent")
    photos: List["Photo"] = Relationship(back_populates="album")


class PhotoBase(SQLModel):
    title: str
    path: str = Field(index=True)
    content_type: str
    thumbnail_generated: bool = False
    album_id: int = Field(foreign_key="albums.id", ondelete="CASCADE", index=True)


class Photo(PhotoBase, table=True):
    __tablename__ = "photos"
    __table_args__ = (UniqueConstraint("album_id", "path", name="uq_photos_album_path"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    album: Optional[Album] = Relationship(back_populates="photos")
