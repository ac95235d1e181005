"""Filesystem scanner for Photoview.

Syncs a user's photo root into the database:

- breadth-first walk from the root, one album per directory that holds
  (at any depth) a supported image
- one transaction per album and one per photo, never one for the scan
- reconciliation at the end: albums whose directory was not visited are
  deleted along with their image-cache folder

Scans are triggered per user and run on a background thread.
"""

from __future__ import annotations

import dataclasses
from collections import deque
from pathlib import Path
from threading import Lock, Thread, current_thread
from typing import Collection, Dict, List, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .config import PhotoviewConfig
from .containment import (
    ContainmentCache,
    directory_contains_photos,
    is_directory,
    list_directory,
    should_ignore,
)
from .database import get_engine
from .filetypes import TypeDetectionCache
from .logging_config import get_logger
from .models import User
from .processing import process_image
from .repository import Repository
from .utils import delete_album_cache, short_path

logger = get_logger(__name__)


class ScanAborted(RuntimeError):
    """A scan run hit a fatal error and stopped. Committed rows are kept."""


class UserNotFoundError(LookupError):
    """The user id given to a scan trigger does not exist."""


class ScanTask(NamedTuple):
    path: Path
    parent_id: Optional[int] = None


@dataclasses.dataclass
class ScanResult:
    albums: int = 0
    photos: int = 0
    photos_failed: int = 0
    deleted: int = 0
    aborted: bool = False
    scanned_paths: List[str] = dataclasses.field(default_factory=list)


def _album_title(album_path: Path) -> str:
    # A root of "/" has no final component
    return album_path.name or str(album_path)


def _upsert_album(user: User, album_path: Path, parent_id: Optional[int]) -> int:
    """Create the album for a directory if missing and return its id."""
    with Session(get_engine()) as session:
        repo = Repository(session)
        try:
            repo.insert_album_if_absent(
                title=_album_title(album_path),
                parent_id=parent_id,
                owner_id=user.id,
                path=album_path,
            )
            album_id = repo.get_album_id(user.id, album_path)
            if album_id is not None:
                repo.commit()
        except (SQLAlchemyError, UnicodeError) as exc:
            repo.rollback()
            raise ScanAborted(f"Could not store album {album_path}: {exc}") from exc

    if album_id is None:
        raise ScanAborted(f"Could not get id of album {album_path}")
    return album_id


def _process_photo(
    user: User,
    photo_path: Path,
    album_id: int,
    type_cache: TypeDetectionCache,
    config: PhotoviewConfig,
) -> bool:
    """Hand one classified image to the processing step in its own transaction.

    Returns False when processing failed and the photo was skipped.
    """
    content_type = type_cache.lookup(photo_path)
    if content_type is None:
        raise ScanAborted(f"Content type of {photo_path} not found in cache")

    with Session(get_engine()) as session:
        try:
            process_image(session, photo_path, album_id, content_type, config)
            session.commit()
        except Exception as exc:
            session.rollback()
            if config.scanner.abort_on_photo_error:
                raise ScanAborted(f"Processing image {photo_path} failed: {exc}") from exc
            logger.error(
                f"✗ {short_path(photo_path)} - processing failed for user "
                f"'{user.username}', skipped: {exc}"
            )
            return False
    return True


def scan_albums(
    user: User,
    config: PhotoviewConfig,
    type_cache: TypeDetectionCache,
    containment_cache: ContainmentCache,
    result: ScanResult,
) -> ScanResult:
    """Walk the user's root breadth-first, storing albums and photos.

    Every visited directory is appended to `result.scanned_paths`.
    Raises ScanAborted on a listing failure or a failed album transaction.
    """
    ignore_patterns = config.scanner.ignore_patterns
    queue = deque([ScanTask(Path(user.root_path))])

    while queue:
        album_path, parent_id = queue.popleft()
        result.scanned_paths.append(str(album_path))

        try:
            entries = list_directory(album_path)
        except OSError as exc:
            raise ScanAborted(f"Could not read directory {album_path}: {exc}") from exc

        entries = [e for e in entries if not should_ignore(e.name, ignore_patterns)]
        logger.info(f"[SCAN] {album_path} ({len(entries)} entries)")

        album_id = _upsert_album(user, album_path, parent_id)
        result.albums += 1

        for entry in entries:
            if is_directory(entry):
                continue
            photo_path = album_path / entry.name
            if not type_cache.classify(photo_path):
                continue
            if _process_photo(user, photo_path, album_id, type_cache, config):
                result.photos += 1
            else:
                result.photos_failed += 1

        for entry in entries:
            if not is_directory(entry):
                continue
            subalbum_path = album_path / entry.name
            if directory_contains_photos(
                subalbum_path, containment_cache, type_cache, ignore_patterns
            ):
                queue.append(ScanTask(subalbum_path, album_id))

    return result


def cleanup_albums(
    scanned_paths: Collection[str], user: User, config: PhotoviewConfig
) -> int:
    """Delete the user's albums whose path was not visited by this scan.

    Each stale album's cache folder is removed first; a removal failure is
    logged and the row is deleted anyway. Returns how many cache folders
    were removed.
    """
    if not scanned_paths:
        return 0

    deleted_albums = 0
    with Session(get_engine()) as session:
        repo = Repository(session)
        try:
            stale_ids = repo.get_stale_album_ids(user.id, set(scanned_paths))
        except (SQLAlchemyError, UnicodeError) as exc:
            logger.error(f"Could not get albums of user '{user.username}' from database: {exc}")
            return 0

        for album_id in stale_ids:
            if delete_album_cache(album_id, config.cache_dir):
                deleted_albums += 1

        if stale_ids:
            try:
                repo.delete_albums(stale_ids)
                repo.commit()
            except (SQLAlchemyError, UnicodeError) as exc:
                repo.rollback()
                logger.error(
                    f"Could not delete old albums of user '{user.username}' from database: {exc}"
                )

    logger.info(f"Deleted {deleted_albums} unused albums from cache")
    return deleted_albums


def run_scan(user: User, config: PhotoviewConfig) -> ScanResult:
    """Run one complete scan for a user: traversal, then reconciliation.

    Both caches live only for this call. An aborted traversal skips
    reconciliation, since its visited set is incomplete.
    """
    type_cache = TypeDetectionCache()
    containment_cache = ContainmentCache()
    result = ScanResult()

    try:
        scan_albums(user, config, type_cache, containment_cache, result)
    except ScanAborted as exc:
        result.aborted = True
        logger.error(
            f"Scan for user '{user.username}' aborted after {result.albums} albums: {exc}"
        )
        return result

    result.deleted = cleanup_albums(result.scanned_paths, user, config)
    logger.info(
        f"Done scanning for user '{user.username}': {result.albums} albums, "
        f"{result.photos} photos, {result.photos_failed} failed, "
        f"{result.deleted} albums removed."
    )
    return result


class ScanDispatcher:
    """Starts background scans, at most one at a time per user.

    Scans cannot be cancelled once started; the returned thread is only a
    handle for callers that want to wait.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._running: Dict[int, Thread] = {}

    def is_running(self, user_id: int) -> bool:
        with self._lock:
            worker = self._running.get(user_id)
            return worker is not None and worker.is_alive()

    def scan_user(self, user_id: int, config: PhotoviewConfig) -> Thread:
        """Start a scan for `user_id` and return its thread immediately.

        Raises UserNotFoundError if the user does not exist. If a scan for
        the same user is still running, that scan's thread is returned and
        nothing new is started.
        """
        with Session(get_engine()) as session:
            user = Repository(session).get_user(user_id)

        if user is None:
            logger.error(f"Could not find user to scan: {user_id}")
            raise UserNotFoundError(f"User {user_id} not found")

        with self._lock:
            running = self._running.get(user.id)
            if running is not None and running.is_alive():
                logger.warning(f"Scan already running for user '{user.username}'")
                return running

            worker = Thread(
                target=self._run,
                args=(user, config),
                daemon=True,
                name=f"PhotoviewScan-{user.id}",
            )
            self._running[user.id] = worker
            logger.info(f"Starting scan for user '{user.username}'")
            worker.start()

        return worker

    def _run(self, user: User, config: PhotoviewConfig) -> None:
        try:
            run_scan(user, config)
        except Exception as exc:
            logger.exception(f"Unexpected error while scanning for user '{user.username}': {exc}")
        finally:
            with self._lock:
                if self._running.get(user.id) is current_thread():
                    del self._running[user.id]


_dispatcher = ScanDispatcher()


def scan_user(user_id: int, config: PhotoviewConfig) -> Thread:
    """Trigger a background scan through the process-wide dispatcher."""
    return _dispatcher.scan_user(user_id, config)
