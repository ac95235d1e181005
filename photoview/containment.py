"""Directory containment probing.

Answers "does this directory, at any depth, hold a supported image?" with
a breadth-first search, memoizing every answer in a ContainmentCache that
lives for one scan run. One positive hit proves the whole ancestor chain
up to the probe root, so it is written for all of them at once.
"""

from __future__ import annotations

import os
from collections import deque
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .filetypes import TypeDetectionCache
from .logging_config import get_logger

logger = get_logger(__name__)


def _has_storable_name(entry: os.DirEntry) -> bool:
    try:
        entry.name.encode("utf-8")
    except UnicodeEncodeError:
        logger.warning(f"Skipping {entry.path!r}: name is not valid UTF-8")
        return False
    return True


def list_directory(path: Path) -> List[os.DirEntry]:
    """Return the direct entries of `path`, sorted by name.

    Entries whose name is not valid UTF-8 cannot be stored as album or
    photo paths, so they are logged and left out.
    Raises OSError if the directory cannot be listed.
    """
    with os.scandir(path) as entries:
        kept = [entry for entry in entries if _has_storable_name(entry)]
    return sorted(kept, key=lambda entry: entry.name)


def should_ignore(name: str, ignore_patterns: Iterable[str]) -> bool:
    """Check if file/folder should be ignored based on patterns or macOS temp files."""
    if name.startswith("._"):
        return True
    return name in ignore_patterns


def is_directory(entry: os.DirEntry) -> bool:
    # Symlinked directories count as files, so link cycles are never walked
    return entry.is_dir(follow_symlinks=False)


class ContainmentCache:
    """Per-scan memo of directory path -> contains a supported image."""

    def __init__(self) -> None:
        self._contains: Dict[Path, bool] = {}

    def __len__(self) -> int:
        return len(self._contains)

    def lookup(self, path: Path) -> Optional[bool]:
        return self._contains.get(path)

    def insert(self, path: Path, contains_photo: bool) -> None:
        self._contains[path] = contains_photo

    def insert_ancestors(self, path: Path, root: Path, contains_photo: bool) -> None:
        """Mark `path` and each of its ancestors up to and including `root`."""
        current = path
        while True:
            self.insert(current, contains_photo)
            if current == root or current.parent == current:
                break
            current = current.parent


def directory_contains_photos(
    root: Path,
    containment_cache: ContainmentCache,
    type_cache: TypeDetectionCache,
    ignore_patterns: Iterable[str] = (),
) -> bool:
    """Return True if any directory under `root` (inclusive) holds a supported image.

    Stops at the first image found. An exhausted search marks every visited
    directory as empty. A listing failure returns False and caches nothing,
    so the directory is probed again by the next scan.
    """
    cached = containment_cache.lookup(root)
    if cached is not None:
        return cached

    queue = deque([root])
    scanned: List[Path] = []

    while queue:
        dir_path = queue.popleft()
        scanned.append(dir_path)

        try:
            entries = list_directory(dir_path)
        except OSError as exc:
            logger.warning(f"Could not read directory {dir_path}: {exc}")
            return False

        for entry in entries:
            if should_ignore(entry.name, ignore_patterns):
                continue
            entry_path = dir_path / entry.name
            if is_directory(entry):
                queue.append(entry_path)
            elif type_cache.classify(entry_path):
                containment_cache.insert_ancestors(dir_path, root, True)
                return True

    for scanned_path in scanned:
        containment_cache.insert(scanned_path, False)
    return False
