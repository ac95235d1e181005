"""Content-type detection for photo files.

Files are classified by sniffing their first bytes, never by extension.
Positive verdicts are memoized in a TypeDetectionCache that lives for
exactly one scan run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import filetype

from .logging_config import get_logger

logger = get_logger(__name__)

# Enough bytes for every signature filetype knows about
HEADER_SIZE = 261

SUPPORTED_MIMETYPES = (
    "image/jpeg",
    "image/png",
    "image/tiff",
    "image/webp",
    "image/x-canon-cr2",
    "image/bmp",
)

# Subset of SUPPORTED_MIMETYPES a browser can display as-is
WEB_MIMETYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/bmp",
)


def read_header(path: Path, size: int = HEADER_SIZE) -> bytes:
    """Return up to `size` leading bytes of the file.

    Raises OSError if the file cannot be opened or holds no data.
    """
    with path.open("rb") as handle:
        head = handle.read(size)
    if not head:
        raise OSError(f"empty file: {path}")
    return head


def sniff_mimetype(head: bytes) -> Optional[str]:
    """Return the MIME type matched from header bytes, or None."""
    kind = filetype.guess(head)
    if kind is None:
        return None
    return kind.mime


class TypeDetectionCache:
    """Per-scan memo of path -> content type for supported images."""

    def __init__(self) -> None:
        self._types: Dict[Path, str] = {}

    def __len__(self) -> int:
        return len(self._types)

    def lookup(self, path: Path) -> Optional[str]:
        return self._types.get(path)

    def classify(self, path: Path) -> bool:
        """Return True if `path` is a supported image, caching the content type.

        Failures and unsupported types are not cached.
        """
        if path in self._types:
            return True

        try:
            head = read_header(path)
        except OSError as exc:
            logger.warning(f"Could not read file {path}: {exc}")
            return False

        mime = sniff_mimetype(head)
        if mime is None:
            return False

        if mime in SUPPORTED_MIMETYPES:
            self._types[path] = mime
            return True

        logger.info(f"Unsupported image {path} of type {mime}")
        return False
