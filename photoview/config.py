"""Config management for Photoview.

Reads `config.ini` from DATA_DIR (beside main.py unless the DATA_DIR
environment variable points elsewhere).
"""

from __future__ import annotations

import configparser
import dataclasses
import os
import pathlib
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]

# DATA_DIR holds all persistent state (config.ini, photoview.db, image-cache/).
# Set via env var for Docker; defaults to PROJECT_ROOT for standalone use.
DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"

DEFAULT_IGNORE_PATTERNS = (".DS_Store", "Thumbs.db", "@eaDir")


@dataclasses.dataclass
class CacheConfig:
    path: pathlib.Path = DATA_DIR / "image-cache"


@dataclasses.dataclass
class ThumbnailConfig:
    width: int = 1024
    height: int = 1024
    quality: int = 70


@dataclasses.dataclass
class ScannerConfig:
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    # Off: a failing photo is rolled back and skipped. On: the whole scan stops.
    abort_on_photo_error: bool = False


@dataclasses.dataclass
class LoggingConfig:
    level: str = "INFO"
    file: pathlib.Path = DATA_DIR / "photoview.log"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


@dataclasses.dataclass
class PhotoviewConfig:
    cache: CacheConfig = dataclasses.field(default_factory=CacheConfig)
    thumbnails: ThumbnailConfig = dataclasses.field(default_factory=ThumbnailConfig)
    scanner: ScannerConfig = dataclasses.field(default_factory=ScannerConfig)
    logging: LoggingConfig = dataclasses.field(default_factory=LoggingConfig)

    @property
    def cache_dir(self) -> pathlib.Path:
        return self.cache.path


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _resolve(value: str) -> pathlib.Path:
    """Expand `~` and anchor a relative path at DATA_DIR."""
    path = pathlib.Path(value).expanduser()
    if not path.is_absolute():
        path = DATA_DIR / path
    return path


def load_config(config_path: Optional[pathlib.Path] = None) -> PhotoviewConfig:
    """Load configuration from config.ini.

    Defaults to `config.ini` in DATA_DIR. Relative cache and log file paths
    are resolved against DATA_DIR.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    parser = configparser.ConfigParser()
    parser.read(path)

    cache_path = _resolve(parser.get("cache", "path", fallback="image-cache"))

    thumbs = ThumbnailConfig(
        width=parser.getint("thumbnails", "width", fallback=1024),
        height=parser.getint("thumbnails", "height", fallback=1024),
        quality=parser.getint("thumbnails", "quality", fallback=70),
    )

    scanner = ScannerConfig(
        ignore_patterns=_parse_list(
            parser.get(
                "scanner",
                "ignore_patterns",
                fallback=",".join(DEFAULT_IGNORE_PATTERNS),
            )
        ),
        abort_on_photo_error=_parse_bool(
            parser.get("scanner", "abort_on_photo_error", fallback="false"), False
        ),
    )

    logging_cfg = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO").strip().upper(),
        file=_resolve(parser.get("logging", "file", fallback="photoview.log")),
        max_bytes=parser.getint("logging", "max_bytes", fallback=10 * 1024 * 1024),
        backup_count=parser.getint("logging", "backup_count", fallback=5),
    )

    return PhotoviewConfig(
        cache=CacheConfig(path=cache_path),
        thumbnails=thumbs,
        scanner=scanner,
        logging=logging_cfg,
    )


def write_default_config(config_path: Optional[pathlib.Path] = None) -> pathlib.Path:
    """Write a config.ini with default settings and create the cache folder."""
    path = config_path or DEFAULT_CONFIG_PATH
    defaults = PhotoviewConfig()

    parser = configparser.ConfigParser()
    parser["cache"] = {"path": "image-cache"}
    parser["thumbnails"] = {
        "width": str(defaults.thumbnails.width),
        "height": str(defaults.thumbnails.height),
        "quality": str(defaults.thumbnails.quality),
    }
    parser["scanner"] = {
        "ignore_patterns": ",".join(defaults.scanner.ignore_patterns),
        "abort_on_photo_error": "false",
    }
    parser["logging"] = {
        "level": defaults.logging.level,
        "file": defaults.logging.file.name,
        "max_bytes": str(defaults.logging.max_bytes),
        "backup_count": str(defaults.logging.backup_count),
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as handle:
        parser.write(handle)

    (DATA_DIR / "image-cache").mkdir(parents=True, exist_ok=True)
    logger.debug(f"Wrote default config to {path}")
    return path


_cached_config: Optional[PhotoviewConfig] = None


def get_config() -> PhotoviewConfig:
    """Return the cached config singleton. Loads from disk on first call."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reset_config_cache() -> None:
    """Clear the cached config (useful for tests)."""
    global _cached_config
    _cached_config = None
