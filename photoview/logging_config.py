"""Logging setup for Photoview.

All records go through the root logger. The rotating log file named by
`[logging] file` receives everything; the rich console only shows records
at or above `[logging] level`. Scans run on their own threads, so the file
format carries the thread name to tell concurrent users apart.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, List

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

if TYPE_CHECKING:
    from .config import LoggingConfig

FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"

# Pillow logs every decoder plugin it tries; SQLAlchemy echoes statements
QUIET_LOGGERS = ("PIL", "sqlalchemy.engine")

_installed: List[logging.Handler] = []


def build_handlers(logging_cfg: LoggingConfig) -> List[logging.Handler]:
    """Create the file and console handlers described by `logging_cfg`."""
    logging_cfg.file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        logging_cfg.file,
        maxBytes=logging_cfg.max_bytes,
        backupCount=logging_cfg.backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    console = Console(theme=Theme({"logging.level.info": "bold cyan"}))
    console_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(getattr(logging, logging_cfg.level.upper(), logging.INFO))

    return [file_handler, console_handler]


def setup_logging(logging_cfg: LoggingConfig) -> None:
    """Attach Photoview's handlers to the root logger. Later calls are no-ops."""
    if _installed:
        return

    _installed.extend(build_handlers(logging_cfg))
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in _installed:
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging to {logging_cfg.file}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
