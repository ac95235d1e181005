"""Tests for the handlers built from the [logging] section."""

import logging
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

from photoview.config import LoggingConfig
from photoview.logging_config import build_handlers


def test_handlers_follow_logging_config(tmp_path):
    log_file = tmp_path / "logs" / "scans.log"
    cfg = LoggingConfig(level="warning", file=log_file, max_bytes=2048, backup_count=2)

    handlers = build_handlers(cfg)
    try:
        file_handler, console_handler = handlers
        assert isinstance(file_handler, RotatingFileHandler)
        assert file_handler.baseFilename == str(log_file)
        assert file_handler.maxBytes == 2048
        assert file_handler.backupCount == 2
        assert file_handler.level == logging.DEBUG
        assert isinstance(console_handler, RichHandler)
        assert console_handler.level == logging.WARNING
        assert log_file.parent.is_dir()
    finally:
        for handler in handlers:
            handler.close()


def test_file_records_carry_thread_name(tmp_path):
    log_file = tmp_path / "photoview.log"
    file_handler = build_handlers(LoggingConfig(file=log_file))[0]
    record = logging.LogRecord("photoview.scanner", logging.INFO, __file__, 1, "[SCAN] /photos", None, None)
    record.threadName = "PhotoviewScan-7"

    try:
        file_handler.handle(record)
    finally:
        file_handler.close()

    line = log_file.read_text(encoding="utf-8")
    assert "[PhotoviewScan-7] photoview.scanner: [SCAN] /photos" in line
