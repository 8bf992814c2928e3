"""
Logging setup and log-file rotation.

Each run writes a new timestamped file under the configured log directory
and mirrors records at or above the configured level to stderr. Only the
most recently modified `max_log_count` files are kept.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from rolltables.config import settings

LOG_FORMAT = "[%(asctime)s][%(levelname)s] - %(message)s"
LOG_FILE_TIME_FORMAT = "%Y-%m-%d %H-%M-%S"

# Marks handlers installed here so repeated setup does not duplicate them
_HANDLER_MARKER = "_rolltables_handler"


def get_log_file(log_dir: Path) -> Path:
    return log_dir / f"{datetime.now().strftime(LOG_FILE_TIME_FORMAT)}.log"


def cleanup_logs(log_dir: Path | None = None, max_log_count: int | None = None) -> int:
    """
    Delete all but the newest log files.

    A missing log directory is not an error.

    Returns:
        Number of files removed
    """
    log_dir = log_dir or settings.log_dir
    keep = settings.max_log_count if max_log_count is None else max_log_count

    if not log_dir.is_dir():
        return 0

    files = sorted(
        (path for path in log_dir.iterdir() if path.is_file()),
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )

    removed = 0
    for path in files[keep:]:
        path.unlink()
        removed += 1
    return removed


def setup_logging(log_dir: Path | None = None, level: str | None = None) -> Path:
    """
    Configure the root logger with a file handler and a stderr handler.

    The file receives every record; stderr only records at or above
    `level` (default: settings.log_level).

    Returns:
        Path of the log file for this run
    """
    log_dir = log_dir or settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = get_log_file(log_dir)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for handler in [h for h in root.handlers if getattr(h, _HANDLER_MARKER, False)]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel((level or settings.log_level).upper())
    stderr_handler.setFormatter(formatter)

    for handler in (file_handler, stderr_handler):
        setattr(handler, _HANDLER_MARKER, True)
        root.addHandler(handler)

    return log_file
