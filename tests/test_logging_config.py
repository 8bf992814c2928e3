"""Tests for logging setup and log rotation."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from rolltables.logging_config import cleanup_logs, setup_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestCleanupLogs:
    def test_keeps_newest_files(self, tmp_path: Path) -> None:
        for age in range(5):
            path = tmp_path / f"{age}.log"
            path.write_text("log", encoding="utf-8")
            mtime = 1_700_000_000 - age * 60
            os.utime(path, (mtime, mtime))

        removed = cleanup_logs(tmp_path, max_log_count=2)

        assert removed == 3
        assert sorted(path.name for path in tmp_path.iterdir()) == ["0.log", "1.log"]

    def test_nothing_to_remove(self, tmp_path: Path) -> None:
        (tmp_path / "only.log").write_text("log", encoding="utf-8")
        assert cleanup_logs(tmp_path, max_log_count=10) == 0

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert cleanup_logs(tmp_path / "missing", max_log_count=1) == 0


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    def test_writes_records_to_file(self, tmp_path: Path) -> None:
        log_file = setup_logging(tmp_path / "logs", level="WARNING")

        logging.getLogger("rolltables.test").debug("Getting tables...")

        assert log_file.parent == tmp_path / "logs"
        assert log_file.suffix == ".log"
        contents = log_file.read_text(encoding="utf-8")
        assert "[DEBUG] - Getting tables..." in contents

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path: Path) -> None:
        setup_logging(tmp_path, level="INFO")
        count = len(logging.getLogger().handlers)

        setup_logging(tmp_path, level="INFO")

        assert len(logging.getLogger().handlers) == count
