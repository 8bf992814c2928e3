"""Tests for application settings."""

from pathlib import Path

import pytest

from rolltables.config import Settings
from rolltables.models.currency_codec import CurrencyEncoding


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.currency_encoding is CurrencyEncoding.FIXED
        assert settings.max_log_count == 10
        assert settings.log_level == "INFO"

    def test_log_dir_is_under_data_dir(self, tmp_path: Path) -> None:
        settings = Settings(_env_file=None, data_dir=tmp_path)
        assert settings.log_dir == tmp_path / "logs"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROLLTABLES_CURRENCY_ENCODING", "plain")
        monkeypatch.setenv("ROLLTABLES_MAX_LOG_COUNT", "3")

        settings = Settings(_env_file=None)

        assert settings.currency_encoding is CurrencyEncoding.PLAIN
        assert settings.max_log_count == 3
