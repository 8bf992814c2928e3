from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from rolltables.models.currency_codec import CurrencyEncoding


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ROLLTABLES_")

    app_name: str = "Roll Tables"
    debug: bool = False

    data_dir: Path = Path.home() / ".rolltables"

    # Console threshold; the log file always records everything
    log_level: str = "INFO"
    max_log_count: int = 10

    # Encoding written to table files. Reading accepts every encoding.
    currency_encoding: CurrencyEncoding = CurrencyEncoding.FIXED

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"


settings = Settings()
