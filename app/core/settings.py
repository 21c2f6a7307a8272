"""Configuration and environment settings for the Contracts Ledger API."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the Contracts Ledger API."""

    database_url: str = "sqlite:///./database.sqlite3"
    sql_echo: bool = False
    server_host: str = "127.0.0.1"
    server_port: int = 3001
    log_dir: str = "logs"
    log_level: str = "INFO"
    deposit_limit_ratio: Decimal = Decimal("0.25")
    max_conflict_retries: int = 3

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
