"""
Configuration for the loader

Values come from environment variables (or a local .env file). The
variable names match the field names, case-insensitively.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoaderConfig(BaseSettings):
    """Loader configuration"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Local archive cache
    data_dir: Path = Path("data")

    # ClickHouse connection
    clickhouse_addr: str = "localhost:9000"
    clickhouse_db: str = "default"
    clickhouse_username: str = ""
    clickhouse_password: str = ""

    # Meteostat bulk API
    meteostat_base_url: str = "https://bulk.meteostat.net/v2"
    request_timeout: int = 60

    # Import tuning
    batch_size: int = 250
    log_interval: int = 100_000

    log_level: str = "INFO"

    @field_validator("batch_size", "log_interval")
    @classmethod
    def _must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @property
    def clickhouse_host(self) -> str:
        """Host part of CLICKHOUSE_ADDR"""
        host, _, _ = self.clickhouse_addr.rpartition(":")
        return host or self.clickhouse_addr

    @property
    def clickhouse_port(self) -> int:
        """Port part of CLICKHOUSE_ADDR (native protocol default 9000)"""
        host, _, port = self.clickhouse_addr.rpartition(":")
        if not host or not port.isdigit():
            return 9000
        return int(port)


@lru_cache
def get_config() -> LoaderConfig:
    """Get loader configuration instance"""
    return LoaderConfig()
