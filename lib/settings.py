"""
Settings module - Pydantic env configuration
Every field has a fallback, so loading never fails
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # App
    environment: str = "unknown"
    port: str = "8080"
    log_level: str = "INFO"

    # Database (connection descriptor, kept as strings)
    db_host: str = "localhost"
    db_port: str = "5432"
    db_name: str = "appdb"
    db_user: str = "appuser"
    db_password: str = ""
    db_sslmode: str = "require"

    # Pool
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_max_lifetime_seconds: float = 30 * 60
    db_max_idle_seconds: float = 5 * 60
    db_connect_timeout: float = 10.0
    db_acquire_timeout: float = 5.0
    db_command_timeout: float = 30.0
    db_init_retry_seconds: float = 5.0

    # Probes / lifecycle
    health_ping_timeout: float = 3.0
    shutdown_timeout: int = 10

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_ignore_empty": True,
        "extra": "ignore",
        "frozen": True,
    }

    def describe_db(self) -> str:
        """user@host/name, safe to log"""
        return f"{self.db_user}@{self.db_host}/{self.db_name}"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
