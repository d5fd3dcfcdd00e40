"""
Application configuration using pydantic-settings.
Loads values from .env file in project root.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database settings
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "beetagged"
    db_user: str = "beetagged"
    db_password: str = ""
    # Full SQLAlchemy URL, overrides the db_* fields when set (e.g. sqlite://)
    db_url: str = ""

    # Per-call timeout for store operations
    store_timeout_seconds: int = 10

    # Application settings
    debug: bool = False
    log_level: str = "INFO"
    create_schema_on_startup: bool = False

    # Import settings
    max_upload_bytes: int = 5 * 1024 * 1024

    # Search settings
    search_result_limit: int = 50
    search_vocabulary_path: str = ""

    # Facebook Graph API settings
    facebook_graph_url: str = "https://graph.facebook.com/v18.0"
    facebook_timeout_seconds: float = 15.0
    facebook_max_friends: int = 500

    @property
    def database_url(self) -> str:
        """Generate SQLAlchemy database URL."""
        if self.db_url:
            return self.db_url
        return (
            f"postgresql+psycopg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def is_postgres(self) -> bool:
        """Check if the configured database is PostgreSQL."""
        return self.database_url.startswith("postgresql")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
