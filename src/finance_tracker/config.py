"""Application configuration via pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars from other projects
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # API settings
    api_prefix: str = "/api"

    # Database settings
    database_url: str | None = None  # Full URL takes precedence
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "finance_tracker"
    database_user: str = "finance_tracker"
    database_password: str = ""

    # Savings settings
    savings_history_page_size: int = Field(default=20, ge=1, le=100)
    savings_recent_count: int = 5
    savings_statistics_months: int = 6

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy and Alembic."""
        if self.database_url:
            # Convert postgres:// to postgresql+asyncpg://
            url = self.database_url
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def has_database(self) -> bool:
        """Check if database is configured."""
        return bool(self.database_url or self.database_password)


settings = Settings()
