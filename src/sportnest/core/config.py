"""Core configuration management using pydantic-settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"

    # Database
    database_url: str = "sqlite+aiosqlite:///./sportnest.db"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    # Schema of the users bounded context. Unset for SQLite, which has no schemas.
    database_schema: str | None = None
    users_context_name: str = "users"

    # Search
    search_language: str = "german"

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 1000

    # Valkey/Redis
    valkey_url: str = "redis://localhost:6379/0"
    user_cache_ttl_seconds: int = 300

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 1
    cors_origins: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    # Echo SQL statements through the sqlalchemy.engine logger
    log_sql: bool = False

    # OpenTelemetry
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    otel_service_name: str = "sportnest-api"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def database_system(self) -> str:
        """Database backend name taken from the URL scheme (e.g. "postgresql")."""
        return self.database_url.split(":", 1)[0].split("+", 1)[0]


# Global settings instance
settings = Settings()
