"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    # Database
    database_url: str = "sqlite:///./crud_service.db"
    database_echo: bool = False  # Log SQL through the "sqlalchemy.engine" logger
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30  # Seconds to wait for a pooled connection
    database_pool_recycle: int = 1800  # Recycle connections after 30 minutes
    database_query_cache_size: int = 500

    # ORM bootstrap: modules holding the mapped entity classes
    orm_model_modules: list[str] = []
    orm_base: str = "crud_api.models:Base"
    orm_create_all: bool = False

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 200

    # Exception shielding: when True the default shield logs diagnostics
    # under a correlation id instead of embedding them in error messages
    shield_log_details: bool = True

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    # Routers mounted by the default application, as "module:attribute" paths
    api_routers: list[str] = []
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Environment
    environment: str = "development"
    debug: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_production(self) -> list[str]:
        """
        Validate that settings are safe for production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            # Without a log sink, backend diagnostics end up in error messages
            if not self.shield_log_details:
                errors.append(
                    "SHIELD_LOG_DETAILS must be True in production so that "
                    "internal error details are logged instead of returned"
                )

            if self.database_url.startswith("sqlite"):
                errors.append("DATABASE_URL should not point to SQLite in production")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

# Direct access to commonly used settings
DATABASE_URL = settings.database_url
