"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class BlogDefaults(BaseModel):
    """Values written to the settings table when a blog is first set up."""

    title: str = Field(default="My Blog", description="Blog title")
    description: str = Field(default="Just another Blog", description="Blog description")
    logo: str = Field(default="/public/images/blog-logo.jpg", description="Logo image path")
    cover: str = Field(default="/public/images/blog-cover.jpg", description="Cover image path")
    posts_per_page: int = Field(default=5, ge=1, description="Posts shown per index page")
    active_theme: str = Field(default="promenade", description="Name of the active theme")
    navigation: str = Field(
        default='[{"label":"Home","url":"/"}]',
        description="Navigation items as a JSON array",
    )


class Settings(BaseSettings):
    """Application settings with environment-based configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INKWELL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///inkwell.db",
        description="Database connection URL",
    )
    test_database_url: Optional[str] = Field(
        default=None,
        description="Test database connection URL",
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        description="Connection pool size for server databases",
    )
    max_overflow: int = Field(
        default=10,
        ge=0,
        description="Connections allowed above pool_size under load",
    )
    pool_recycle: int = Field(
        default=3600,
        description="Seconds after which pooled connections are recycled",
    )

    # Blog
    blog_defaults: BlogDefaults = Field(
        default_factory=BlogDefaults,
        description="Initial values for the blog settings keys",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = {"development", "testing", "production"}
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL based on environment."""
        if self.is_testing and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def is_sqlite(self) -> bool:
        """Check whether the effective database is SQLite."""
        return self.effective_database_url.startswith("sqlite")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def override_settings(**kwargs) -> Settings:
    """Create a settings instance with overrides (useful for testing)."""
    return Settings(**kwargs)
