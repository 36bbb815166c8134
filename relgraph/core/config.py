"""
Application configuration settings.

This file loads settings from environment variables.
For local development, create a .env file next to the desktop database.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Attributes:
        DATABASE_URL: SQLAlchemy async connection string for the local store
        APP_NAME: Name of the application
        DEBUG: Echo SQL statements (True for development)
        LOG_LEVEL: Root log level for the engine loggers
    """

    # Database connection string
    # Format: sqlite+aiosqlite:///path/to/file.db (the desktop store)
    DATABASE_URL: str = "sqlite+aiosqlite:///./relgraph.db"

    # Application settings
    APP_NAME: str = "Relationship Graph Engine"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Create missing tables on startup (desktop first run); alembic owns upgrades
    AUTO_CREATE_SCHEMA: bool = False

    # Resolution defaults (override via env)
    CONTACT_AUTOLINK_LIMIT: int = 5000
    MEETING_LINK_CONFIDENCE: float = 0.7
    EMAIL_CONTACT_LINK_CONFIDENCE: float = 0.95

    class Config:
        # Load variables from .env file if it exists
        env_file = ".env"
        env_file_encoding = "utf-8"


# Default settings instance; the store and services accept their own
settings = Settings()
