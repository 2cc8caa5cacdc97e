"""Configuration management."""
import os
from dotenv import load_dotenv

from catalog_ingest.errors import ConfigurationError

# Load environment variables
load_dotenv()

# Google Books caps maxResults at 40
PAGE_SIZE = 40

DEFAULT_SEARCH_TERM = "best seller"
DEFAULT_TOTAL_BOOKS = 200

REQUIRED_VARIABLES = ("GOOGLE_BOOKS_API_KEY", "DB_HOST", "DB_PASSWORD")


class Config:
    """Application configuration, read from the process environment."""

    def __init__(self):
        # API
        self.GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")

        # Database
        self.DB_HOST = os.getenv("DB_HOST")
        self.DB_PORT = os.getenv("DB_PORT", "5432")
        self.DB_NAME = os.getenv("DB_NAME", "booksdb")
        self.DB_USER = os.getenv("DB_USER", "postgres")
        self.DB_PASSWORD = os.getenv("DB_PASSWORD")

        # Defaults
        self.DEFAULT_TIMEOUT = os.getenv("DEFAULT_TIMEOUT", "10")
        self.RATE_LIMIT_INTERVAL = os.getenv("RATE_LIMIT_INTERVAL", "1.0")
        self.INGEST_ASYNC = os.getenv("INGEST_ASYNC", "false").strip().lower() in ("1", "true", "yes")

    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def validate(self):
        """
        Fail fast on missing credentials or malformed numeric settings.

        Raises:
            ConfigurationError: naming every missing variable
        """
        missing = [name for name in REQUIRED_VARIABLES if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Set them in the environment or in a .env file.",
                missing=missing
            )

        try:
            self.DEFAULT_TIMEOUT = int(self.DEFAULT_TIMEOUT)
            self.RATE_LIMIT_INTERVAL = float(self.RATE_LIMIT_INTERVAL)
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        if self.DEFAULT_TIMEOUT <= 0 or self.RATE_LIMIT_INTERVAL < 0:
            raise ConfigurationError(
                "DEFAULT_TIMEOUT must be positive and RATE_LIMIT_INTERVAL must not be negative"
            )
        return self
