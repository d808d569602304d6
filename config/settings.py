"""
Entity Link Engine - Configuration

Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = Field(
        default=f"sqlite:///{PROJECT_ROOT}/data/entity_links.db"
    )

    @property
    def project_root(self) -> Path:
        """Return project root directory."""
        return PROJECT_ROOT

    # Application
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Review queue export (CSV of low-confidence links)
    REVIEW_QUEUE_PATH: str = Field(
        default=str(PROJECT_ROOT / "data" / "review_queue.csv")
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
