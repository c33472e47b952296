from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path

# Get the project root directory (parent of lexilearn folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'lexilearn.db'}"

    # Seed generation
    seed_random: Optional[int] = None  # fixed seed for reproducible demo data
    seed_on_startup: bool = True

    log_level: str = "INFO"

    # History list previews are cut to this many characters
    preview_length: int = 150

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_prefix = "LEXILEARN_"

settings = Settings()
