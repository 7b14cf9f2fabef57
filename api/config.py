"""
Application configuration from environment variables
"""
from pydantic_settings import BaseSettings
from typing import List, Optional
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Keys
    GEMINI_API_KEY: str = ""

    # LLM Settings
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_URL_TEMPLATE: str = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    LLM_TIMEOUT_SECONDS: Optional[float] = 120.0

    # Prompt sampling
    SAMPLE_ROWS: int = 10

    # Directories
    LOGS_DIR: str = "./logs"
    SESSION_LOGS_ENABLED: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Limits
    MAX_FILE_SIZE_MB: int = 10
    MAX_SESSIONS: int = 100

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def ensure_directories(self):
        """Create required directories if they don't exist"""
        Path(self.LOGS_DIR).mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
