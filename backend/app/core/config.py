from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Configuration
    DEBUG: bool = False
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Exam Question Import Service"

    # Database Configuration (Prisma reads the same variable)
    DATABASE_URL: Optional[str] = None

    # CORS and Security
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1", "*"]

    # File Upload
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Import previews held in memory
    IMPORT_SESSION_TTL_MINUTES: int = 120
    MAX_ACTIVE_IMPORTS: int = 50

    # Document question extraction ("heuristic" or "openai")
    EXTRACTION_MODE: str = "heuristic"
    OPENAI_API_KEY: Optional[str] = None
    CHAT_MODEL: str = "gpt-4o-mini"
    EXTRACTION_TEXT_LIMIT: int = 5000
    EXTRACTION_TIMEOUT: float = 60.0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Initialize settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance"""
    return settings


def validate_settings():
    """
    Validate critical settings are properly configured.
    Called during application startup.
    """
    errors = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not configured")

    if settings.EXTRACTION_MODE not in ("heuristic", "openai"):
        errors.append(f"EXTRACTION_MODE must be 'heuristic' or 'openai', got '{settings.EXTRACTION_MODE}'")

    if settings.EXTRACTION_MODE == "openai" and not settings.OPENAI_API_KEY:
        errors.append("OPENAI_API_KEY is required when EXTRACTION_MODE is 'openai'")

    if settings.MAX_FILE_SIZE <= 0:
        errors.append("MAX_FILE_SIZE must be positive")

    if settings.IMPORT_SESSION_TTL_MINUTES <= 0 or settings.MAX_ACTIVE_IMPORTS <= 0:
        errors.append("IMPORT_SESSION_TTL_MINUTES and MAX_ACTIVE_IMPORTS must be positive")

    if errors:
        error_msg = "\n".join([f"  - {error}" for error in errors])
        raise ValueError(f"Configuration errors:\n{error_msg}")

    return True
