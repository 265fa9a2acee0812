"""Application settings using Pydantic BaseSettings."""
from pydantic_settings import BaseSettings
from typing import Set


class Settings(BaseSettings):
    """Application configuration."""
    
    # Database
    # Single SQLite snapshot file, loaded at startup and rewritten on every mutation
    DATABASE_PATH: str = "./data/reviews.db"
    
    # Storage
    STORAGE_BASE_PATH: str = "./uploads"  # Where uploaded images are written
    
    # Upload limits
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10MB
    MAX_FILES_PER_UPLOAD: int = 20
    
    # Pillow format names accepted on upload
    ALLOWED_IMAGE_FORMATS: Set[str] = {"JPEG", "PNG", "GIF", "WEBP"}
    ALLOWED_EXTENSIONS: Set[str] = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
    
    # Server settings
    API_PREFIX: str = "/api"
    REVIEW_URL_PREFIX: str = "/review"
    UPLOADS_URL_PREFIX: str = "/uploads"
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
