from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Project
    PROJECT_NAME: str = "Document Text Extraction API"
    VERSION: str = "0.1.0"
    API_V1_PREFIX: str = "/api/v1"
    ENVIRONMENT: str = "development"  # development or production

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    # File upload
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    CHUNK_SIZE: int = 8192  # 8KB chunks for streaming

    # Storage (per-request files are created and removed here)
    UPLOAD_DIR: str = "uploads"
    WORK_DIR: str = "work"

    # URL downloads
    DOWNLOAD_TIMEOUT: float = 30.0

    # Headless office suite converter
    LIBREOFFICE_BINARY: str = "soffice"
    LIBREOFFICE_TIMEOUT: float = 60.0
    LIBREOFFICE_TARGET_FORMATS: list[str] = ["docx", "pdf"]

    # Cloud conversion API (HWP -> PDF)
    CLOUD_CONVERT_URL: Optional[str] = None
    CLOUD_CONVERT_API_KEY: Optional[str] = None

    # Vendor conversion API (OAuth2 client credentials)
    VENDOR_TOKEN_URL: Optional[str] = None
    VENDOR_CONVERT_URL: Optional[str] = None
    VENDOR_CLIENT_ID: Optional[str] = None
    VENDOR_CLIENT_SECRET: Optional[str] = None
    VENDOR_OUTPUT_FORMAT: str = "pdf"  # pdf or txt

    # Conversion API timing
    CONVERSION_API_TIMEOUT: float = 60.0
    CONVERSION_POLL_INTERVAL: float = 2.0
    CONVERSION_POLL_TIMEOUT: float = 90.0
    CONVERTER_ATTEMPT_TIMEOUT: float = 120.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or plain

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

def get_settings():
    return settings
