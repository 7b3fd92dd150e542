from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "postgresql+asyncpg://localhost/lettertrack"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert plain postgres:// URLs to asyncpg format."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if v.startswith("postgresql://") and "+asyncpg" not in v:
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    # Database pool
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800  # 30 minutes
    db_command_timeout: int = 30
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # OCR
    mistral_api_key: str = ""
    ocr_model: str = "mistral-ocr-latest"

    # Field extraction
    date_day_first: bool = False  # Read 12/08/2025 as 12 August instead of December 8

    # Outbound mail relay
    mail_relay_url: str = ""
    mail_relay_api_key: str = ""
    mail_from_address: str = ""
    mail_from_name: str = "Letter Management System"
    mail_timeout_seconds: float = 30.0

    # Frontend
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Request size limits
    max_request_size_bytes: int = 12 * 1024 * 1024  # 12MB, leaves room for multipart overhead
    max_upload_size_bytes: int = 10 * 1024 * 1024  # 10MB

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
