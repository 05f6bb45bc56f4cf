"""
EduAsset - Application Configuration
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "EduAsset"
    debug: bool = False

    # Signed backend config blob (cookie or header)
    config_cookie_name: str = "edu-asset-config"
    config_header_name: str = "X-Workspace-Config"
    config_secret: str = "edu-asset-config-secret-change-in-production"
    config_algorithm: str = "HS256"
    config_expire_days: int = 30

    # Default Google service account (used when the blob carries none)
    google_service_account_email: Optional[str] = None
    google_private_key: Optional[str] = None
    google_spreadsheet_id: Optional[str] = None

    # Backend endpoints
    sheets_api_url: str = "https://sheets.googleapis.com/v4"
    firestore_api_url: str = "https://firestore.googleapis.com/v1"
    http_timeout: float = 30.0

    # Map image chunking (per-cell / per-document size ceilings)
    sheet_chunk_size: int = 40000
    firestore_chunk_size: int = 800000

    # Batch caps
    firestore_batch_limit: int = 400
    sheets_append_chunk_rows: int = 500

    # Structure detection merge
    zone_merge_threshold: float = 1.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
