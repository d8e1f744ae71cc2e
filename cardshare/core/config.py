from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    data_dir: str = Field("data", description="Directory holding the card document")
    cards_file: str = Field("cards.json", description="File name of the card document inside data_dir")
    upload_dir: str = Field("uploads", description="Directory where uploaded images are written")
    upload_url_prefix: str = Field("uploads", description="Public path prefix under which uploads are served")
    max_upload_bytes: int = Field(5_000_000, description="Maximum accepted upload size in bytes")
    allowed_content_types: List[str] = Field(
        ["image/jpeg", "image/png", "image/jpg"], description="Content types accepted for uploads"
    )
    allowed_url_schemes: List[str] = Field(["http", "https"], description="Schemes accepted for remote images")
    lock_timeout: float = Field(5.0, description="Seconds to wait for the card document file lock")
    public_base_url: Optional[str] = Field(None, description="Base URL used for share links instead of the request's")
    rate_limit_calls: int = Field(30, description="Rate limit - maximum calls allowed in the specified period")
    rate_limit_period: int = Field(60, description="Rate limit time period in seconds")
    log_level: str = Field("INFO", description="Root log level")
    log_file: Optional[str] = Field(None, description="Optional debug log file")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @field_validator("max_upload_bytes", "lock_timeout")
    def validate_positive(cls, v):
        """
        Validate that limits and timeouts are strictly positive.
        """
        if v <= 0:
            raise ValueError("Value must be greater than 0")
        return v

    @field_validator("upload_url_prefix")
    def strip_slashes(cls, v: str) -> str:
        return v.strip("/")

    @property
    def cards_path(self) -> Path:
        return Path(self.data_dir) / self.cards_file


# Create a settings instance
settings = Settings()

# Export settings instance
__all__ = ['settings', 'Settings']
