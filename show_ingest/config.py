"""
Configuration management for Show Ingest.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = Field(default="Show Ingest")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL of the admin site, used for OAuth redirects.",
    )

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_workers: int = Field(default=1)

    # Database
    database_url: str = Field(default="sqlite:///./show_ingest.db")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # Admin access
    admin_api_key: Optional[str] = Field(default=None)
    admin_user_ids: str = Field(
        default="",
        description="Comma-separated external user ids that are granted the admin role.",
    )

    # Mixcloud OAuth
    mixcloud_client_id: Optional[str] = Field(default=None)
    mixcloud_client_secret: Optional[str] = Field(default=None)
    mixcloud_redirect_uri: Optional[str] = Field(default=None)
    mixcloud_token_refresh_buffer_seconds: int = Field(default=300)

    # Storyblok Management API
    storyblok_management_token: Optional[str] = Field(default=None)
    storyblok_space_id: Optional[str] = Field(default=None)
    storyblok_shows_folder_id: Optional[int] = Field(default=None)

    # Outbound HTTP
    http_timeout_seconds: float = Field(default=30.0)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def admin_ids(self) -> List[str]:
        """Parsed list of admin user ids."""
        return [uid.strip() for uid in self.admin_user_ids.split(",") if uid.strip()]

    @property
    def mixcloud_callback_url(self) -> str:
        """Redirect URI registered with Mixcloud."""
        if self.mixcloud_redirect_uri:
            return self.mixcloud_redirect_uri
        return f"{self.app_url.rstrip('/')}/api/auth/mixcloud/callback"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
