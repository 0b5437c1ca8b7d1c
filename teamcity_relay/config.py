"""
Application configuration management.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Outbound event ingestion
    webhook_base_url: str = "https://webhook.atomist.com/atomist/jenkins/teams"
    provider_name: str = "teamcity"

    # Delivery
    retry_delay_seconds: float = 1.0
    http_timeout_seconds: float = 30.0

    # Inbound hook from the TeamCity host binding
    inbound_webhook_secret: Optional[str] = None  # Signature check disabled if not set

    # Application
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
