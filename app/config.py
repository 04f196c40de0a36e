"""Configuration settings for Voice Booth."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Object storage
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID", "")
    AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY", "")
    AWS_S3_BUCKET: str = os.getenv("AWS_S3_BUCKET", "")
    AWS_S3_ENDPOINT_URL: str = os.getenv("AWS_S3_ENDPOINT_URL", "")
    PRESIGNED_URL_EXPIRY: int = int(os.getenv("PRESIGNED_URL_EXPIRY", "604800"))  # 7 days
    STORAGE_KEY_PREFIX: str = os.getenv("STORAGE_KEY_PREFIX", "voice-booth-audio")

    # Voice AI
    ELEVENLABS_API_KEY: str = os.getenv("ELEVENLABS_API_KEY", "")
    ELEVENLABS_TIMEOUT_SECONDS: float = float(os.getenv("ELEVENLABS_TIMEOUT_SECONDS", "120"))
    VOICE_NAME_PREFIX: str = os.getenv("VOICE_NAME_PREFIX", "booth-demo")

    # Slack
    SLACK_WEBHOOK_URL: str = os.getenv("SLACK_WEBHOOK_URL", "")
    SLACK_TIMEOUT_SECONDS: float = float(os.getenv("SLACK_TIMEOUT_SECONDS", "10"))
    NOTIFICATION_TITLE: str = os.getenv("NOTIFICATION_TITLE", "New Audio Upload")
    NOTIFICATION_FAILURE_FATAL: bool = os.getenv("NOTIFICATION_FAILURE_FATAL", "false").lower() == "true"

    # Submission rules
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
    MIN_DURATION_SECONDS: float = float(os.getenv("MIN_DURATION_SECONDS", "60"))
    RATE_LIMIT: str = os.getenv("RATE_LIMIT", "10/minute")

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    @property
    def enhancement_enabled(self) -> bool:
        """Whether the voice AI stage runs at all."""
        return bool(self.ELEVENLABS_API_KEY)

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not self.AWS_S3_BUCKET:
            errors.append("AWS_S3_BUCKET is not set - raw audio cannot be stored")
        if not self.SLACK_WEBHOOK_URL:
            errors.append("SLACK_WEBHOOK_URL is not set - submissions will fail until it is configured")
        if not self.ELEVENLABS_API_KEY:
            errors.append("ELEVENLABS_API_KEY is not set - AI enhancement is disabled")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
