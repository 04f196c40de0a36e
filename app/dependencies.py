"""Collaborator wiring for FastAPI routes.

Each collaborator is built once from settings and handed to the orchestrator
explicitly; tests replace them through `app.dependency_overrides`.
"""

from fastapi import Depends

from app.config import Settings, get_settings
from app.exceptions import ConfigurationError
from app.services.blob_store import BlobStore, S3BlobStore
from app.services.notifier import Notifier, SlackNotifier
from app.services.submission import SubmissionService
from app.services.voice_ai import ElevenLabsVoiceAI, VoiceAIProvider

_blob_store: BlobStore | None = None
_notifier: Notifier | None = None
_voice_ai: VoiceAIProvider | None = None


def get_blob_store(settings: Settings = Depends(get_settings)) -> BlobStore:
    """Get singleton S3 blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = S3BlobStore(
            bucket=settings.AWS_S3_BUCKET,
            region=settings.AWS_REGION,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            endpoint_url=settings.AWS_S3_ENDPOINT_URL,
        )
    return _blob_store


def get_notifier(settings: Settings = Depends(get_settings)) -> Notifier:
    """Get singleton Slack notifier. A missing webhook is fatal for every submission."""
    global _notifier
    if _notifier is None:
        if not settings.SLACK_WEBHOOK_URL:
            raise ConfigurationError("SLACK_WEBHOOK_URL")
        _notifier = SlackNotifier(
            settings.SLACK_WEBHOOK_URL,
            title=settings.NOTIFICATION_TITLE,
            timeout=settings.SLACK_TIMEOUT_SECONDS,
        )
    return _notifier


def get_voice_ai(settings: Settings = Depends(get_settings)) -> VoiceAIProvider | None:
    """Get singleton voice AI client, or None when no API key is configured."""
    global _voice_ai
    if not settings.enhancement_enabled:
        return None
    if _voice_ai is None:
        _voice_ai = ElevenLabsVoiceAI(settings.ELEVENLABS_API_KEY, timeout=settings.ELEVENLABS_TIMEOUT_SECONDS)
    return _voice_ai


def get_submission_service(
    settings: Settings = Depends(get_settings),
    blob_store: BlobStore = Depends(get_blob_store),
    notifier: Notifier = Depends(get_notifier),
    voice_ai: VoiceAIProvider | None = Depends(get_voice_ai),
) -> SubmissionService:
    """Build a per-request orchestrator around the shared collaborators."""
    return SubmissionService(
        blob_store,
        notifier,
        voice_ai,
        url_expiry_seconds=settings.PRESIGNED_URL_EXPIRY,
        key_prefix=settings.STORAGE_KEY_PREFIX,
        voice_name_prefix=settings.VOICE_NAME_PREFIX,
        max_upload_size_mb=settings.MAX_UPLOAD_SIZE_MB,
        min_duration_seconds=settings.MIN_DURATION_SECONDS,
        notification_failure_fatal=settings.NOTIFICATION_FAILURE_FATAL,
    )
