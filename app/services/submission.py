"""Submission orchestration.

One run: validate -> store raw audio -> (clone -> remix -> store enhanced) ->
notify -> delete the cloned voice -> respond.

The raw recording is stored before any voice AI call, so a failure anywhere
downstream never loses it. Voice AI failures degrade the run to raw-only
instead of failing it. The cloned voice is released by a finalizer registered
the moment it exists, so every exit path after cloning deletes it.
"""

import logging
import re
import time
import uuid
from contextlib import ExitStack
from datetime import datetime

from app.exceptions import CleanupFailure, EnhancementFailure, NotificationFailure, StorageFailure
from app.models.submission import (
    ArtifactSummary,
    NotificationRecord,
    StoredArtifact,
    Submission,
    SubmissionForm,
    SubmissionResult,
)
from app.services.blob_store import BlobStore
from app.services.notifier import Notifier
from app.services.prompts import ENHANCEMENT_DIRECTIVE, REFERENCE_TRANSCRIPT, REMIX_TUNING
from app.services.validation import ENHANCE_FLOW, UPLOAD_FLOW, FlowRules, validate_submission
from app.services.voice_ai import VoiceAIProvider

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ERROR = "Voice AI API key not configured"
ENHANCED_MESSAGE = "Recording submitted successfully! AI voice model created."
RAW_ONLY_MESSAGE = "Recording submitted successfully! Your audio has been saved."
UPLOAD_MESSAGE = "File uploaded successfully"


def sanitize_filename(value: str) -> str:
    """Make a value safe for object keys: [A-Za-z0-9.-] only, single dashes, lowercase."""
    cleaned = re.sub(r"[^a-zA-Z0-9.-]", "-", value)
    cleaned = re.sub(r"-+", "-", cleaned)
    return cleaned.lower()


def format_timestamp(moment: datetime) -> str:
    """Format like 'Jan 5, 2026, 3:04 PM'."""
    hour = moment.hour % 12 or 12
    return f"{moment:%b} {moment.day}, {moment.year}, {hour}:{moment:%M} {moment:%p}"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class SubmissionService:
    """Drives one submission through storage, enhancement and notification."""

    def __init__(
        self,
        blob_store: BlobStore,
        notifier: Notifier,
        voice_ai: VoiceAIProvider | None = None,
        *,
        url_expiry_seconds: int = 604800,
        key_prefix: str = "voice-booth-audio",
        voice_name_prefix: str = "booth-demo",
        max_upload_size_mb: int = 10,
        min_duration_seconds: float = 60,
        notification_failure_fatal: bool = False,
    ) -> None:
        self._blob_store = blob_store
        self._notifier = notifier
        self._voice_ai = voice_ai
        self._url_expiry_seconds = url_expiry_seconds
        self._key_prefix = key_prefix.strip("/")
        self._voice_name_prefix = voice_name_prefix
        self._max_upload_size_mb = max_upload_size_mb
        self._min_duration_seconds = min_duration_seconds
        self._notification_failure_fatal = notification_failure_fatal

    # --- Entry points ---

    def submit_enhanced(self, form: SubmissionForm) -> SubmissionResult:
        """Store the recording, try AI enhancement, notify, clean up."""
        submission = self._validate(form, ENHANCE_FLOW)

        voice_name = self.voice_label(submission.display_name)
        raw = self._store_raw(submission, f"raw-{voice_name}.{submission.audio.extension}")
        timestamp = format_timestamp(datetime.now())

        enhanced: StoredArtifact | None = None
        voice_id: str | None = None
        error: str | None = None

        with ExitStack() as cleanup:
            if self._voice_ai is None:
                error = NOT_CONFIGURED_ERROR
                logger.warning("Voice AI not configured - skipping enhancement for %s", submission.display_name)
            else:
                enhanced, voice_id, error = self._enhance(submission, voice_name, cleanup)

            self._notify(
                NotificationRecord(
                    user_name=submission.display_name,
                    user_email=submission.contact_email,
                    timestamp=timestamp,
                    raw=ArtifactSummary.from_artifact(raw),
                    enhanced=ArtifactSummary.from_artifact(enhanced) if enhanced else None,
                    error=error,
                )
            )

        duration = enhanced.duration if enhanced and enhanced.duration else submission.client_duration
        return SubmissionResult(
            raw=raw,
            enhanced=enhanced,
            voice_id=voice_id,
            enhancement_error=error,
            duration=duration,
            message=ENHANCED_MESSAGE if enhanced else RAW_ONLY_MESSAGE,
        )

    def submit_upload(self, form: SubmissionForm) -> SubmissionResult:
        """Store the file and notify. No voice AI stage."""
        submission = self._validate(form, UPLOAD_FLOW)

        file_name = submission.audio.filename or f"recording.{submission.audio.extension}"
        raw = self._store_raw(submission, file_name)

        self._notify(
            NotificationRecord(
                user_name=submission.display_name,
                user_email=submission.contact_email,
                timestamp=format_timestamp(datetime.now()),
                raw=ArtifactSummary.from_artifact(raw),
            )
        )
        return SubmissionResult(raw=raw, duration=submission.client_duration, message=UPLOAD_MESSAGE)

    # --- Naming ---

    def voice_label(self, display_name: str) -> str:
        """Provider-side voice name, unique per run."""
        return f"{self._voice_name_prefix}-{sanitize_filename(display_name)}-{_epoch_ms()}"

    def storage_key(self, file_name: str, display_name: str) -> str:
        """Timestamp-qualified key; the random part keeps same-millisecond runs apart."""
        ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "bin"
        return f"{self._key_prefix}/{_epoch_ms()}-{uuid.uuid4().hex[:8]}-{sanitize_filename(display_name)}.{ext}"

    # --- Stages ---

    def _validate(self, form: SubmissionForm, rules: FlowRules) -> Submission:
        submission = validate_submission(
            form,
            rules,
            max_upload_size_mb=self._max_upload_size_mb,
            min_duration_seconds=self._min_duration_seconds,
        )
        logger.info(
            "Validated %s submission from %s (%d bytes, %.1fs)",
            rules.name,
            submission.display_name,
            submission.audio.size_bytes,
            submission.client_duration,
        )
        return submission

    def _store(
        self, data: bytes, file_name: str, content_type: str, display_name: str, duration: float
    ) -> StoredArtifact:
        key = self.storage_key(file_name, display_name)
        self._blob_store.put(data, key, content_type, file_name)
        url = self._blob_store.presign(key, file_name, self._url_expiry_seconds)
        return StoredArtifact(
            key=key,
            file_name=file_name,
            download_url=url,
            size_bytes=len(data),
            duration=duration,
        )

    def _store_raw(self, submission: Submission, file_name: str) -> StoredArtifact:
        try:
            raw = self._store(
                submission.audio.data,
                file_name,
                submission.audio.base_mime_type,
                submission.display_name,
                submission.client_duration,
            )
        except StorageFailure as e:
            logger.error("Raw audio storage failed for %s: %s", submission.display_name, e)
            self._notify_failure(submission, e)
            raise

        logger.info("Raw audio stored (key=%s)", raw.key)
        return raw

    def _enhance(
        self, submission: Submission, voice_name: str, cleanup: ExitStack
    ) -> tuple[StoredArtifact | None, str | None, str | None]:
        """Clone, remix and store. Returns (enhanced, voice_id, error); never raises."""
        voice_id: str | None = None
        stage = "clone voice"
        try:
            voice_id = self._voice_ai.clone(submission.audio, voice_name, ENHANCEMENT_DIRECTIVE)
            cleanup.callback(self._release_voice, voice_id)
            logger.info("Voice cloned (voice_id=%s)", voice_id)

            stage = "generate enhanced audio"
            remixed = self._voice_ai.remix(voice_id, ENHANCEMENT_DIRECTIVE, REFERENCE_TRANSCRIPT, REMIX_TUNING)

            stage = "store enhanced audio"
            enhanced = self._store(
                remixed.audio,
                f"enhanced-{voice_name}.{remixed.extension}",
                remixed.media_type,
                submission.display_name,
                remixed.duration_seconds,
            )
        except Exception as e:
            failure = e if isinstance(e, EnhancementFailure) else EnhancementFailure(stage, e)
            logger.warning("AI enhancement failed, raw audio is available: %s", failure, exc_info=True)
            return None, voice_id, f"Voice AI error: {failure}"

        logger.info("Enhanced audio stored (key=%s)", enhanced.key)
        return enhanced, voice_id, None

    def _notify(self, record: NotificationRecord) -> None:
        try:
            self._notifier.send(record)
        except NotificationFailure as e:
            logger.error("Notification failed for %s: %s", record.user_name, e)
            if self._notification_failure_fatal:
                raise
            return

        if record.enhanced:
            logger.info("Notification sent with raw and enhanced audio")
        else:
            logger.info("Notification sent with raw audio only")

    def _notify_failure(self, submission: Submission, error: Exception) -> None:
        record = NotificationRecord(
            user_name=submission.display_name,
            user_email=submission.contact_email,
            timestamp=format_timestamp(datetime.now()),
            error=f"Critical Error: {error}",
        )
        try:
            self._notifier.send(record)
        except Exception:
            logger.exception("Failed to send failure notification for %s", submission.display_name)

    def _release_voice(self, voice_id: str) -> None:
        try:
            self._voice_ai.delete(voice_id)
        except Exception as e:
            logger.warning("%s", CleanupFailure(voice_id, e), exc_info=True)
