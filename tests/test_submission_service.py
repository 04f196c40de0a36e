"""Tests for the submission orchestrator with fake collaborators."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from conftest import MIB, FakeBlobStore, FakeVoiceAI, RecordingNotifier, make_form

from app.exceptions import (
    DurationTooShort,
    EnhancementFailure,
    FileTooLarge,
    InvalidFileType,
    MissingField,
    NotificationFailure,
    StorageFailure,
)
from app.services.blob_store import BlobStore
from app.services.notifier import Notifier, SlackNotifier
from app.services.prompts import ENHANCEMENT_DIRECTIVE
from app.services.submission import (
    ENHANCED_MESSAGE,
    NOT_CONFIGURED_ERROR,
    RAW_ONLY_MESSAGE,
    SubmissionService,
    format_timestamp,
    sanitize_filename,
)
from app.services.voice_ai import VoiceAIProvider


@pytest.fixture(name="service")
def service_fixture(blob_store: FakeBlobStore, notifier: RecordingNotifier, voice_ai: FakeVoiceAI) -> SubmissionService:
    return SubmissionService(blob_store, notifier, voice_ai)


@pytest.fixture(name="mocks")
def mocks_fixture() -> dict:
    """Spec'd mocks for call-count assertions."""
    return {
        "blob_store": MagicMock(spec=BlobStore),
        "notifier": MagicMock(spec=Notifier),
        "voice_ai": MagicMock(spec=VoiceAIProvider),
    }


def _mock_service(mocks: dict) -> SubmissionService:
    return SubmissionService(mocks["blob_store"], mocks["notifier"], mocks["voice_ai"])


def _assert_untouched(mocks: dict) -> None:
    for mock in mocks.values():
        assert mock.mock_calls == []


class TestRejectionHasNoSideEffects:
    """Validation failures stop the run before any collaborator call."""

    @pytest.mark.parametrize("duration", ["59.9", "0", "", "abc", "-70"])
    def test_short_duration(self, mocks: dict, duration: str):
        with pytest.raises(DurationTooShort):
            _mock_service(mocks).submit_enhanced(make_form(duration=duration))
        _assert_untouched(mocks)

    def test_oversized_file(self, mocks: dict):
        with pytest.raises(FileTooLarge):
            _mock_service(mocks).submit_enhanced(make_form(size=10 * MIB + 1))
        _assert_untouched(mocks)

    def test_missing_email_in_enhance_flow(self, mocks: dict):
        with pytest.raises(MissingField) as exc:
            _mock_service(mocks).submit_enhanced(make_form(email="   "))
        assert exc.value.field == "email"
        _assert_untouched(mocks)

    def test_upload_flow_rejects_short_duration(self, mocks: dict):
        with pytest.raises(DurationTooShort):
            _mock_service(mocks).submit_upload(make_form(duration="30"))
        _assert_untouched(mocks)


class TestEnhancementNotConfigured:
    """No voice AI key: raw-only success."""

    def test_raw_only_result(self, blob_store: FakeBlobStore, notifier: RecordingNotifier):
        service = SubmissionService(blob_store, notifier, None)

        result = service.submit_enhanced(make_form())

        assert result.enhanced is None
        assert result.voice_id is None
        assert result.enhancement_error == NOT_CONFIGURED_ERROR
        assert result.message == RAW_ONLY_MESSAGE
        assert result.raw.size_mb == "2.00"
        assert result.duration == 65.0
        assert len(blob_store.objects) == 1

    def test_single_notification_with_annotation(self, blob_store: FakeBlobStore, notifier: RecordingNotifier):
        SubmissionService(blob_store, notifier, None).submit_enhanced(make_form())

        assert len(notifier.records) == 1
        record = notifier.records[0]
        assert record.error == NOT_CONFIGURED_ERROR
        assert record.raw is not None
        assert record.enhanced is None
        assert record.user_email == "ada@example.com"


class TestEnhancementSuccess:
    """Every AI stage succeeds."""

    def test_both_artifacts(self, service: SubmissionService, voice_ai: FakeVoiceAI):
        result = service.submit_enhanced(make_form())

        assert result.enhanced is not None
        assert result.enhancement_error is None
        assert result.message == ENHANCED_MESSAGE
        assert result.voice_id == "voice-1"
        assert "attachment" in result.raw.download_url
        assert "attachment" in result.enhanced.download_url
        assert result.enhanced.file_name.startswith("enhanced-booth-demo-ada-")
        assert result.enhanced.file_name.endswith(".mp3")
        assert result.raw.file_name.startswith("raw-booth-demo-ada-")
        assert result.raw.file_name.endswith(".wav")
        # Enhanced duration wins over the client-reported one.
        assert result.duration == pytest.approx(58.4)
        assert voice_ai.remixed[0][1].prompt_strength == 0.7

    def test_stage_order(self, service: SubmissionService, events: list):
        service.submit_enhanced(make_form())

        kinds = [kind for kind, _ in events]
        assert kinds == ["put", "presign", "clone", "remix", "put", "presign", "notify", "delete"]

    def test_enhanced_stored_as_mpeg(self, service: SubmissionService, blob_store: FakeBlobStore):
        service.submit_enhanced(make_form())

        content_types = sorted(obj["content_type"] for obj in blob_store.objects.values())
        assert content_types == ["audio/mpeg", "audio/wav"]

    def test_enhanced_follows_reported_media_type(
        self, service: SubmissionService, voice_ai: FakeVoiceAI, blob_store: FakeBlobStore
    ):
        voice_ai.remix_media_type = "audio/wav"

        result = service.submit_enhanced(make_form(filename="sample.ogg", mime_type="audio/ogg"))

        assert result.enhanced.file_name.endswith(".wav")
        stored = blob_store.objects[result.enhanced.key]
        assert stored["content_type"] == "audio/wav"
        assert result.enhanced.key.endswith(".wav")

    def test_clone_carries_enhancement_directive(self, service: SubmissionService, voice_ai: FakeVoiceAI):
        service.submit_enhanced(make_form())

        assert voice_ai.descriptions == [ENHANCEMENT_DIRECTIVE]

    def test_notification_references_both(self, service: SubmissionService, notifier: RecordingNotifier):
        service.submit_enhanced(make_form())

        record = notifier.records[0]
        assert record.raw.size_mb == "2.00"
        assert record.enhanced is not None
        assert record.error is None


class TestEnhancementDegraded:
    """A failing AI stage keeps the raw artifact and still notifies once."""

    def test_clone_failure_has_nothing_to_clean_up(
        self, service: SubmissionService, voice_ai: FakeVoiceAI, notifier: RecordingNotifier
    ):
        voice_ai.clone_error = EnhancementFailure("clone voice", "quota exceeded")

        result = service.submit_enhanced(make_form())

        assert result.enhanced is None
        assert result.voice_id is None
        assert voice_ai.deleted == []
        assert "quota exceeded" in result.enhancement_error
        assert len(notifier.records) == 1

    def test_remix_failure_cleans_up_once(
        self, service: SubmissionService, voice_ai: FakeVoiceAI, notifier: RecordingNotifier
    ):
        voice_ai.remix_error = RuntimeError("remix timed out")

        result = service.submit_enhanced(make_form())

        assert voice_ai.deleted == ["voice-1"]
        assert result.enhanced is None
        assert result.voice_id == "voice-1"
        assert len(notifier.records) == 1
        record = notifier.records[0]
        assert "generate enhanced audio" in record.error
        assert "remix timed out" in record.error
        assert record.raw is not None

    def test_enhanced_storage_failure(
        self, service: SubmissionService, voice_ai: FakeVoiceAI, blob_store: FakeBlobStore, events: list
    ):
        blob_store.fail_prefix = "enhanced-"

        result = service.submit_enhanced(make_form())

        assert result.enhanced is None
        assert result.raw is not None
        assert "Voice AI error" in result.enhancement_error
        assert voice_ai.deleted == ["voice-1"]
        assert events[-1] == ("delete", "voice-1")

    def test_cleanup_failure_is_swallowed(self, service: SubmissionService, voice_ai: FakeVoiceAI):
        voice_ai.delete_error = RuntimeError("404 voice not found")

        result = service.submit_enhanced(make_form())

        assert result.enhanced is not None
        assert voice_ai.deleted == ["voice-1"]


class TestRawStorageFailure:
    """Raw storage is mandatory."""

    def test_aborts_before_enhancement(
        self, service: SubmissionService, blob_store: FakeBlobStore, voice_ai: FakeVoiceAI, notifier: RecordingNotifier
    ):
        blob_store.fail_prefix = "raw-"

        with pytest.raises(StorageFailure):
            service.submit_enhanced(make_form())

        assert voice_ai.cloned == []
        assert len(notifier.records) == 1
        assert notifier.records[0].error.startswith("Critical Error:")
        assert notifier.records[0].raw is None

    def test_failure_notification_errors_are_swallowed(
        self, service: SubmissionService, blob_store: FakeBlobStore, notifier: RecordingNotifier
    ):
        blob_store.fail_prefix = "raw-"
        notifier.error = NotificationFailure("webhook down")

        with pytest.raises(StorageFailure):
            service.submit_enhanced(make_form())


class TestNotificationFailure:
    """Notification failures are logged unless configured as fatal."""

    def test_logged_only_by_default(
        self, service: SubmissionService, notifier: RecordingNotifier, voice_ai: FakeVoiceAI
    ):
        notifier.error = NotificationFailure("Slack returned 500")

        result = service.submit_enhanced(make_form())

        assert result.enhanced is not None
        assert voice_ai.deleted == ["voice-1"]

    def test_malformed_webhook_does_not_fail_the_run(self, blob_store: FakeBlobStore, voice_ai: FakeVoiceAI):
        service = SubmissionService(blob_store, SlackNotifier("http://[::1/x", timeout=1), voice_ai)

        result = service.submit_enhanced(make_form())

        assert result.enhanced is not None
        assert len(blob_store.objects) == 2
        assert voice_ai.deleted == ["voice-1"]

    def test_fatal_when_configured_still_cleans_up(
        self, blob_store: FakeBlobStore, notifier: RecordingNotifier, voice_ai: FakeVoiceAI
    ):
        service = SubmissionService(blob_store, notifier, voice_ai, notification_failure_fatal=True)
        notifier.error = NotificationFailure("Slack returned 500")

        with pytest.raises(NotificationFailure):
            service.submit_enhanced(make_form())

        assert voice_ai.deleted == ["voice-1"]

    def test_unexpected_notifier_error_still_cleans_up(
        self, service: SubmissionService, notifier: RecordingNotifier, voice_ai: FakeVoiceAI
    ):
        notifier.error = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            service.submit_enhanced(make_form())

        assert voice_ai.deleted == ["voice-1"]


class TestUploadFlow:
    """Plain upload: no email, no AI, no cleanup."""

    def test_upload_without_email(
        self, service: SubmissionService, events: list, notifier: RecordingNotifier, blob_store: FakeBlobStore
    ):
        result = service.submit_upload(make_form(email="", filename="Ada's Pitch.mp3", mime_type="audio/mpeg"))

        assert result.raw.file_name == "Ada's Pitch.mp3"
        assert result.enhanced is None
        assert events == [("put", "Ada's Pitch.mp3"), ("presign", "Ada's Pitch.mp3"), ("notify", None)]
        assert len(notifier.records) == 1
        (key,) = blob_store.objects
        assert key.endswith("-ada.mp3")

    def test_upload_flow_rejects_webm(self, service: SubmissionService):
        with pytest.raises(InvalidFileType):
            service.submit_upload(make_form(mime_type="audio/webm", filename="clip.webm"))


class TestStorageKeys:
    """Keys are timestamp-qualified and never collide."""

    def test_same_name_distinct_keys(self, service: SubmissionService):
        keys = {service.storage_key("a.wav", "Ada") for _ in range(50)}
        assert len(keys) == 50

    def test_key_shape(self, service: SubmissionService):
        key = service.storage_key("raw-x.WAV", "Ada Lovelace!")
        assert key.startswith("voice-booth-audio/")
        assert key.endswith("-ada-lovelace-.wav")

    def test_concurrent_runs_do_not_collide(self, service: SubmissionService, blob_store: FakeBlobStore):
        service.submit_enhanced(make_form())
        service.submit_enhanced(make_form())

        assert len(blob_store.objects) == 4


class TestHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Ada", "ada"),
            ("Ada  Lovelace", "ada-lovelace"),
            ("../../etc/passwd", "..-..-etc-passwd"),
            ("José Núñez", "jos-n-ez"),
            ("a--b__c", "a-b-c"),
        ],
    )
    def test_sanitize_filename(self, value: str, expected: str):
        assert sanitize_filename(value) == expected

    def test_format_timestamp(self):
        assert format_timestamp(datetime(2026, 1, 5, 15, 4)) == "Jan 5, 2026, 3:04 PM"
        assert format_timestamp(datetime(2026, 10, 19, 0, 30)) == "Oct 19, 2026, 12:30 AM"
