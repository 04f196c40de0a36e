"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from app.exceptions import StorageFailure
from app.models.submission import AudioPayload, NotificationRecord, RemixResult, RemixTuning, SubmissionForm
from app.services.blob_store import BlobStore
from app.services.notifier import Notifier
from app.services.voice_ai import VoiceAIProvider

MIB = 1024 * 1024


class FakeBlobStore(BlobStore):
    """In-memory blob store. Set `fail_prefix` to fail uploads whose filename starts with it."""

    def __init__(self, events: list) -> None:
        self.events = events
        self.objects: dict[str, dict] = {}
        self.fail_prefix: str | None = None

    def put(self, data: bytes, key: str, content_type: str, download_filename: str) -> None:
        self.events.append(("put", download_filename))
        if self.fail_prefix is not None and download_filename.startswith(self.fail_prefix):
            raise StorageFailure(key, RuntimeError("bucket unavailable"))
        self.objects[key] = {"data": data, "content_type": content_type, "filename": download_filename}

    def presign(self, key: str, download_filename: str, expiry_seconds: int) -> str:
        self.events.append(("presign", download_filename))
        return (
            f"https://bucket.test/{key}"
            f"?response-content-disposition=attachment&filename={download_filename}&expires={expiry_seconds}"
        )


class FakeVoiceAI(VoiceAIProvider):
    """Scripted voice AI provider. Assign exceptions to `*_error` to make a stage fail."""

    def __init__(self, events: list) -> None:
        self.events = events
        self.clone_error: Exception | None = None
        self.remix_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.remix_audio = b"\xff\xfb" * 1024
        self.remix_duration = 58.4
        self.remix_media_type = "audio/mpeg"
        self.descriptions: list[str] = []
        self.cloned: list[str] = []
        self.remixed: list[tuple[str, RemixTuning]] = []
        self.deleted: list[str] = []

    def clone(self, audio: AudioPayload, label: str, description: str = "") -> str:
        self.events.append(("clone", label))
        self.descriptions.append(description)
        if self.clone_error:
            raise self.clone_error
        voice_id = f"voice-{len(self.cloned) + 1}"
        self.cloned.append(voice_id)
        return voice_id

    def remix(self, voice_id: str, directive: str, reference_text: str, tuning: RemixTuning) -> RemixResult:
        self.events.append(("remix", voice_id))
        if self.remix_error:
            raise self.remix_error
        self.remixed.append((voice_id, tuning))
        return RemixResult(
            audio=self.remix_audio, duration_seconds=self.remix_duration, media_type=self.remix_media_type
        )

    def delete(self, voice_id: str) -> None:
        self.events.append(("delete", voice_id))
        self.deleted.append(voice_id)
        if self.delete_error:
            raise self.delete_error


class RecordingNotifier(Notifier):
    """Keeps every record it is asked to send."""

    def __init__(self, events: list) -> None:
        self.events = events
        self.records: list[NotificationRecord] = []
        self.error: Exception | None = None

    def send(self, record: NotificationRecord) -> None:
        self.events.append(("notify", record.error))
        self.records.append(record)
        if self.error:
            raise self.error


def make_form(
    name: str = "Ada",
    email: str = "ada@example.com",
    duration: str = "65.0",
    size: int = 2 * MIB,
    mime_type: str = "audio/wav",
    filename: str = "sample.wav",
) -> SubmissionForm:
    return SubmissionForm(
        name=name,
        email=email,
        duration=duration,
        audio=AudioPayload(data=b"\x00" * size, mime_type=mime_type, filename=filename),
    )


@pytest.fixture(name="events")
def events_fixture() -> list:
    """Shared call log across all fakes, in call order."""
    return []


@pytest.fixture(name="blob_store")
def blob_store_fixture(events: list) -> FakeBlobStore:
    return FakeBlobStore(events)


@pytest.fixture(name="voice_ai")
def voice_ai_fixture(events: list) -> FakeVoiceAI:
    return FakeVoiceAI(events)


@pytest.fixture(name="notifier")
def notifier_fixture(events: list) -> RecordingNotifier:
    return RecordingNotifier(events)


def _client(blob_store: BlobStore, notifier: Notifier, voice_ai: VoiceAIProvider | None):
    from app.dependencies import get_blob_store, get_notifier, get_voice_ai
    from app.rate_limit import limiter
    from main import app

    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_voice_ai] = lambda: voice_ai
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(blob_store: FakeBlobStore, notifier: RecordingNotifier, voice_ai: FakeVoiceAI):
    """Test client with every collaborator faked and the voice AI configured."""
    yield from _client(blob_store, notifier, voice_ai)


@pytest.fixture(name="client_without_ai")
def client_without_ai_fixture(blob_store: FakeBlobStore, notifier: RecordingNotifier):
    """Test client with no voice AI key configured."""
    yield from _client(blob_store, notifier, None)
