"""Request-scoped submission types. Nothing here is persisted."""

from dataclasses import dataclass
from pathlib import PurePath

BYTES_PER_MB = 1024 * 1024

REMIX_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/ogg": "ogg",
    "audio/mp4": "m4a",
    "audio/webm": "webm",
}


def format_size_mb(size_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals."""
    return f"{size_bytes / BYTES_PER_MB:.2f}"


@dataclass
class AudioPayload:
    """Uploaded audio bytes with the metadata the browser declared."""

    data: bytes
    mime_type: str
    filename: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def base_mime_type(self) -> str:
        """MIME type without parameters, e.g. 'audio/webm;codecs=opus' -> 'audio/webm'."""
        return self.mime_type.split(";")[0].strip().lower()

    @property
    def extension(self) -> str:
        suffix = PurePath(self.filename).suffix.lstrip(".")
        return suffix.lower() or "bin"


@dataclass
class SubmissionForm:
    """Unvalidated multipart fields."""

    name: str = ""
    email: str = ""
    duration: str = ""
    audio: AudioPayload | None = None


@dataclass
class Submission:
    """A validated submission."""

    display_name: str
    contact_email: str
    audio: AudioPayload
    client_duration: float


@dataclass
class StoredArtifact:
    """Audio that has been written to the blob store and presigned."""

    key: str
    file_name: str
    download_url: str
    size_bytes: int
    duration: float

    @property
    def size_mb(self) -> str:
        return format_size_mb(self.size_bytes)


@dataclass
class RemixTuning:
    """Provider knobs for a remix request."""

    loudness: float = 0.5
    guidance_scale: float = 3.0
    prompt_strength: float = 0.7


@dataclass
class RemixResult:
    """First rendering returned by the voice AI provider."""

    audio: bytes
    duration_seconds: float
    media_type: str = "audio/mpeg"

    @property
    def extension(self) -> str:
        base = self.media_type.split(";")[0].strip().lower()
        return REMIX_EXTENSIONS.get(base, "bin")


@dataclass
class ArtifactSummary:
    """What the notification says about one stored artifact."""

    url: str
    size_mb: str
    duration: float

    @classmethod
    def from_artifact(cls, artifact: StoredArtifact) -> "ArtifactSummary":
        return cls(url=artifact.download_url, size_mb=artifact.size_mb, duration=artifact.duration)


@dataclass
class NotificationRecord:
    """The single message sent to the team channel for one run."""

    user_name: str
    timestamp: str
    user_email: str = ""
    raw: ArtifactSummary | None = None
    enhanced: ArtifactSummary | None = None
    error: str | None = None


@dataclass
class SubmissionResult:
    """Outcome of a completed run."""

    raw: StoredArtifact
    duration: float
    message: str
    enhanced: StoredArtifact | None = None
    voice_id: str | None = None
    enhancement_error: str | None = None
