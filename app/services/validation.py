"""Input validation for kiosk submissions.

Validation never touches storage or the voice AI provider: every rejection is
raised before the orchestrator performs its first side effect.
"""

import math
from dataclasses import dataclass

from app.exceptions import DurationTooShort, FileTooLarge, InvalidFileType, MissingField
from app.models.submission import BYTES_PER_MB, Submission, SubmissionForm

UPLOAD_MIME_TYPES = frozenset(
    {
        "audio/mpeg",  # .mp3
        "audio/wav",
        "audio/x-wav",
        "audio/mp4",  # .m4a
        "audio/x-m4a",
        "audio/ogg",
    }
)
ENHANCE_MIME_TYPES = UPLOAD_MIME_TYPES | {
    "audio/webm",  # MediaRecorder default in Chromium
    "video/mp4",  # Safari tags MP4 audio captures as video
}


@dataclass(frozen=True)
class FlowRules:
    """Per-endpoint validation rules."""

    name: str
    allowed_mime_types: frozenset[str]
    require_email: bool
    invalid_type_message: str


UPLOAD_FLOW = FlowRules(
    name="upload",
    allowed_mime_types=UPLOAD_MIME_TYPES,
    require_email=False,
    invalid_type_message="Invalid file type. Please upload .mp3, .wav, .m4a, or .ogg files",
)
ENHANCE_FLOW = FlowRules(
    name="enhance",
    allowed_mime_types=ENHANCE_MIME_TYPES,
    require_email=True,
    invalid_type_message="Invalid file type. Please upload .mp3, .wav, .mp4, .m4a, .ogg, or .webm files",
)


def parse_duration(raw: str | None) -> float | None:
    """Parse the client-reported duration. Returns None if missing or not a finite number."""
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def validate_submission(
    form: SubmissionForm,
    rules: FlowRules,
    max_upload_size_mb: int = 10,
    min_duration_seconds: float = 60,
) -> Submission:
    """Validate raw form fields. Raises a ValidationError subclass on the first failed rule."""
    name = (form.name or "").strip()
    email = (form.email or "").strip()

    if not name:
        raise MissingField("name", "Name is required")
    if rules.require_email and not email:
        raise MissingField("email", "Email is required")

    audio = form.audio
    if audio is None:
        raise MissingField("file", "File is required")

    if audio.base_mime_type not in rules.allowed_mime_types:
        raise InvalidFileType(audio.mime_type, rules.invalid_type_message)

    if audio.size_bytes > max_upload_size_mb * BYTES_PER_MB:
        raise FileTooLarge(audio.size_bytes, f"File size exceeds {max_upload_size_mb}MB limit")

    # Client timing is trusted as-is; the decoded audio length is not re-checked.
    duration = parse_duration(form.duration)
    if not duration or duration < min_duration_seconds:
        raise DurationTooShort(duration, _duration_message(min_duration_seconds))

    return Submission(
        display_name=name,
        contact_email=email,
        audio=audio,
        client_duration=duration,
    )


def _duration_message(min_duration_seconds: float) -> str:
    seconds = int(min_duration_seconds) if float(min_duration_seconds).is_integer() else min_duration_seconds
    if seconds == 60:
        return "Audio duration must be at least 1 minute (60 seconds)"
    return f"Audio duration must be at least {seconds} seconds"
