"""Exceptions raised while processing a submission."""


class ValidationError(Exception):
    """Rejected user input. Raised before any storage or provider call."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingField(ValidationError):
    """A required form field is empty or absent."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class InvalidFileType(ValidationError):
    """The uploaded MIME type is not in the allow-list."""

    def __init__(self, mime_type: str, message: str):
        self.mime_type = mime_type
        super().__init__(message)


class FileTooLarge(ValidationError):
    """The uploaded payload exceeds the size limit."""

    def __init__(self, size_bytes: int, message: str):
        self.size_bytes = size_bytes
        super().__init__(message)


class DurationTooShort(ValidationError):
    """The client-reported duration is missing or below the minimum."""

    def __init__(self, duration: float | None, message: str):
        self.duration = duration
        super().__init__(message)


class StorageFailure(Exception):
    """Raised when storing or presigning an object fails."""

    def __init__(self, key: str, cause: Exception | None = None):
        self.key = key
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to store '{key}'{detail}")


class EnhancementFailure(Exception):
    """Raised when a voice AI stage (clone, remix, store) fails."""

    def __init__(self, stage: str, cause: Exception | str | None = None):
        self.stage = stage
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to {stage}{detail}")


class NotificationFailure(Exception):
    """Raised when the team notification cannot be delivered."""

    def __init__(self, cause: Exception | str | None = None):
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to send notification{detail}")


class CleanupFailure(Exception):
    """Raised when a cloned voice cannot be deleted."""

    def __init__(self, voice_id: str, cause: Exception | None = None):
        self.voice_id = voice_id
        self.cause = cause
        super().__init__(f"Failed to delete cloned voice '{voice_id}'")


class ConfigurationError(Exception):
    """A mandatory setting is missing."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(f"{setting} is not configured")
