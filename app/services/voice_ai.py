"""Voice cloning and remix via the ElevenLabs API."""

import base64
import io
import logging
from abc import ABC, abstractmethod
from typing import Any

from app.exceptions import EnhancementFailure
from app.models.submission import AudioPayload, RemixResult, RemixTuning

logger = logging.getLogger(__name__)


class VoiceAIProvider(ABC):
    """Creates, remixes and deletes provider-side cloned voices."""

    @abstractmethod
    def clone(self, audio: AudioPayload, label: str, description: str = "") -> str:
        """Clone a voice from a sample. Returns the provider's voice id."""

    @abstractmethod
    def remix(self, voice_id: str, directive: str, reference_text: str, tuning: RemixTuning) -> RemixResult:
        """Render `reference_text` in the cloned voice, guided by `directive`.

        Only the first candidate rendering is returned.
        """

    @abstractmethod
    def delete(self, voice_id: str) -> None:
        """Delete a cloned voice."""


def _first_attr(obj: Any, *names: str) -> Any:
    """Read the first present attribute or key among `names` (SDK versions differ in spelling)."""
    for name in names:
        if isinstance(obj, dict):
            value = obj.get(name)
        else:
            value = getattr(obj, name, None)
        if value is not None:
            return value
    return None


class ElevenLabsVoiceAI(VoiceAIProvider):
    """Instant voice cloning + text-to-voice remix."""

    def __init__(self, api_key: str, timeout: float = 120, client=None) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def _get_client(self):
        """Lazy-create the SDK client."""
        if self._client is None:
            from elevenlabs.client import ElevenLabs

            self._client = ElevenLabs(api_key=self._api_key, timeout=self._timeout)
        return self._client

    def clone(self, audio: AudioPayload, label: str, description: str = "") -> str:
        logger.info("Cloning voice %s (%d bytes)", label, audio.size_bytes)
        options: dict[str, Any] = {"remove_background_noise": False}
        if description:
            options["description"] = description
        try:
            response = self._get_client().voices.ivc.create(
                name=label,
                files=[(audio.filename or "voice-sample", io.BytesIO(audio.data), audio.base_mime_type)],
                **options,
            )
        except Exception as e:
            raise EnhancementFailure("clone voice", e) from e

        voice_id = _first_attr(response, "voice_id", "voiceId")
        if not voice_id:
            raise EnhancementFailure("clone voice", "voice id not returned by the provider")
        return str(voice_id)

    def remix(self, voice_id: str, directive: str, reference_text: str, tuning: RemixTuning) -> RemixResult:
        logger.info("Remixing voice %s", voice_id)
        try:
            response = self._get_client().text_to_voice.remix(
                voice_id,
                voice_description=directive,
                text=reference_text,
                auto_generate_text=False,
                loudness=tuning.loudness,
                guidance_scale=tuning.guidance_scale,
                prompt_strength=tuning.prompt_strength,
                stream_previews=False,
            )
        except Exception as e:
            raise EnhancementFailure("generate enhanced audio", e) from e

        previews = _first_attr(response, "previews") or []
        if not previews:
            raise EnhancementFailure("generate enhanced audio", "no audio previews returned from voice remix")

        preview = previews[0]
        audio_b64 = _first_attr(preview, "audio_base_64", "audio_base64", "audioBase64")
        if not audio_b64:
            raise EnhancementFailure("generate enhanced audio", "no audio data in remix preview")

        try:
            audio = base64.b64decode(audio_b64)
        except ValueError as e:
            raise EnhancementFailure("generate enhanced audio", e) from e

        duration = _first_attr(preview, "duration_secs", "durationSecs") or 0
        media_type = _first_attr(preview, "media_type", "mediaType") or "audio/mpeg"
        logger.info("Remix produced %d bytes (%.1fs, %d candidates)", len(audio), float(duration), len(previews))
        return RemixResult(audio=audio, duration_seconds=float(duration), media_type=media_type)

    def delete(self, voice_id: str) -> None:
        self._get_client().voices.delete(voice_id)
        logger.info("Deleted cloned voice %s", voice_id)
