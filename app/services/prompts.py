"""Fixed texts used by the voice remix stage.

The reference transcript is also the script visitors read aloud at the kiosk,
so the remixed audio says the same words as the raw recording.
"""

from app.models.submission import RemixTuning

ENHANCEMENT_DIRECTIVE = (
    "Enhance this voice to sound fresh, alert, and energized while preserving the speaker's "
    "identity and timbre. Add natural brightness, lifted energy, and clear presence, as if "
    "well-rested and engaged. Crucially: maintain steady, consistent pacing throughout - no "
    "rushing, no change in tempo. Use stable pitch, smooth rhythm, natural pauses, and clean "
    "articulation. The voice should feel like the same person on their most energetic day, but "
    "with the same tempo and flow as the original voice."
)

# Kept under 1000 characters, roughly one minute of speech.
REFERENCE_TRANSCRIPT = (
    "When you listen closely to this voice, you hear more than sound. You hear intention. "
    "There's a calm confidence here, the kind that doesn't rush to prove itself. The words "
    "arrive clearly, shaped with care, each syllable landing just long enough to be understood. "
    "You can sense curiosity underneath, a mind that's always moving, always exploring, even in "
    "the quiet moments between sentences. There's a gentle rhythm in the way this person speaks, "
    "a natural pause before important ideas, a subtle lift when something matters. This is a "
    "voice that's comfortable thinking out loud. Thoughtful, grounded, and quietly expressive. "
    "When excitement appears, it doesn't shout, it glows. And when there's uncertainty, it shows "
    "honesty, not hesitation. What stands out most is the balance. Clarity without stiffness. "
    "Warmth without noise. This voice doesn't just communicate, it connects. And in that "
    "connection, you hear someone who knows where they are, and is curious about where they're going."
)

REMIX_TUNING = RemixTuning(loudness=0.5, guidance_scale=3.0, prompt_strength=0.7)


def reading_script_paragraphs() -> list[str]:
    """Split the reference transcript into short paragraphs for the kiosk page."""
    sentences = [s.strip() + "." for s in REFERENCE_TRANSCRIPT.split(".") if s.strip()]
    paragraphs = []
    for i in range(0, len(sentences), 3):
        paragraphs.append(" ".join(sentences[i : i + 3]))
    return paragraphs
