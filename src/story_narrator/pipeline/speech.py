"""Speech synthesis backends.

Supports:
- ElevenLabs text-to-speech (cloud)
- Silent dry-run audio (offline, no credentials)
"""

import io
import logging
import wave
from typing import Optional, Protocol

import httpx

from story_narrator.config import Settings, get_settings
from story_narrator.models import AudioSegment, Result, TextSegment, VoiceProfile

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 150
SAMPLE_RATE = 8000
SAMPLE_WIDTH = 2  # 16-bit mono
ELEVENLABS_FORMAT = "mp3_44100_128"


def estimate_duration(text: str, speed: float = 1.0) -> float:
    """Seconds needed to read ``text`` aloud at the given speed multiplier."""
    words = max(len(text.split()), 1)
    return round(words / WORDS_PER_MINUTE * 60 / max(speed, 0.1), 3)


class SpeechProvider(Protocol):
    """What the pipeline needs from a text-to-speech backend."""

    # Container formats the provider can deliver
    output_formats: tuple[str, ...]

    async def generate_segment_audio(
        self, segment: TextSegment, voice: VoiceProfile
    ) -> Result[AudioSegment]: ...

    async def combine_audio_segments(self, segments: list[AudioSegment]) -> Result[bytes]: ...

    async def optimize_audio(self, data: bytes) -> Result[bytes]: ...


class ElevenLabsSpeechProvider:
    """ElevenLabs text-to-speech over its REST API.

    Usage:
        provider = ElevenLabsSpeechProvider()
        result = await provider.generate_segment_audio(segment, voice)

    Internal voice ids are sent as-is unless ``voice_map`` maps them to
    ElevenLabs voice ids.
    """

    output_formats = ("mp3",)

    def __init__(
        self,
        settings: Optional[Settings] = None,
        voice_map: Optional[dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.voice_map = voice_map or {}
        self._client = client

    def _voice_id(self, voice: VoiceProfile) -> str:
        base = voice.id.removesuffix("-custom")
        return self.voice_map.get(voice.id) or self.voice_map.get(base) or base

    async def generate_segment_audio(
        self, segment: TextSegment, voice: VoiceProfile
    ) -> Result[AudioSegment]:
        if not self.settings.elevenlabs_api_key:
            return Result.fail("ElevenLabs API key not set")

        url = f"{self.settings.elevenlabs_base_url}/text-to-speech/{self._voice_id(voice)}"
        headers = {
            "xi-api-key": self.settings.elevenlabs_api_key,
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
        }
        params = {"output_format": ELEVENLABS_FORMAT}
        payload = {
            "text": segment.content,
            "model_id": self.settings.elevenlabs_model,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
                "speed": voice.speed,
            },
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    url, headers=headers, json=payload,
                    params=params, timeout=self.settings.request_timeout,
                )
            else:
                async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                    response = await client.post(url, headers=headers, json=payload, params=params)
        except (httpx.RequestError, httpx.TimeoutException) as e:
            logger.warning("ElevenLabs request failed for %s: %s", segment.id, e)
            return Result.fail(f"Speech request failed: {e}")

        if response.status_code != 200:
            return Result.fail(
                f"ElevenLabs API error {response.status_code}: {response.text[:200]}"
            )

        return Result.ok(AudioSegment(
            id=segment.id,
            audio_data=response.content,
            duration=estimate_duration(segment.content, voice.speed),
            speaker=segment.speaker,
            text=segment.content,
        ))

    async def combine_audio_segments(self, segments: list[AudioSegment]) -> Result[bytes]:
        # MP3 frames are self-delimiting, so concatenation yields a playable stream
        if not segments:
            return Result.fail("No audio segments to combine")
        return Result.ok(b"".join(s.audio_data for s in segments))

    async def optimize_audio(self, data: bytes) -> Result[bytes]:
        return Result.ok(data)


class SilentSpeechProvider:
    """Offline provider producing silent WAV audio of the expected length.

    Useful for dry runs: timings, segment counts and the whole pipeline can
    be exercised without network access or an API key.
    """

    output_formats = ("wav",)

    async def generate_segment_audio(
        self, segment: TextSegment, voice: VoiceProfile
    ) -> Result[AudioSegment]:
        duration = estimate_duration(segment.content, voice.speed)
        frames = int(duration * SAMPLE_RATE)
        return Result.ok(AudioSegment(
            id=segment.id,
            audio_data=_wav(b"\x00" * frames * SAMPLE_WIDTH),
            duration=duration,
            speaker=segment.speaker,
            text=segment.content,
        ))

    async def combine_audio_segments(self, segments: list[AudioSegment]) -> Result[bytes]:
        if not segments:
            return Result.fail("No audio segments to combine")

        frames = bytearray()
        for segment in segments:
            with wave.open(io.BytesIO(segment.audio_data), "rb") as reader:
                frames.extend(reader.readframes(reader.getnframes()))
        return Result.ok(_wav(bytes(frames)))

    async def optimize_audio(self, data: bytes) -> Result[bytes]:
        return Result.ok(data)


def _wav(frames: bytes) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as writer:
        writer.setnchannels(1)
        writer.setsampwidth(SAMPLE_WIDTH)
        writer.setframerate(SAMPLE_RATE)
        writer.writeframes(frames)
    return buffer.getvalue()


def get_speech_provider(
    provider: Optional[str] = None, settings: Optional[Settings] = None
) -> SpeechProvider:
    """Get a speech provider by name (default from settings)."""
    settings = settings or get_settings()
    name = provider or settings.tts_provider
    if name == "elevenlabs":
        return ElevenLabsSpeechProvider(settings)
    if name == "silent":
        return SilentSpeechProvider()
    raise ValueError(f"Unknown speech provider: {name}")
