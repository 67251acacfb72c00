"""ElevenLabs text-to-speech for ad narration."""

from __future__ import annotations

import uuid
from pathlib import Path

import structlog
from elevenlabs import AsyncElevenLabs, VoiceSettings

from ad_creator.config import settings
from ad_creator.exceptions import ProviderError
from ad_creator.models.media import SpeechRequest, SpeechResult, VoiceInfo
from ad_creator.providers.base import TextToSpeechProvider

logger = structlog.get_logger()

ELEVENLABS_API_BASE = "https://api.elevenlabs.io/v1"

# Multilingual voices that read Portuguese ad copy well
NARRATION_VOICES: dict[str, str] = {
    "commercial-female": "EXAVITQu4vr4xnSDxMaL",  # Sarah
    "professional": "9BWtsMINqrJLrRacOk9x",  # Aria
    "energetic-male": "CwhRBWXzGAHq8TQ4Fs17",  # Roger
    "soft-female": "FGY2WhTYpPnrIDTdsKH5",  # Laura
    "casual-male": "IKne3meq5aSn9XLyUdCD",  # Charlie
}
DEFAULT_VOICE_ID = NARRATION_VOICES["commercial-female"]

RECOMMENDED_VOICES: list[VoiceInfo] = [
    VoiceInfo(voice_id=NARRATION_VOICES["commercial-female"], name="Commercial female (Sarah)", category="professional"),
    VoiceInfo(voice_id=NARRATION_VOICES["professional"], name="Professional (Aria)", category="professional"),
    VoiceInfo(voice_id=NARRATION_VOICES["energetic-male"], name="Energetic male (Roger)", category="energetic"),
    VoiceInfo(voice_id=NARRATION_VOICES["soft-female"], name="Soft female (Laura)", category="soft"),
    VoiceInfo(voice_id=NARRATION_VOICES["casual-male"], name="Casual male (Charlie)", category="casual"),
]


class ElevenLabsTTSProvider(TextToSpeechProvider):
    provider_id = "elevenlabs"
    display_name = "ElevenLabs"

    async def synthesize(self, request: SpeechRequest) -> SpeechResult:
        """Generate speech audio and write it to an MP3 file.

        Args:
            request: Text plus voice settings. When ``output_path`` is unset the
                file goes under ``<output_base_dir>/speech/``.

        Returns:
            SpeechResult whose ``url`` is the local path of the MP3.

        Raises:
            ProviderError: If the API returns empty audio data.
        """
        api_key = self._require_api_key()
        voice_id = request.voice_id or DEFAULT_VOICE_ID
        output_path = request.output_path or (
            Path(settings.output_base_dir) / "speech" / f"{uuid.uuid4().hex}.mp3"
        )

        logger.info("elevenlabs_tts.start", voice_id=voice_id, text_len=len(request.text))

        client = AsyncElevenLabs(api_key=api_key)
        audio_iter = client.text_to_speech.convert(
            voice_id=voice_id,
            text=request.text,
            model_id=request.model_id or settings.tts_model_elevenlabs,
            voice_settings=VoiceSettings(
                stability=request.stability,
                similarity_boost=request.similarity_boost,
                style=request.style,
                use_speaker_boost=request.use_speaker_boost,
            ),
        )

        chunks: list[bytes] = []
        async for chunk in audio_iter:
            chunks.append(chunk)

        audio_data = b"".join(chunks)
        if not audio_data:
            raise ProviderError(
                f"ElevenLabs returned empty audio for voice_id={voice_id}",
                provider=self.provider_id,
            )

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(audio_data)

        logger.info(
            "elevenlabs_tts.done",
            output_path=str(output_path),
            bytes_written=len(audio_data),
        )
        return SpeechResult(url=str(output_path))

    async def list_voices(self) -> list[VoiceInfo]:
        api_key = self._require_api_key()
        client = AsyncElevenLabs(api_key=api_key)
        response = await client.voices.get_all()
        return [
            VoiceInfo(
                voice_id=voice.voice_id,
                name=voice.name or voice.voice_id,
                category=voice.category,
                preview_url=voice.preview_url,
            )
            for voice in response.voices
        ]

    def recommended_voices(self) -> list[VoiceInfo]:
        return list(RECOMMENDED_VOICES)

    def _connection_probe(self, api_key: str):
        return f"{ELEVENLABS_API_BASE}/user", {"xi-api-key": api_key}
