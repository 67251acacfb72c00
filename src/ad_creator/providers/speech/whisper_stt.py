"""Whisper transcription of recorded business descriptions."""

from __future__ import annotations

import structlog
from openai import AsyncOpenAI

from ad_creator.config import settings
from ad_creator.models.media import TranscriptionRequest, TranscriptionResult
from ad_creator.providers.base import SpeechToTextProvider

logger = structlog.get_logger()

SUPPORTED_LANGUAGES: list[dict[str, str]] = [
    {"code": "pt", "name": "Português"},
    {"code": "en", "name": "English"},
    {"code": "es", "name": "Español"},
    {"code": "fr", "name": "Français"},
    {"code": "de", "name": "Deutsch"},
    {"code": "it", "name": "Italiano"},
    {"code": "ja", "name": "日本語"},
    {"code": "ko", "name": "한국어"},
    {"code": "zh", "name": "中文"},
    {"code": "ru", "name": "Русский"},
    {"code": "ar", "name": "العربية"},
    {"code": "hi", "name": "हिन्दी"},
]


class WhisperSTTProvider(SpeechToTextProvider):
    """OpenAI Whisper. Shares the ``openai`` credential with the text and image providers."""

    provider_id = "openai-whisper"
    display_name = "OpenAI Whisper"

    async def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        api_key = self._require_api_key()
        self.validate_audio(request.audio)

        logger.info(
            "whisper.transcribe.start",
            filename=request.filename,
            audio_bytes=len(request.audio),
            language=request.language,
        )

        kwargs: dict = {}
        if request.language:
            kwargs["language"] = request.language
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature

        client = AsyncOpenAI(api_key=api_key)
        result = await client.audio.transcriptions.create(
            model=settings.transcription_model,
            file=(request.filename, request.audio),
            response_format="verbose_json",
            **kwargs,
        )

        text = (result.text or "").strip()
        logger.info("whisper.transcribe.done", text_len=len(text), language=result.language)
        return TranscriptionResult(
            text=text,
            language=result.language,
            duration=result.duration,
        )

    def supported_languages(self) -> list[dict[str, str]]:
        return [dict(lang) for lang in SUPPORTED_LANGUAGES]

    def _connection_probe(self, api_key: str):
        return "https://api.openai.com/v1/models", {"Authorization": f"Bearer {api_key}"}
