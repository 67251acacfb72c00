"""Provider factories: one per capability, each a registry of provider instances.

Adding a new provider =
1. Create the class implementing the capability ABC in ``providers/base.py``
2. Add one entry to the capability's registry below

Every generate call goes through ``ProviderFactory._dispatch``: resolve the
provider, refuse unconfigured ones, invoke, stamp the serving provider on
the result, and normalize foreign exceptions into ``ProviderError``. There
is no fallback to another provider.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, ClassVar, Generic, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel

from ad_creator.exceptions import AdCreatorError, ConfigurationError, ProviderError, UnknownProviderError
from ad_creator.models.analysis import (
    AdPromptElements,
    BusinessAnalysis,
    BusinessAnalysisOutput,
    MultipleAdOptions,
    VideoScript,
)
from ad_creator.models.media import (
    ImageRequest,
    ImageResult,
    SpeechRequest,
    SpeechResult,
    TranscriptionRequest,
    TranscriptionResult,
    VideoRequest,
    VideoResult,
)
from ad_creator.models.settings import DEFAULT_PROVIDERS, SELECTION_FIELDS, Capability
from ad_creator.polling import ProgressCallback
from ad_creator.providers.base import (
    BaseProvider,
    ImageProvider,
    SpeechToTextProvider,
    TextProvider,
    TextToSpeechProvider,
    VideoProvider,
)
from ad_creator.providers.image.openai_image import OpenAIImageProvider
from ad_creator.providers.image.replicate_image import ReplicateImageProvider
from ad_creator.providers.image.runware_image import RunwareImageProvider
from ad_creator.providers.image.runway_image import RunwayImageProvider
from ad_creator.providers.speech.elevenlabs_tts import ElevenLabsTTSProvider
from ad_creator.providers.speech.whisper_stt import WhisperSTTProvider
from ad_creator.providers.stubs import (
    GeminiTextProvider,
    MidjourneyImageProvider,
    PikaVideoProvider,
    SynthesiaVideoProvider,
)
from ad_creator.providers.text.claude_text import ClaudeTextProvider
from ad_creator.providers.text.openai_text import OpenAITextProvider
from ad_creator.providers.video.heygen_video import HeyGenVideoProvider
from ad_creator.providers.video.luma_video import LumaVideoProvider
from ad_creator.providers.video.runway_video import RunwayVideoProvider
from ad_creator.settings_store import ApiSettingsStore

logger = structlog.get_logger()

P = TypeVar("P", bound=BaseProvider)
R = TypeVar("R")

_TEXT_PROVIDERS: dict[str, Type[TextProvider]] = {
    "openai": OpenAITextProvider,
    "claude": ClaudeTextProvider,
    "gemini": GeminiTextProvider,
}

_IMAGE_PROVIDERS: dict[str, Type[ImageProvider]] = {
    "openai": OpenAIImageProvider,
    "runware": RunwareImageProvider,
    "runway": RunwayImageProvider,
    "midjourney": MidjourneyImageProvider,
    "replicate": ReplicateImageProvider,
}

_VIDEO_PROVIDERS: dict[str, Type[VideoProvider]] = {
    "heygen": HeyGenVideoProvider,
    "synthesia": SynthesiaVideoProvider,
    "runway": RunwayVideoProvider,
    "luma": LumaVideoProvider,
    "pika": PikaVideoProvider,
}

_STT_PROVIDERS: dict[str, Type[SpeechToTextProvider]] = {
    "openai-whisper": WhisperSTTProvider,
}

_TTS_PROVIDERS: dict[str, Type[TextToSpeechProvider]] = {
    "elevenlabs": ElevenLabsTTSProvider,
}


class ProviderInfo(BaseModel):
    id: str
    name: str
    configured: bool
    is_stub: bool


class ProviderFactory(Generic[P]):
    """Resolves and invokes the providers of one capability."""

    capability: ClassVar[Capability]
    registry: ClassVar[dict[str, Type[BaseProvider]]]

    def __init__(
        self,
        store: ApiSettingsStore,
        providers: dict[str, P] | None = None,
        **provider_kwargs: Any,
    ):
        """
        Args:
            store: Settings store that owns credentials and selections.
            providers: Pre-built instances keyed by id (tests); defaults to the
                capability registry.
            **provider_kwargs: Forwarded to every registry class
                (``client_factory``, ``sleep``).
        """
        self.store = store
        if providers is None:
            providers = {pid: cls(store, **provider_kwargs) for pid, cls in self.registry.items()}
        self._providers: dict[str, P] = dict(providers)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @property
    def default_provider_id(self) -> str:
        if self.capability in SELECTION_FIELDS:
            return self.store.selected_provider(self.capability)
        return DEFAULT_PROVIDERS[self.capability]

    def resolve(self, provider: str | None = None) -> P:
        provider_id = provider or self.default_provider_id
        instance = self._providers.get(provider_id)
        if instance is None:
            raise UnknownProviderError(
                f"Unknown {self.capability.value} provider: {provider_id}. "
                f"Available: {list(self._providers)}"
            )
        return instance

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_providers(self) -> list[ProviderInfo]:
        return [
            ProviderInfo(
                id=pid,
                name=p.get_provider_name(),
                configured=p.is_configured(),
                is_stub=p.is_stub,
            )
            for pid, p in self._providers.items()
        ]

    def list_configured(self) -> list[ProviderInfo]:
        return [info for info in self.list_providers() if info.configured]

    def has_any_configured(self) -> bool:
        return any(p.is_configured() for p in self._providers.values())

    async def test_connection(self, provider: str | None = None) -> bool:
        instance = self.resolve(provider)
        result = await instance.test_connection()
        logger.info("provider_factory.test_connection", provider=instance.provider_id, ok=result)
        return result

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _dispatch(
        self,
        operation: str,
        provider: str | None,
        call: Callable[[P], Awaitable[R]],
    ) -> R:
        instance = self.resolve(provider)
        provider_id = instance.provider_id

        if not instance.is_configured():
            logger.info("provider_factory.not_configured", operation=operation, provider=provider_id)
            raise ConfigurationError(
                f"Provider {instance.get_provider_name()} is not configured.",
                provider=provider_id,
            )

        logger.info("provider_factory.dispatch", operation=operation, provider=provider_id)
        try:
            result = await call(instance)
        except AdCreatorError:
            raise
        except Exception as exc:
            raise _normalize_error(exc, provider_id, operation) from exc

        if isinstance(result, BaseModel) and "provider" in type(result).model_fields:
            result = result.model_copy(update={"provider": provider_id})
        return result


def _normalize_error(exc: Exception, provider: str, operation: str) -> ProviderError:
    if isinstance(exc, httpx.HTTPStatusError):
        message = (
            f"{provider} API error ({exc.response.status_code}): "
            f"{exc.response.text[:500]}"
        )
    else:
        message = str(exc) or f"Unknown error while {operation}"

    logger.warning(
        "provider_factory.provider_failed",
        operation=operation,
        provider=provider,
        error_type=type(exc).__name__,
        error=message,
    )
    return ProviderError(message, provider=provider, original_error=exc)


class TextProviderFactory(ProviderFactory[TextProvider]):
    capability = Capability.TEXT
    registry = _TEXT_PROVIDERS

    async def analyze_business_document(self, document_text: str, provider: str | None = None) -> BusinessAnalysis:
        return await self._dispatch(
            "analyzing business document",
            provider,
            lambda p: p.analyze_business_document(document_text),
        )

    async def generate_ad_prompt(
        self, analysis: BusinessAnalysisOutput, provider: str | None = None
    ) -> AdPromptElements:
        return await self._dispatch(
            "generating ad prompt",
            provider,
            lambda p: p.generate_ad_prompt(analysis),
        )

    async def generate_multiple_ad_options(
        self,
        analysis: BusinessAnalysisOutput,
        count: int = 3,
        provider: str | None = None,
    ) -> MultipleAdOptions:
        return await self._dispatch(
            "generating ad options",
            provider,
            lambda p: p.generate_multiple_ad_options(analysis, count),
        )

    async def generate_video_script(
        self, analysis: BusinessAnalysisOutput, provider: str | None = None
    ) -> VideoScript:
        return await self._dispatch(
            "generating video script",
            provider,
            lambda p: p.generate_video_script(analysis),
        )


class ImageProviderFactory(ProviderFactory[ImageProvider]):
    capability = Capability.IMAGE
    registry = _IMAGE_PROVIDERS

    async def generate_image(
        self,
        request: ImageRequest,
        provider: str | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ImageResult:
        return await self._dispatch(
            "generating image",
            provider,
            lambda p: p.generate_image(request, on_progress=on_progress),
        )


class VideoProviderFactory(ProviderFactory[VideoProvider]):
    capability = Capability.VIDEO
    registry = _VIDEO_PROVIDERS

    async def generate_video(
        self,
        request: VideoRequest,
        provider: str | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> VideoResult:
        return await self._dispatch(
            "generating video",
            provider,
            lambda p: p.generate_video(request, on_progress=on_progress, cancel_event=cancel_event),
        )


class SpeechToTextProviderFactory(ProviderFactory[SpeechToTextProvider]):
    capability = Capability.SPEECH_TO_TEXT
    registry = _STT_PROVIDERS

    async def transcribe(self, request: TranscriptionRequest, provider: str | None = None) -> TranscriptionResult:
        return await self._dispatch(
            "transcribing audio",
            provider,
            lambda p: p.transcribe(request),
        )


class TextToSpeechProviderFactory(ProviderFactory[TextToSpeechProvider]):
    capability = Capability.TEXT_TO_SPEECH
    registry = _TTS_PROVIDERS

    async def synthesize(self, request: SpeechRequest, provider: str | None = None) -> SpeechResult:
        return await self._dispatch(
            "synthesizing speech",
            provider,
            lambda p: p.synthesize(request),
        )

