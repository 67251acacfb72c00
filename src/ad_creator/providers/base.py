"""Capability interfaces every provider implements.

The factories only ever talk to these ABCs, so swapping providers never
touches call sites. A provider is *configured* when the settings store holds
its credential; that check is recomputed on every call and never touches
the network.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from ad_creator.config import settings
from ad_creator.exceptions import ConfigurationError, ProviderNotImplementedError, ValidationError
from ad_creator.models.settings import Capability, credential_key_for
from ad_creator.polling import JobPoller, ProgressCallback, Sleep
from ad_creator.providers.http import ClientFactory, default_client_factory, probe

if TYPE_CHECKING:
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
        VoiceInfo,
    )
    from ad_creator.settings_store import ApiSettingsStore


class BaseProvider(ABC):
    """Shared plumbing: credential lookup, naming, HTTP client, pollers."""

    capability: ClassVar[Capability]
    provider_id: ClassVar[str]
    display_name: ClassVar[str]
    is_stub: ClassVar[bool] = False

    def __init__(
        self,
        store: ApiSettingsStore,
        *,
        client_factory: ClientFactory | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.store = store
        self._client_factory = client_factory or default_client_factory
        self._sleep = sleep

    @property
    def credential_key(self) -> str:
        return credential_key_for(self.provider_id)

    def is_configured(self) -> bool:
        return self.store.has_credential(self.credential_key)

    def get_provider_name(self) -> str:
        if self.is_stub:
            return f"{self.display_name} (coming soon)"
        return self.display_name

    def _require_api_key(self) -> str:
        api_key = self.store.get_credential(self.credential_key)
        if not api_key:
            raise ConfigurationError(
                f"{self.get_provider_name()} is not configured. "
                "Add its API key in the settings.",
                provider=self.provider_id,
            )
        return api_key

    def _not_implemented(self) -> ProviderNotImplementedError:
        return ProviderNotImplementedError(
            f"{self.get_provider_name()} is not available yet.",
            provider=self.provider_id,
        )

    # ------------------------------------------------------------------
    # Connection test (advisory only)
    # ------------------------------------------------------------------

    def _connection_probe(self, api_key: str) -> tuple[str, dict[str, str]] | None:
        """Return (url, headers) for a cheap read-only request, or None."""
        return None

    async def test_connection(self) -> bool:
        api_key = self.store.get_credential(self.credential_key)
        if not api_key:
            return False
        target = self._connection_probe(api_key)
        if target is None:
            return False
        url, headers = target
        return await probe(self._client_factory, url, headers)

    # ------------------------------------------------------------------
    # Pollers
    # ------------------------------------------------------------------

    def _image_poller(self) -> JobPoller:
        return JobPoller(
            max_attempts=settings.image_poll_max_attempts,
            poll_interval=settings.image_poll_interval_sec,
            sleep=self._sleep,
            label=f"{self.provider_id}_image",
        )

    def _video_poller(self) -> JobPoller:
        return JobPoller(
            max_attempts=settings.video_poll_max_attempts,
            poll_interval=settings.video_poll_interval_sec,
            sleep=self._sleep,
            label=f"{self.provider_id}_video",
        )


class TextProvider(BaseProvider):
    capability = Capability.TEXT

    @abstractmethod
    async def analyze_business_document(self, document_text: str) -> BusinessAnalysis: ...

    @abstractmethod
    async def generate_ad_prompt(self, analysis: BusinessAnalysisOutput) -> AdPromptElements: ...

    @abstractmethod
    async def generate_multiple_ad_options(
        self, analysis: BusinessAnalysisOutput, count: int = 3
    ) -> MultipleAdOptions: ...

    @abstractmethod
    async def generate_video_script(self, analysis: BusinessAnalysisOutput) -> VideoScript: ...


class ImageProvider(BaseProvider):
    capability = Capability.IMAGE

    @abstractmethod
    async def generate_image(
        self,
        request: ImageRequest,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ImageResult: ...


class VideoProvider(BaseProvider):
    capability = Capability.VIDEO

    @abstractmethod
    async def generate_video(
        self,
        request: VideoRequest,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> VideoResult: ...


class SpeechToTextProvider(BaseProvider):
    capability = Capability.SPEECH_TO_TEXT

    max_audio_bytes: ClassVar[int] = 25 * 1024 * 1024

    @abstractmethod
    async def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult: ...

    def validate_audio(self, audio: bytes) -> None:
        if not audio:
            raise ValidationError("Audio is empty.", field="audio")
        if len(audio) > self.max_audio_bytes:
            limit_mb = self.max_audio_bytes // (1024 * 1024)
            raise ValidationError(f"Audio file too large (max {limit_mb}MB).", field="audio")

    def supported_languages(self) -> list[dict[str, str]]:
        return []


class TextToSpeechProvider(BaseProvider):
    capability = Capability.TEXT_TO_SPEECH

    @abstractmethod
    async def synthesize(self, request: SpeechRequest) -> SpeechResult: ...

    async def list_voices(self) -> list[VoiceInfo]:
        return []

    def recommended_voices(self) -> list[VoiceInfo]:
        return []
