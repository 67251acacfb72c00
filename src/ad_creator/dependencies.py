"""Application wiring: one settings store and one factory per capability."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from ad_creator.config import settings
from ad_creator.logging_setup import configure_logging
from ad_creator.providers.factory import (
    ImageProviderFactory,
    SpeechToTextProviderFactory,
    TextProviderFactory,
    TextToSpeechProviderFactory,
    VideoProviderFactory,
)
from ad_creator.settings_store import ApiSettingsStore
from ad_creator.storage import JsonFileStorage


@dataclass
class ProviderFactories:
    text: TextProviderFactory
    image: ImageProviderFactory
    video: VideoProviderFactory
    speech_to_text: SpeechToTextProviderFactory
    text_to_speech: TextToSpeechProviderFactory


def build_factories(store: ApiSettingsStore, **provider_kwargs) -> ProviderFactories:
    """Create every capability factory around *store*."""
    return ProviderFactories(
        text=TextProviderFactory(store, **provider_kwargs),
        image=ImageProviderFactory(store, **provider_kwargs),
        video=VideoProviderFactory(store, **provider_kwargs),
        speech_to_text=SpeechToTextProviderFactory(store, **provider_kwargs),
        text_to_speech=TextToSpeechProviderFactory(store, **provider_kwargs),
    )


@lru_cache(maxsize=1)
def get_settings_store() -> ApiSettingsStore:
    """Return the process-wide store backed by ``settings.storage_path``."""
    return ApiSettingsStore(JsonFileStorage(settings.storage_path))


@lru_cache(maxsize=1)
def get_factories() -> ProviderFactories:
    """Application entry point: configures logging once, then wires the factories."""
    configure_logging()
    return build_factories(get_settings_store())
