"""Provider identifiers and the persisted settings snapshot."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Capability(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    SPEECH_TO_TEXT = "speech_to_text"
    TEXT_TO_SPEECH = "text_to_speech"


TextProviderId = Literal["openai", "claude", "gemini"]
ImageProviderId = Literal["openai", "runware", "runway", "midjourney", "replicate"]
VideoProviderId = Literal["heygen", "synthesia", "runway", "luma", "pika"]
SpeechProviderId = Literal["elevenlabs", "openai-whisper"]

# Closed set of identifiers per capability (implemented or not)
PROVIDER_IDS: dict[Capability, tuple[str, ...]] = {
    Capability.TEXT: ("openai", "claude", "gemini"),
    Capability.IMAGE: ("openai", "runware", "runway", "midjourney", "replicate"),
    Capability.VIDEO: ("heygen", "synthesia", "runway", "luma", "pika"),
    Capability.SPEECH_TO_TEXT: ("openai-whisper",),
    Capability.TEXT_TO_SPEECH: ("elevenlabs",),
}

DEFAULT_PROVIDERS: dict[Capability, str] = {
    Capability.TEXT: "openai",
    Capability.IMAGE: "openai",
    Capability.VIDEO: "heygen",
    Capability.SPEECH_TO_TEXT: "openai-whisper",
    Capability.TEXT_TO_SPEECH: "elevenlabs",
}

# Capabilities whose provider is chosen by the user and persisted
SELECTION_FIELDS: dict[Capability, str] = {
    Capability.TEXT: "selected_text_provider",
    Capability.IMAGE: "selected_image_provider",
    Capability.VIDEO: "selected_video_provider",
}

# provider id → key in the credential set (Whisper shares the OpenAI key)
_CREDENTIAL_KEY_OVERRIDES: dict[str, str] = {"openai-whisper": "openai"}


def credential_key_for(provider: str) -> str:
    """Return the credential-set key that configures *provider*."""
    return _CREDENTIAL_KEY_OVERRIDES.get(provider, provider)


CREDENTIAL_KEYS: tuple[str, ...] = tuple(
    dict.fromkeys(
        credential_key_for(pid) for ids in PROVIDER_IDS.values() for pid in ids
    )
)


class ApiSettings(BaseModel):
    """Provider selection + credentials, the single unit of persistence.

    Serialized with camelCase keys. Unknown keys are kept as extras so they
    survive export/import round-trips written by newer versions.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    credentials: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("credentials", "config"),
        serialization_alias="credentials",
    )
    selected_text_provider: TextProviderId = "openai"
    selected_image_provider: ImageProviderId = "openai"
    selected_video_provider: VideoProviderId = "heygen"

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
