"""Pydantic models for media generation requests and results."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

ImageSize = Literal["1024x1024", "1792x1024", "1024x1792"]
TextPosition = Literal["center", "top", "bottom", "left", "right"]
VideoFormat = Literal["square", "vertical", "horizontal"]

# format → pixel dimension
VIDEO_DIMENSIONS: dict[str, tuple[int, int]] = {
    "square": (1080, 1080),
    "vertical": (1080, 1920),
    "horizontal": (1920, 1080),
}

VIDEO_ASPECT_RATIOS: dict[str, str] = {
    "square": "1:1",
    "vertical": "9:16",
    "horizontal": "16:9",
}


class ImageRequest(BaseModel):
    prompt: str = Field(min_length=1)
    size: ImageSize = "1024x1024"
    quality: Literal["standard", "hd"] = "hd"
    style: Literal["vivid", "natural"] = "vivid"
    text_position: TextPosition = "center"
    main_text: str | None = None
    sub_text: str | None = None
    seed: int | None = None
    steps: int | None = None
    guidance: float | None = None

    @property
    def dimensions(self) -> tuple[int, int]:
        width, height = self.size.split("x")
        return int(width), int(height)


class VideoRequest(BaseModel):
    """Unified video parameters.

    Avatar providers (HeyGen) read ``script``; image-to-video providers
    (Runway, Luma) read ``source_image_url`` + ``motion_prompt`` + ``duration``.
    """

    script: str = ""
    avatar: str | None = None
    voice: str | None = None
    background: str | None = None
    style: Literal["professional", "casual", "energetic", "cinematic"] = "professional"
    duration: int | None = Field(default=None, gt=0)
    format: VideoFormat = "vertical"
    resolution: Literal["720p", "1080p", "4k"] = "1080p"
    source_image_url: str | None = None
    motion_prompt: str | None = None


class SpeechRequest(BaseModel):
    text: str = Field(min_length=1)
    voice_id: str | None = None
    model_id: str | None = None
    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)
    style: float = Field(default=0.0, ge=0.0, le=1.0)
    use_speaker_boost: bool = True
    output_path: Path | None = None


class TranscriptionRequest(BaseModel):
    audio: bytes
    filename: str = "recording.webm"
    language: str | None = None
    temperature: float | None = None


# ---------------------------------------------------------------------------
# Unified results (provider is stamped by the factory)
# ---------------------------------------------------------------------------


class GenerationResult(BaseModel):
    url: str
    thumbnail_url: str | None = None
    duration: float | None = None
    provider: str = ""


class ImageResult(GenerationResult):
    prompt: str
    revised_prompt: str | None = None
    seed: int | None = None


class VideoResult(GenerationResult):
    format: VideoFormat = "vertical"


class SpeechResult(GenerationResult):
    """``url`` is the local path of the written audio file."""


class TranscriptionResult(BaseModel):
    text: str
    language: str | None = None
    duration: float | None = None
    provider: str = ""


class VoiceInfo(BaseModel):
    voice_id: str
    name: str
    language: str | None = None
    category: str | None = None
    preview_url: str | None = None


class AvatarInfo(BaseModel):
    avatar_id: str
    name: str
    category: str | None = None
    preview_image: str | None = None
