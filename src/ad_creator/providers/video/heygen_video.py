"""HeyGen avatar videos: submit a script, poll until rendered."""

from __future__ import annotations

import asyncio

import structlog

from ad_creator.exceptions import ProviderError, ValidationError
from ad_creator.models.media import (
    VIDEO_ASPECT_RATIOS,
    VIDEO_DIMENSIONS,
    AvatarInfo,
    VideoRequest,
    VideoResult,
    VoiceInfo,
)
from ad_creator.polling import JobStatus, JobUpdate, ProgressCallback
from ad_creator.providers.base import VideoProvider
from ad_creator.providers.http import request_json

logger = structlog.get_logger()

HEYGEN_API_BASE = "https://api.heygen.com"
DEFAULT_AVATAR_ID = "d5d7bcf8fd334bdba1b34bd67a2fb652_public"
AUTO_VOICE = "auto"

_STATUS_MAP: dict[str, JobStatus] = {
    "pending": JobStatus.PENDING,
    "waiting": JobStatus.PENDING,
    "processing": JobStatus.RUNNING,
    "completed": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
}

RECOMMENDED_AVATARS: list[AvatarInfo] = [
    AvatarInfo(avatar_id=DEFAULT_AVATAR_ID, name="Default presenter", category="business"),
    AvatarInfo(avatar_id="Kristin_public_3_20240108", name="Professional presenter", category="business"),
    AvatarInfo(avatar_id="Tyler_public_20240711", name="Casual entrepreneur", category="business"),
    AvatarInfo(avatar_id="Susan_public_2_20240328", name="Businesswoman", category="professional"),
    AvatarInfo(avatar_id="Wayne_20240711", name="Trustworthy man", category="trustworthy"),
]


def friendly_error(detail: str) -> str:
    """Map HeyGen's submission errors to messages a user can act on."""
    lowered = detail.lower()
    if "voice" in lowered:
        return "Invalid or unavailable voice. Use 'auto' or pick another voice."
    if "credit" in lowered:
        return "Insufficient credits on the HeyGen account."
    if "avatar" in lowered:
        return "Invalid or unavailable avatar."
    return f"HeyGen error: {detail}"


class HeyGenVideoProvider(VideoProvider):
    provider_id = "heygen"
    display_name = "HeyGen"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"X-Api-Key": api_key, "Content-Type": "application/json"}

    def _build_payload(self, request: VideoRequest) -> dict:
        voice: dict = {"type": "text", "input_text": request.script, "speed": 1.0}
        if request.voice and request.voice.strip() and request.voice != AUTO_VOICE:
            voice["voice_id"] = request.voice

        video_input: dict = {
            "character": {
                "type": "avatar",
                "avatar_id": request.avatar or DEFAULT_AVATAR_ID,
                "scale": 1,
            },
            "voice": voice,
        }
        if request.background:
            video_input["background"] = {"type": "color", "value": request.background}

        width, height = VIDEO_DIMENSIONS[request.format]
        return {
            "video_inputs": [video_input],
            "dimension": {"width": width, "height": height},
            "aspect_ratio": VIDEO_ASPECT_RATIOS[request.format],
        }

    async def generate_video(
        self,
        request: VideoRequest,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> VideoResult:
        """Render an avatar video speaking ``request.script``.

        Raises:
            ProviderError: Submission was rejected (with a user-facing message).
            JobFailedError: HeyGen reported the render as failed.
            JobTimeoutError: The render did not finish within the poll budget.
        """
        api_key = self._require_api_key()
        if not request.script.strip():
            raise ValidationError("HeyGen needs a script to speak", field="script")

        headers = self._headers(api_key)
        payload = self._build_payload(request)

        async def submit() -> str:
            try:
                async with self._client_factory() as client:
                    body = await request_json(
                        client,
                        "POST",
                        f"{HEYGEN_API_BASE}/v2/video/generate",
                        provider=self.provider_id,
                        headers=headers,
                        json=payload,
                    )
            except ProviderError as e:
                raise ProviderError(friendly_error(e.message), provider=self.provider_id, original_error=e) from e

            if body.get("error"):
                error = body["error"]
                detail = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                raise ProviderError(friendly_error(detail), provider=self.provider_id)

            video_id = (body.get("data") or {}).get("video_id")
            if not video_id:
                raise ProviderError("HeyGen did not return a video id", provider=self.provider_id)
            return video_id

        async def check(video_id: str) -> JobUpdate:
            async with self._client_factory() as client:
                body = await request_json(
                    client,
                    "GET",
                    f"{HEYGEN_API_BASE}/v1/video_status.get",
                    provider=self.provider_id,
                    headers=headers,
                    params={"video_id": video_id},
                )
            data = body.get("data") or {}
            error = data.get("error")
            return JobUpdate(
                status=_STATUS_MAP.get(data.get("status", ""), JobStatus.RUNNING),
                asset_urls=[data["video_url"]] if data.get("video_url") else [],
                failure_reason=error.get("message") if isinstance(error, dict) else error,
                metadata={
                    "thumbnail_url": data.get("thumbnail_url"),
                    "duration": data.get("duration"),
                },
            )

        logger.info(
            "heygen_video.start",
            script_len=len(request.script),
            avatar=payload["video_inputs"][0]["character"]["avatar_id"],
            format=request.format,
        )
        update = await self._video_poller().submit_and_poll(
            submit,
            check,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
        logger.info("heygen_video.done", url=update.primary_url)

        return VideoResult(
            url=update.primary_url,
            thumbnail_url=update.metadata.get("thumbnail_url"),
            duration=update.metadata.get("duration"),
            format=request.format,
        )

    async def list_avatars(self) -> list[AvatarInfo]:
        api_key = self._require_api_key()
        async with self._client_factory() as client:
            body = await request_json(
                client,
                "GET",
                f"{HEYGEN_API_BASE}/v2/avatars",
                provider=self.provider_id,
                headers=self._headers(api_key),
            )
        return [
            AvatarInfo(
                avatar_id=item["avatar_id"],
                name=item.get("avatar_name", item["avatar_id"]),
                category=item.get("category"),
                preview_image=item.get("preview_image_url") or item.get("preview_image"),
            )
            for item in (body.get("data") or {}).get("avatars", [])
        ]

    async def list_voices(self, language: str | None = None) -> list[VoiceInfo]:
        """Available voices, optionally filtered by a language substring (e.g. ``"pt"``)."""
        api_key = self._require_api_key()
        async with self._client_factory() as client:
            body = await request_json(
                client,
                "GET",
                f"{HEYGEN_API_BASE}/v2/voices",
                provider=self.provider_id,
                headers=self._headers(api_key),
            )

        voices = [
            VoiceInfo(
                voice_id=item["voice_id"],
                name=item.get("name", item["voice_id"]),
                language=item.get("language"),
                category=item.get("gender"),
                preview_url=item.get("preview_audio"),
            )
            for item in (body.get("data") or {}).get("voices", [])
        ]
        if language:
            needle = language.lower()
            voices = [v for v in voices if v.language and needle in v.language.lower()]
        return voices

    @staticmethod
    def recommended_avatars() -> list[AvatarInfo]:
        return list(RECOMMENDED_AVATARS)

    def _connection_probe(self, api_key: str):
        return f"{HEYGEN_API_BASE}/v2/avatars", self._headers(api_key)
