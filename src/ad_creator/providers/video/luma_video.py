"""Luma Dream Machine video generation."""

from __future__ import annotations

import asyncio

import structlog
from lumaai import AsyncLumaAI

from ad_creator.exceptions import ProviderError, ValidationError
from ad_creator.models.media import VIDEO_ASPECT_RATIOS, VideoRequest, VideoResult
from ad_creator.polling import JobStatus, JobUpdate, ProgressCallback
from ad_creator.providers.base import VideoProvider

logger = structlog.get_logger()

LUMA_MODEL = "ray-2"
LUMA_API_BASE = "https://api.lumalabs.ai/dream-machine/v1"

_STATE_MAP: dict[str, JobStatus] = {
    "queued": JobStatus.PENDING,
    "dreaming": JobStatus.RUNNING,
    "completed": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
}


def _clip_duration(duration: int | None) -> str:
    """Luma renders "5s" or "9s" clips."""
    return "9s" if duration and duration > 5 else "5s"


class LumaVideoProvider(VideoProvider):
    provider_id = "luma"
    display_name = "Luma AI"

    async def generate_video(
        self,
        request: VideoRequest,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> VideoResult:
        """Generate a short clip from a prompt, optionally starting from an image.

        The prompt is ``motion_prompt`` when given, otherwise the script.
        """
        api_key = self._require_api_key()
        prompt = (request.motion_prompt or request.script).strip()
        if not prompt:
            raise ValidationError("Luma needs a prompt or script", field="motion_prompt")

        duration = _clip_duration(request.duration)
        create_kwargs: dict = {
            "prompt": prompt,
            "model": LUMA_MODEL,
            "aspect_ratio": VIDEO_ASPECT_RATIOS[request.format],
            "resolution": request.resolution,
            "duration": duration,
        }
        if request.source_image_url:
            create_kwargs["keyframes"] = {
                "frame0": {"type": "image", "url": request.source_image_url}
            }

        client = AsyncLumaAI(auth_token=api_key)

        async def submit() -> str:
            generation = await client.generations.create(**create_kwargs)
            if not generation.id:
                raise ProviderError("Luma did not return a generation id", provider=self.provider_id)
            return generation.id

        async def check(generation_id: str) -> JobUpdate:
            generation = await client.generations.get(id=generation_id)
            video_url = generation.assets.video if generation.assets else None
            return JobUpdate(
                status=_STATE_MAP.get(generation.state or "", JobStatus.RUNNING),
                asset_urls=[video_url] if video_url else [],
                failure_reason=generation.failure_reason,
            )

        logger.info(
            "luma_video_generate.start",
            prompt_len=len(prompt),
            duration=duration,
            has_keyframe=request.source_image_url is not None,
        )
        update = await self._video_poller().submit_and_poll(
            submit,
            check,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
        logger.info("luma_video_generate.done", url=update.primary_url)

        return VideoResult(
            url=update.primary_url,
            duration=float(duration.rstrip("s")),
            format=request.format,
        )

    def _connection_probe(self, api_key: str):
        return f"{LUMA_API_BASE}/generations?limit=1", {"Authorization": f"Bearer {api_key}"}
