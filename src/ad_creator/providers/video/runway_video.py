"""Runway image-to-video: animate a still image with a motion prompt."""

from __future__ import annotations

import asyncio

import structlog

from ad_creator.exceptions import ValidationError
from ad_creator.models.media import VideoRequest, VideoResult
from ad_creator.polling import ProgressCallback
from ad_creator.providers.base import VideoProvider
from ad_creator.providers.runway_api import RUNWAY_API_BASE, RunwayTasks, runway_headers

logger = structlog.get_logger()

RUNWAY_VIDEO_MODEL = "gen4_turbo"
DEFAULT_MOTION_PROMPT = "move gently, subtle camera motion"

_RATIOS: dict[str, str] = {
    "vertical": "720:1280",
    "horizontal": "1280:720",
    "square": "960:960",
}


def _clip_duration(duration: int | None) -> int:
    """Runway renders 5 or 10 second clips."""
    return 10 if duration and duration > 5 else 5


class RunwayVideoProvider(VideoProvider):
    provider_id = "runway"
    display_name = "Runway"

    async def generate_video(
        self,
        request: VideoRequest,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> VideoResult:
        api_key = self._require_api_key()
        if not request.source_image_url:
            raise ValidationError("Runway video needs a source image", field="source_image_url")

        duration = _clip_duration(request.duration)
        payload = {
            "promptImage": request.source_image_url,
            "promptText": request.motion_prompt or DEFAULT_MOTION_PROMPT,
            "model": RUNWAY_VIDEO_MODEL,
            "ratio": _RATIOS[request.format],
            "duration": duration,
        }
        tasks = RunwayTasks(api_key, self._client_factory, provider=self.provider_id)

        logger.info("runway_video.start", ratio=payload["ratio"], duration=duration)
        update = await self._video_poller().submit_and_poll(
            lambda: tasks.submit("image_to_video", payload),
            tasks.check,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )
        logger.info("runway_video.done", url=update.primary_url)

        return VideoResult(
            url=update.primary_url,
            thumbnail_url=request.source_image_url,
            duration=float(duration),
            format=request.format,
        )

    def _connection_probe(self, api_key: str):
        return f"{RUNWAY_API_BASE}/organization", runway_headers(api_key)
