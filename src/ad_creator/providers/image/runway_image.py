"""Runway gen4_image text-to-image (task submit + poll)."""

from __future__ import annotations

import structlog

from ad_creator.models.media import ImageRequest, ImageResult
from ad_creator.polling import ProgressCallback
from ad_creator.prompts import build_prompt_with_text
from ad_creator.providers.base import ImageProvider
from ad_creator.providers.runway_api import RUNWAY_API_BASE, RunwayTasks, runway_headers

logger = structlog.get_logger()

# DALL-E style sizes → Runway ratios
_RATIOS: dict[str, str] = {
    "1024x1024": "1024:1024",
    "1792x1024": "1920:1080",
    "1024x1792": "1080:1920",
}


class RunwayImageProvider(ImageProvider):
    provider_id = "runway"
    display_name = "Runway"

    async def generate_image(
        self,
        request: ImageRequest,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ImageResult:
        api_key = self._require_api_key()
        tasks = RunwayTasks(api_key, self._client_factory, provider=self.provider_id)
        prompt = build_prompt_with_text(request)

        payload = {
            "promptText": prompt,
            "model": "gen4_image",
            "ratio": _RATIOS[request.size],
        }
        if request.seed is not None:
            payload["seed"] = request.seed

        logger.info("runway_image.start", prompt_len=len(prompt), ratio=payload["ratio"])
        update = await self._image_poller().submit_and_poll(
            lambda: tasks.submit("text_to_image", payload),
            tasks.check,
            on_progress=on_progress,
        )
        logger.info("runway_image.done", url=update.primary_url)

        return ImageResult(url=update.primary_url, prompt=prompt, seed=request.seed)

    def _connection_probe(self, api_key: str):
        return f"{RUNWAY_API_BASE}/organization", runway_headers(api_key)
