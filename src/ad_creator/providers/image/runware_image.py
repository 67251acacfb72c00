"""Runware image inference (synchronous REST task API)."""

from __future__ import annotations

import uuid

import structlog

from ad_creator.exceptions import ProviderError
from ad_creator.models.media import ImageRequest, ImageResult
from ad_creator.polling import ProgressCallback
from ad_creator.prompts import build_prompt_with_text
from ad_creator.providers.base import ImageProvider
from ad_creator.providers.http import request_json

logger = structlog.get_logger()

RUNWARE_API_URL = "https://api.runware.ai/v1"
RUNWARE_MODEL = "runware:100@1"


class RunwareImageProvider(ImageProvider):
    provider_id = "runware"
    display_name = "Runware"

    async def generate_image(
        self,
        request: ImageRequest,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ImageResult:
        api_key = self._require_api_key()
        prompt = build_prompt_with_text(request)
        width, height = request.dimensions

        task = {
            "taskType": "imageInference",
            "taskUUID": str(uuid.uuid4()),
            "positivePrompt": prompt,
            "width": width,
            "height": height,
            "model": RUNWARE_MODEL,
            "numberResults": 1,
            "outputFormat": "WEBP",
        }
        if request.seed is not None:
            task["seed"] = request.seed
        if request.steps is not None:
            task["steps"] = request.steps
        if request.guidance is not None:
            task["CFGScale"] = request.guidance

        logger.info("runware_image.start", prompt_len=len(prompt), width=width, height=height)

        async with self._client_factory() as client:
            body = await request_json(
                client,
                "POST",
                RUNWARE_API_URL,
                provider=self.provider_id,
                headers={"Authorization": f"Bearer {api_key}"},
                json=[task],
            )

        if body.get("errors"):
            first = body["errors"][0]
            raise ProviderError(
                f"Runware error: {first.get('message', first)}",
                provider=self.provider_id,
            )

        data = body.get("data") or []
        image = next((item for item in data if item.get("imageURL")), None)
        if image is None:
            raise ProviderError("Runware returned no image URL", provider=self.provider_id)

        logger.info("runware_image.done", image_uuid=image.get("imageUUID"))
        return ImageResult(url=image["imageURL"], prompt=prompt, seed=image.get("seed", request.seed))
