"""Replicate predictions (FLUX schnell) with status polling."""

from __future__ import annotations

import structlog

from ad_creator.exceptions import ProviderError
from ad_creator.models.media import ImageRequest, ImageResult
from ad_creator.polling import JobStatus, JobUpdate, ProgressCallback
from ad_creator.prompts import build_prompt_with_text
from ad_creator.providers.base import ImageProvider
from ad_creator.providers.http import request_json

logger = structlog.get_logger()

REPLICATE_API_BASE = "https://api.replicate.com/v1"
REPLICATE_MODEL = "black-forest-labs/flux-schnell"

_STATUS_MAP: dict[str, JobStatus] = {
    "starting": JobStatus.PENDING,
    "processing": JobStatus.RUNNING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.FAILED,
}

_ASPECT_RATIOS: dict[str, str] = {
    "1024x1024": "1:1",
    "1792x1024": "16:9",
    "1024x1792": "9:16",
}


def _prediction_update(body: dict) -> JobUpdate:
    output = body.get("output") or []
    if isinstance(output, str):
        output = [output]
    return JobUpdate(
        status=_STATUS_MAP.get(body.get("status", ""), JobStatus.RUNNING),
        asset_urls=[url for url in output if url],
        failure_reason=body.get("error"),
    )


class ReplicateImageProvider(ImageProvider):
    provider_id = "replicate"
    display_name = "Replicate"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    async def generate_image(
        self,
        request: ImageRequest,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ImageResult:
        api_key = self._require_api_key()
        headers = self._headers(api_key)
        prompt = build_prompt_with_text(request)

        model_input = {
            "prompt": prompt,
            "aspect_ratio": _ASPECT_RATIOS[request.size],
            "output_format": "webp",
            "num_outputs": 1,
        }
        if request.seed is not None:
            model_input["seed"] = request.seed
        if request.steps is not None:
            model_input["num_inference_steps"] = request.steps

        async def submit() -> str:
            async with self._client_factory() as client:
                body = await request_json(
                    client,
                    "POST",
                    f"{REPLICATE_API_BASE}/models/{REPLICATE_MODEL}/predictions",
                    provider=self.provider_id,
                    headers=headers,
                    json={"input": model_input},
                )
            if not body.get("id"):
                raise ProviderError("Replicate did not return a prediction id", provider=self.provider_id)
            return body["id"]

        async def check(prediction_id: str) -> JobUpdate:
            async with self._client_factory() as client:
                body = await request_json(
                    client,
                    "GET",
                    f"{REPLICATE_API_BASE}/predictions/{prediction_id}",
                    provider=self.provider_id,
                    headers=headers,
                )
            return _prediction_update(body)

        logger.info("replicate_image.start", model=REPLICATE_MODEL, prompt_len=len(prompt))
        update = await self._image_poller().submit_and_poll(submit, check, on_progress=on_progress)
        logger.info("replicate_image.done", url=update.primary_url)

        return ImageResult(url=update.primary_url, prompt=prompt, seed=request.seed)

    def _connection_probe(self, api_key: str):
        return f"{REPLICATE_API_BASE}/account", self._headers(api_key)
