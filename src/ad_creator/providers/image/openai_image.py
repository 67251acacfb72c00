"""DALL-E 3 image generation."""

from __future__ import annotations

import structlog
from openai import AsyncOpenAI

from ad_creator.config import settings
from ad_creator.exceptions import ProviderError
from ad_creator.models.media import ImageRequest, ImageResult
from ad_creator.polling import ProgressCallback
from ad_creator.prompts import build_prompt_with_text
from ad_creator.providers.base import ImageProvider

logger = structlog.get_logger()


class OpenAIImageProvider(ImageProvider):
    provider_id = "openai"
    display_name = "OpenAI DALL-E 3"

    async def generate_image(
        self,
        request: ImageRequest,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> ImageResult:
        """Generate one image with DALL-E 3.

        Overlay text (``main_text``/``sub_text``) is rendered by the model, so
        it is folded into the prompt rather than composited afterwards.

        Raises:
            ProviderError: If the API returns no image URL.
        """
        api_key = self._require_api_key()
        full_prompt = build_prompt_with_text(request)

        logger.info(
            "dalle_generate.start",
            prompt_len=len(full_prompt),
            size=request.size,
            quality=request.quality,
        )

        client = AsyncOpenAI(api_key=api_key)
        response = await client.images.generate(
            model=settings.image_model_openai,
            prompt=full_prompt,
            size=request.size,
            quality=request.quality,
            style=request.style,
            n=1,
            response_format="url",
        )

        image = response.data[0] if response.data else None
        if image is None or not image.url:
            raise ProviderError("DALL-E 3 returned no image URL", provider=self.provider_id)

        logger.info("dalle_generate.done", revised=image.revised_prompt is not None)
        return ImageResult(
            url=image.url,
            prompt=full_prompt,
            revised_prompt=image.revised_prompt,
        )

    def _connection_probe(self, api_key: str):
        return "https://api.openai.com/v1/models", {"Authorization": f"Bearer {api_key}"}
