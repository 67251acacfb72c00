"""Providers that are registered and selectable but have no backend yet."""

from __future__ import annotations

from ad_creator.providers.base import ImageProvider, TextProvider, VideoProvider


class GeminiTextProvider(TextProvider):
    provider_id = "gemini"
    display_name = "Google Gemini"
    is_stub = True

    async def analyze_business_document(self, document_text):
        raise self._not_implemented()

    async def generate_ad_prompt(self, analysis):
        raise self._not_implemented()

    async def generate_multiple_ad_options(self, analysis, count=3):
        raise self._not_implemented()

    async def generate_video_script(self, analysis):
        raise self._not_implemented()


class MidjourneyImageProvider(ImageProvider):
    provider_id = "midjourney"
    display_name = "Midjourney"
    is_stub = True

    async def generate_image(self, request, *, on_progress=None):
        raise self._not_implemented()


class SynthesiaVideoProvider(VideoProvider):
    provider_id = "synthesia"
    display_name = "Synthesia"
    is_stub = True

    async def generate_video(self, request, *, on_progress=None, cancel_event=None):
        raise self._not_implemented()


class PikaVideoProvider(VideoProvider):
    provider_id = "pika"
    display_name = "Pika Labs"
    is_stub = True

    async def generate_video(self, request, *, on_progress=None, cancel_event=None):
        raise self._not_implemented()
