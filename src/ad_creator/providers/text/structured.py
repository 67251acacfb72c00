"""Text generation on top of LangChain chat models.

OpenAI and Claude differ only in which chat model they build; prompts and
structured-output parsing are shared here.
"""

from __future__ import annotations

from abc import abstractmethod

import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser

from ad_creator.exceptions import ProviderError, ValidationError
from ad_creator.models.analysis import (
    AdOptionsOutput,
    AdPromptElements,
    BusinessAnalysis,
    BusinessAnalysisOutput,
    MultipleAdOptions,
    VideoScript,
)
from ad_creator.prompts import (
    AD_COPY_SYSTEM_PROMPT,
    AD_COPY_USER_PROMPT,
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_USER_PROMPT,
    VIDEO_SCRIPT_USER_PROMPT,
    analysis_fields,
)
from ad_creator.providers.base import TextProvider

logger = structlog.get_logger()

MAX_AD_OPTIONS = 5


class StructuredChatTextProvider(TextProvider):
    """Runs the ad-copy prompts through ``llm.with_structured_output``."""

    @abstractmethod
    def _build_llm(self, api_key: str, temperature: float) -> BaseChatModel: ...

    async def analyze_business_document(self, document_text: str) -> BusinessAnalysis:
        if not document_text.strip():
            raise ValidationError("Business description is empty", field="document_text")

        api_key = self._require_api_key()
        logger.info("text_analysis.start", provider=self.provider_id, document_len=len(document_text))

        llm = self._build_llm(api_key, temperature=0.3).with_structured_output(BusinessAnalysisOutput)
        result: BusinessAnalysisOutput = await llm.ainvoke(
            [
                {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": ANALYSIS_USER_PROMPT.format(document=document_text)},
            ]
        )

        logger.info(
            "text_analysis.done",
            provider=self.provider_id,
            business_type=result.business_type,
            pain_points=len(result.pain_points),
        )
        return BusinessAnalysis(**result.model_dump())

    async def generate_ad_prompt(self, analysis: BusinessAnalysisOutput) -> AdPromptElements:
        options = await self._generate_options(analysis, count=1)
        return AdPromptElements(**options[0].model_dump())

    async def generate_multiple_ad_options(
        self, analysis: BusinessAnalysisOutput, count: int = 3
    ) -> MultipleAdOptions:
        count = max(1, min(count, MAX_AD_OPTIONS))
        options = await self._generate_options(analysis, count=count)
        return MultipleAdOptions(options=options)

    async def _generate_options(self, analysis: BusinessAnalysisOutput, count: int):
        api_key = self._require_api_key()
        logger.info("ad_copy.start", provider=self.provider_id, count=count)

        llm = self._build_llm(api_key, temperature=0.8).with_structured_output(AdOptionsOutput)
        result: AdOptionsOutput = await llm.ainvoke(
            [
                {"role": "system", "content": AD_COPY_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": AD_COPY_USER_PROMPT.format(count=count, **analysis_fields(analysis)),
                },
            ]
        )

        options = result.options[:count]
        logger.info("ad_copy.done", provider=self.provider_id, returned=len(result.options), kept=len(options))
        return options

    async def generate_video_script(self, analysis: BusinessAnalysisOutput) -> VideoScript:
        api_key = self._require_api_key()
        logger.info("video_script.start", provider=self.provider_id)

        llm = self._build_llm(api_key, temperature=0.7)
        response = await llm.ainvoke(
            [
                {"role": "system", "content": "You write short spoken video ads."},
                {"role": "user", "content": VIDEO_SCRIPT_USER_PROMPT.format(**analysis_fields(analysis))},
            ]
        )

        # Claude may answer with a list of content blocks rather than a string
        script = StrOutputParser().invoke(response).strip()
        if not script:
            raise ProviderError("Model returned an empty video script", provider=self.provider_id)

        logger.info("video_script.done", provider=self.provider_id, script_len=len(script))
        return VideoScript(script=script)
