"""OpenAI chat models for business analysis and ad copy."""

from __future__ import annotations

from langchain_openai import ChatOpenAI

from ad_creator.config import settings
from ad_creator.providers.text.structured import StructuredChatTextProvider


class OpenAITextProvider(StructuredChatTextProvider):
    provider_id = "openai"
    display_name = "OpenAI GPT"

    def _build_llm(self, api_key: str, temperature: float) -> ChatOpenAI:
        return ChatOpenAI(
            model=settings.text_model_openai,
            api_key=api_key,
            temperature=temperature,
        )

    def _connection_probe(self, api_key: str):
        return "https://api.openai.com/v1/models", {"Authorization": f"Bearer {api_key}"}
