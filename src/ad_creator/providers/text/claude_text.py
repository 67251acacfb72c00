"""Anthropic Claude chat models for business analysis and ad copy."""

from __future__ import annotations

from langchain_anthropic import ChatAnthropic

from ad_creator.config import settings
from ad_creator.providers.text.structured import StructuredChatTextProvider

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeTextProvider(StructuredChatTextProvider):
    provider_id = "claude"
    display_name = "Anthropic Claude"

    def _build_llm(self, api_key: str, temperature: float) -> ChatAnthropic:
        return ChatAnthropic(
            model=settings.text_model_claude,
            api_key=api_key,
            temperature=temperature,
            max_tokens=4096,
        )

    def _connection_probe(self, api_key: str):
        return "https://api.anthropic.com/v1/models", {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
