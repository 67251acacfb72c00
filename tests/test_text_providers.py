from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from ad_creator.dependencies import build_factories
from ad_creator.exceptions import ProviderError, ValidationError
from ad_creator.models.analysis import AdCopy, AdOptionsOutput, BusinessAnalysisOutput
from ad_creator.models.settings import Capability
from ad_creator.prompts import MAX_CTA_WORDS, MAX_HEADLINE_WORDS, word_count

from tests.fakes import CLAUDE_KEY, OPENAI_KEY

BAKERY_DOCUMENT = (
    "An online bakery selling gluten-free bread, targeting health-conscious millennials."
)

BAKERY_ANALYSIS = BusinessAnalysisOutput(
    business_type="Online gluten-free bakery",
    target_audience="Health-conscious millennials",
    pain_points=["Hard to find tasty gluten-free bread", "No time to bake"],
    unique_value="Fresh gluten-free bread delivered to your door",
    persuasion_angles=["health", "convenience"],
)


def fake_chat_model(structured_outputs, text_reply="  Tired of bland bread? Try us today.  "):
    """Chat model double: ``with_structured_output(Schema)`` answers with the matching object."""
    llm = MagicMock()
    llm.runnables = {}

    def with_structured_output(schema):
        runnable = MagicMock()
        runnable.ainvoke = AsyncMock(return_value=structured_outputs[schema])
        llm.runnables[schema] = runnable
        return runnable

    llm.with_structured_output.side_effect = with_structured_output
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=text_reply))
    return llm


@pytest.fixture
def text_factory(store):
    return build_factories(store).text


async def test_bakery_analysis_then_ad_prompt(store, text_factory):
    store.update_credential("openai", OPENAI_KEY)
    long_copy = AdCopy(
        headline="Fresh gluten-free bread delivered warm to your door every single morning",
        visual_concept="Rustic loaf on a wooden table, morning light",
        call_to_action="Order your first loaf today with free shipping",
    )
    llm = fake_chat_model(
        {
            BusinessAnalysisOutput: BAKERY_ANALYSIS,
            AdOptionsOutput: AdOptionsOutput(options=[long_copy]),
        }
    )

    with patch("ad_creator.providers.text.openai_text.ChatOpenAI", return_value=llm) as chat_cls:
        analysis = await text_factory.analyze_business_document(BAKERY_DOCUMENT)
        elements = await text_factory.generate_ad_prompt(analysis)

    assert analysis.provider == "openai"
    assert analysis.business_type
    assert analysis.target_audience
    assert len(analysis.pain_points) >= 1

    assert elements.provider == "openai"
    assert elements.headline
    assert word_count(elements.headline) <= MAX_HEADLINE_WORDS
    assert word_count(elements.call_to_action) <= MAX_CTA_WORDS

    assert chat_cls.call_args.kwargs["api_key"] == OPENAI_KEY


async def test_document_is_sent_in_user_message(store, text_factory):
    store.update_credential("openai", OPENAI_KEY)
    llm = fake_chat_model({BusinessAnalysisOutput: BAKERY_ANALYSIS})

    with patch("ad_creator.providers.text.openai_text.ChatOpenAI", return_value=llm):
        await text_factory.analyze_business_document(BAKERY_DOCUMENT)

    system, user = llm.runnables[BusinessAnalysisOutput].ainvoke.call_args.args[0]
    assert system["role"] == "system"
    assert user["role"] == "user"
    assert BAKERY_DOCUMENT in user["content"]


async def test_multiple_options_respect_requested_count(store, text_factory):
    store.update_credential("claude", CLAUDE_KEY)
    store.select_provider(Capability.TEXT, "claude")
    copies = [
        AdCopy(headline=f"Headline {i}", visual_concept="Bread", call_to_action="Buy now")
        for i in range(4)
    ]
    llm = fake_chat_model({AdOptionsOutput: AdOptionsOutput(options=copies)})

    with patch("ad_creator.providers.text.claude_text.ChatAnthropic", return_value=llm):
        result = await text_factory.generate_multiple_ad_options(BAKERY_ANALYSIS, count=2)

    assert result.provider == "claude"
    assert [o.headline for o in result.options] == ["Headline 0", "Headline 1"]


async def test_video_script_is_plain_text(store, text_factory):
    store.update_credential("openai", OPENAI_KEY)
    llm = fake_chat_model({})

    with patch("ad_creator.providers.text.openai_text.ChatOpenAI", return_value=llm):
        script = await text_factory.generate_video_script(BAKERY_ANALYSIS)

    assert script.script == "Tired of bland bread? Try us today."
    assert script.provider == "openai"
    user_message = llm.ainvoke.call_args.args[0][1]["content"]
    assert "Online gluten-free bakery" in user_message


async def test_claude_content_blocks_become_plain_script(store, text_factory):
    store.update_credential("claude", CLAUDE_KEY)
    llm = fake_chat_model({}, text_reply=[{"type": "text", "text": " Warm bread, at your door. "}])

    with patch("ad_creator.providers.text.claude_text.ChatAnthropic", return_value=llm):
        script = await text_factory.generate_video_script(BAKERY_ANALYSIS, provider="claude")

    assert script.script == "Warm bread, at your door."
    assert script.provider == "claude"


async def test_empty_video_script_is_a_provider_error(store, text_factory):
    store.update_credential("openai", OPENAI_KEY)
    llm = fake_chat_model({}, text_reply="   ")

    with patch("ad_creator.providers.text.openai_text.ChatOpenAI", return_value=llm):
        with pytest.raises(ProviderError, match="empty video script"):
            await text_factory.generate_video_script(BAKERY_ANALYSIS)


async def test_blank_document_is_rejected(store, text_factory):
    store.update_credential("openai", OPENAI_KEY)

    with patch("ad_creator.providers.text.openai_text.ChatOpenAI") as chat_cls:
        with pytest.raises(ValidationError):
            await text_factory.analyze_business_document("   ")

    chat_cls.assert_not_called()


async def test_sdk_failure_is_normalized(store, text_factory):
    store.update_credential("openai", OPENAI_KEY)
    llm = MagicMock()
    runnable = MagicMock()
    runnable.ainvoke = AsyncMock(side_effect=RuntimeError("model overloaded"))
    llm.with_structured_output.return_value = runnable

    with patch("ad_creator.providers.text.openai_text.ChatOpenAI", return_value=llm):
        with pytest.raises(ProviderError, match="model overloaded") as exc_info:
            await text_factory.analyze_business_document(BAKERY_DOCUMENT)

    assert exc_info.value.provider == "openai"
