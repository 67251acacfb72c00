"""Prompt templates and prompt-shaping helpers shared by providers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ad_creator.models.analysis import BusinessAnalysisOutput
    from ad_creator.models.media import ImageRequest

MAX_HEADLINE_WORDS = 8
MAX_CTA_WORDS = 5


def word_count(text: str) -> int:
    return len(text.split())


def clip_words(text: str, limit: int) -> str:
    """Trim *text* to at most *limit* whitespace-separated words."""
    words = text.split()
    if len(words) <= limit:
        return text.strip()
    return " ".join(words[:limit])


# ---------------------------------------------------------------------------
# Text analysis templates
# ---------------------------------------------------------------------------

ANALYSIS_SYSTEM_PROMPT = """\
You are a senior direct-response marketing strategist. Read the business \
description and extract what an ad creator needs: the type of business, the \
target audience, the customer pain points it solves, its unique value \
proposition and the persuasion angles that would work best. Be concrete and \
brief. Answer in the language of the description."""

ANALYSIS_USER_PROMPT = """\
Analyze this business description:

{document}"""

AD_COPY_SYSTEM_PROMPT = f"""\
You write static image ads. For each variant produce a headline of at most \
{MAX_HEADLINE_WORDS} words, a call to action of at most {MAX_CTA_WORDS} words, \
and a visual concept: an English description of the image, with no text in it, \
that an image model can render. Write headline and CTA in the language of the \
analysis."""

AD_COPY_USER_PROMPT = """\
Create {count} distinct ad variant(s) for this business.

## Business analysis
- Type: {business_type}
- Audience: {target_audience}
- Pain points: {pain_points}
- Unique value: {unique_value}
- Persuasion angles: {persuasion_angles}

Each variant must use a different persuasion angle."""

VIDEO_SCRIPT_USER_PROMPT = """\
Based on the business analysis, write a 30-60 second video ad script.

## Business analysis
- Type: {business_type}
- Audience: {target_audience}
- Pain points: {pain_points}
- Unique value: {unique_value}

## Format
- 30-60 seconds of speech
- Conversational and persuasive tone
- Structure: opening hook + problem + solution + CTA
- Natural spoken language, in the language of the analysis

Return only the script text."""


def analysis_fields(analysis: BusinessAnalysisOutput) -> dict[str, str]:
    return {
        "business_type": analysis.business_type,
        "target_audience": analysis.target_audience,
        "pain_points": ", ".join(analysis.pain_points),
        "unique_value": analysis.unique_value,
        "persuasion_angles": ", ".join(analysis.persuasion_angles) or "(none)",
    }


# ---------------------------------------------------------------------------
# Image overlay text
# ---------------------------------------------------------------------------

_POSITION_INSTRUCTIONS: dict[str, str] = {
    "top": "at the top of the image",
    "bottom": "at the bottom of the image",
    "left": "on the left side of the image",
    "right": "on the right side of the image",
    "center": "in the center of the image",
}


def build_prompt_with_text(request: ImageRequest) -> str:
    """Append overlay-text rendering instructions to the image prompt."""
    prompt = request.prompt
    if not (request.main_text or request.sub_text):
        return prompt

    where = _POSITION_INSTRUCTIONS.get(request.text_position, _POSITION_INSTRUCTIONS["center"])

    if request.main_text and request.sub_text:
        prompt += (
            f'. Include text elements: "{request.main_text}" as the main heading in large, '
            f'bold letters {where}, and "{request.sub_text}" as smaller descriptive text '
            "below it. Make sure the text is clearly readable and professionally styled."
        )
    elif request.main_text:
        prompt += (
            f'. Include the text "{request.main_text}" prominently displayed {where} in '
            "large, bold, readable letters that complement the overall design."
        )
    else:
        prompt += f'. Include the text "{request.sub_text}" {where} in clear, readable letters.'

    prompt += (
        " The text should be perfectly integrated into the design, not overlaid. "
        "Use professional typography that matches the overall aesthetic."
    )
    return prompt
