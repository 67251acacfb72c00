"""Pydantic models for business analysis and ad copy."""

from pydantic import BaseModel, Field, field_validator

from ad_creator.prompts import MAX_CTA_WORDS, MAX_HEADLINE_WORDS, clip_words


# ---------------------------------------------------------------------------
# LLM Structured Output models (used by text providers)
# ---------------------------------------------------------------------------


class BusinessAnalysisOutput(BaseModel):
    """Structured analysis of a free-text business description."""

    business_type: str = Field(description="Type of business, e.g. 'online bakery'")
    target_audience: str = Field(description="Who the business sells to (1 sentence)")
    pain_points: list[str] = Field(
        description="Customer problems the business solves (3-5 short items)",
        min_length=1,
    )
    unique_value: str = Field(description="Unique value proposition (1 sentence)")
    persuasion_angles: list[str] = Field(
        default_factory=list,
        description="Persuasion angles an ad could use (e.g. scarcity, social proof)",
    )


class AdCopy(BaseModel):
    """One ad variant: headline, visual concept and call to action."""

    headline: str = Field(description=f"Ad headline, at most {MAX_HEADLINE_WORDS} words")
    visual_concept: str = Field(
        description="Description of the image that illustrates the ad (English)"
    )
    call_to_action: str = Field(description=f"Call to action, at most {MAX_CTA_WORDS} words")

    @field_validator("headline")
    @classmethod
    def _clip_headline(cls, value: str) -> str:
        return clip_words(value, MAX_HEADLINE_WORDS)

    @field_validator("call_to_action")
    @classmethod
    def _clip_cta(cls, value: str) -> str:
        return clip_words(value, MAX_CTA_WORDS)


class AdOptionsOutput(BaseModel):
    """Several distinct ad variants for the same analysis."""

    options: list[AdCopy] = Field(
        description="Distinct ad variants, each with a different persuasion angle",
        min_length=1,
        max_length=5,
    )


# ---------------------------------------------------------------------------
# Results returned by the text factory (provider stamped)
# ---------------------------------------------------------------------------


class BusinessAnalysis(BusinessAnalysisOutput):
    provider: str = ""


class AdPromptElements(AdCopy):
    provider: str = ""


class MultipleAdOptions(BaseModel):
    options: list[AdCopy]
    provider: str = ""


class VideoScript(BaseModel):
    script: str
    provider: str = ""
