from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_SCORE = 50


def _clamp_score(v: Any) -> int:
    try:
        v2 = int(round(float(v)))
    except Exception:
        return DEFAULT_SCORE
    if v2 < 0:
        return 0
    if v2 > 100:
        return 100
    return v2


def _string_list(v: Any) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, (list, tuple)):
        raise ValueError("expected a list of strings")
    return [str(x).strip() for x in v if x is not None and str(x).strip()]


class AnalysisResult(BaseModel):
    """Structured screening outcome; accepts the PascalCase keys the prompt requests."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    overall_score: int = Field(
        default=DEFAULT_SCORE,
        validation_alias=AliasChoices("OverallScore", "overall_score", "overallScore"),
    )
    summary: str = Field(default="", validation_alias=AliasChoices("Summary", "summary"))
    strengths: list[str] = Field(default_factory=list, validation_alias=AliasChoices("Strengths", "strengths"))
    weaknesses: list[str] = Field(default_factory=list, validation_alias=AliasChoices("Weaknesses", "weaknesses"))
    detailed_analysis: str = Field(
        default="",
        validation_alias=AliasChoices("DetailedAnalysis", "detailed_analysis", "detailedAnalysis"),
    )
    recommendation: str | None = Field(default=None, validation_alias=AliasChoices("Recommendation", "recommendation"))

    @field_validator("overall_score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return _clamp_score(v)

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> list[str]:
        return _string_list(v)

    @field_validator("summary", "detailed_analysis", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (dict, list)):
            raise ValueError("expected text")
        return str(v).strip()

    @field_validator("recommendation", mode="before")
    @classmethod
    def _recommendation(cls, v: Any) -> str | None:
        if v is None or isinstance(v, (dict, list)):
            return None
        s = str(v).strip()
        return s[:500] or None


class ScreeningRequest(BaseModel):
    applicant_ids: list[int] = Field(default_factory=list)
