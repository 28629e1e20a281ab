from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator
from pydantic.alias_generators import to_camel

Verdict = Literal["Pass", "Borderline", "Weak"]
KeywordStatus = Literal["missing", "weak"]

KEYWORD_GAP_COUNT = 5
SUGGESTION_COUNT = 3


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class EvaluationRequest(_CamelModel):
    resume_text: str
    job_title: str
    job_posting: str


class KeywordGap(_CamelModel):
    keyword: str = Field(min_length=1)
    status: KeywordStatus


class EvaluationResult(_CamelModel):
    verdict: Verdict
    ats_score: int = Field(ge=0, le=100)
    keyword_gaps: tuple[KeywordGap, ...] = Field(min_length=KEYWORD_GAP_COUNT, max_length=KEYWORD_GAP_COUNT)
    improvement_suggestions: tuple[str, ...] = Field(min_length=SUGGESTION_COUNT, max_length=SUGGESTION_COUNT)

    @field_validator("improvement_suggestions")
    @classmethod
    def _validate_suggestions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if any(not item.strip() for item in value):
            raise ValueError("improvement_suggestions must be non-empty strings")
        return value


class RawModelEvaluation(BaseModel):
    """Top-level shape the model is asked to emit (snake_case keys).

    Entries inside the two lists stay loosely typed; the normalizer filters
    them one by one instead of rejecting the whole reply.
    """

    verdict: Verdict
    ats_score: StrictInt | StrictFloat
    keyword_gaps: list[Any]
    improvement_suggestions: list[Any]

    @field_validator("ats_score")
    @classmethod
    def _validate_score(cls, value: int | float) -> int | float:
        if isinstance(value, float) and math.isnan(value):
            raise ValueError("ats_score must be a number")
        return value


FALLBACK_RESULT = EvaluationResult(
    verdict="Borderline",
    ats_score=50,
    keyword_gaps=tuple(
        KeywordGap(keyword=f"Unable to extract keyword {index}", status="missing")
        for index in range(1, KEYWORD_GAP_COUNT + 1)
    ),
    improvement_suggestions=(
        "Re-submit your resume for a more accurate evaluation",
        "Ensure your resume is in plain text format",
        "Check that your job title is specific and accurate",
    ),
)
