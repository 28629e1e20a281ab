from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Union

from pydantic import ValidationError

from app.schemas.evaluation import (
    KEYWORD_GAP_COUNT,
    SUGGESTION_COUNT,
    EvaluationResult,
    KeywordGap,
    RawModelEvaluation,
)

PLACEHOLDER_KEYWORD_GAP = KeywordGap(keyword="No additional keyword identified", status="missing")
PLACEHOLDER_SUGGESTION = "Review overall resume clarity and keyword alignment"

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_VALID_STATUSES = {"missing", "weak"}


@dataclass(frozen=True)
class NormalizeSuccess:
    result: EvaluationResult


@dataclass(frozen=True)
class NormalizeFailure:
    reason: str


NormalizeOutcome = Union[NormalizeSuccess, NormalizeFailure]


def _extract_json_object(raw_text: str) -> dict[str, Any] | None:
    match = _JSON_OBJECT_RE.search(raw_text or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: int | float) -> int:
    if isinstance(value, int):
        return max(0, min(100, value))
    if math.isinf(value):
        return 100 if value > 0 else 0
    return max(0, min(100, _round_half_up(value)))


def _keyword_gaps(entries: list[Any]) -> tuple[KeywordGap, ...]:
    gaps: list[KeywordGap] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        keyword = entry.get("keyword")
        status = entry.get("status")
        if not isinstance(keyword, str) or not keyword.strip():
            continue
        if not isinstance(status, str) or status not in _VALID_STATUSES:
            continue
        gaps.append(KeywordGap(keyword=keyword.strip(), status=status))
        if len(gaps) == KEYWORD_GAP_COUNT:
            break
    while len(gaps) < KEYWORD_GAP_COUNT:
        gaps.append(PLACEHOLDER_KEYWORD_GAP)
    return tuple(gaps)


def _suggestions(entries: list[Any]) -> tuple[str, ...]:
    suggestions = [item.strip() for item in entries if isinstance(item, str) and item.strip()]
    suggestions = suggestions[:SUGGESTION_COUNT]
    while len(suggestions) < SUGGESTION_COUNT:
        suggestions.append(PLACEHOLDER_SUGGESTION)
    return tuple(suggestions)


def decode_evaluation(raw_text: str) -> NormalizeOutcome:
    """Decode model output into an :class:`EvaluationResult`.

    The top-level shape is validated strictly: unknown verdicts, a
    non-numeric score or missing lists fail the whole reply. Inside the lists
    bad entries are dropped and the result is padded or truncated to the
    fixed 5 gaps / 3 suggestions. Out-of-range scores are clamped, never
    rejected.
    """
    data = _extract_json_object(raw_text)
    if data is None:
        return NormalizeFailure("no_json_object")

    try:
        raw = RawModelEvaluation.model_validate(data)
    except ValidationError:
        return NormalizeFailure("schema_mismatch")

    try:
        result = EvaluationResult(
            verdict=raw.verdict,
            ats_score=clamp_score(raw.ats_score),
            keyword_gaps=_keyword_gaps(raw.keyword_gaps),
            improvement_suggestions=_suggestions(raw.improvement_suggestions),
        )
    except ValidationError:
        return NormalizeFailure("result_shape")
    return NormalizeSuccess(result)


def normalize(raw_text: str) -> EvaluationResult | None:
    outcome = decode_evaluation(raw_text)
    if isinstance(outcome, NormalizeSuccess):
        return outcome.result
    return None
