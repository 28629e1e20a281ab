from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from app.ai.types import ChatMessage

SHORT_RESUME_WORD_LIMIT = 350

_BASE_PROMPT = """You are an Applicant Tracking System (ATS) evaluator.

Your task is to evaluate a resume strictly for ATS screening purposes,
not human review.

INPUTS:
- Resume text
- Target job title
- Job posting (the actual job description)

EVALUATION RULES:
- Extract keywords and requirements DIRECTLY from the job posting
- Compare the resume against the SPECIFIC requirements in the job posting
- Penalize vague phrases, keyword stuffing, and irrelevant experience
- Do NOT reward formatting, design, or personality
- If unsure, default conservatively
- Prioritize keywords that appear multiple times in the job posting

VERDICT CRITERIA:
- Pass: Resume likely survives ATS filters for this role
- Borderline: Resume may survive but has clear risks
- Weak: Resume unlikely to pass ATS filters

OUTPUT REQUIREMENTS:
Respond in JSON ONLY with the following structure:

{
  "verdict": "Pass | Borderline | Weak",
  "ats_score": number (0-100),
  "keyword_gaps": [
    { "keyword": "keyword 1", "status": "missing" },
    { "keyword": "keyword 2", "status": "weak" },
    { "keyword": "keyword 3", "status": "missing" },
    { "keyword": "keyword 4", "status": "weak" },
    { "keyword": "keyword 5", "status": "missing" }
  ],
  "improvement_suggestions": [
    "Blunt, specific improvement",
    "Blunt, specific improvement",
    "Blunt, specific improvement"
  ]
}

KEYWORD STATUS DEFINITIONS:
- "missing": Keyword is expected for this role but NOT found in resume
- "weak": Keyword exists but is vague, buried, or lacks context

STYLE RULES:
- Be direct and neutral
- No encouragement or motivational language
- No filler explanations
- No disclaimers
- No emojis"""

_SHORT_RESUME_OVERLAY = """ADDITIONAL CONTEXT:
This resume is short or early-career.

ADJUSTMENTS:
- Expect fewer roles and bullet points
- Focus evaluation on core skills coverage and relevance
- Do NOT penalize lack of seniority
- Penalize missing foundational keywords more heavily"""

_SENIOR_RESUME_OVERLAY = """ADDITIONAL CONTEXT:
This resume represents a senior role.

ADJUSTMENTS:
- Expect measurable impact and ownership
- Penalize vague leadership language
- Penalize missing system-level or strategic keywords
- Be stricter with Pass verdicts"""

_SAFETY_RULES = """SAFETY RULES:
- Only use requirements EXPLICITLY stated in the job posting
- Do NOT invent additional requirements beyond what's in the posting
- If a requirement in the job posting is ambiguous, interpret conservatively
- Never infer education, certifications, or years unless stated in resume
- Keywords must come from the job posting, not general assumptions"""

_INPUTS_TEMPLATE = """---

TARGET JOB TITLE: {job_title}

JOB POSTING:
{job_posting}

---

RESUME TEXT:
{resume_text}

---

Now evaluate this resume against the job posting above. Respond with JSON only."""

_SENIOR_TITLE_RE = re.compile(
    r"\b(senior|sr\.?|lead|principal|staff|director|head of|vp|vice president"
    r"|chief|cto|cfo|ceo|coo|manager|architect)\b",
    re.IGNORECASE,
)
# 8 or 9 years, or any two-digit-plus figure: "8+ years", "12 years".
_SENIOR_YEARS_RE = re.compile(r"\b(?:[89]|\d{2,})\+?\s*years?\b", re.IGNORECASE)


class Overlay(str, Enum):
    NONE = "none"
    SHORT = "short"
    SENIOR = "senior"


@dataclass(frozen=True)
class PromptMetadata:
    is_short_resume: bool
    is_senior_resume: bool
    word_count: int

    @property
    def overlay(self) -> Overlay:
        return select_overlay(self)


# First matching rule wins.
_OVERLAY_RULES: tuple[tuple[Overlay, Callable[[PromptMetadata], bool]], ...] = (
    (Overlay.SHORT, lambda meta: meta.is_short_resume),
    (Overlay.SENIOR, lambda meta: meta.is_senior_resume),
)

_OVERLAY_TEXT: dict[Overlay, str] = {
    Overlay.SHORT: _SHORT_RESUME_OVERLAY,
    Overlay.SENIOR: _SENIOR_RESUME_OVERLAY,
}


def count_words(text: str) -> int:
    return len(text.split())


def detect_senior_experience(resume_text: str) -> bool:
    return bool(_SENIOR_TITLE_RE.search(resume_text) or _SENIOR_YEARS_RE.search(resume_text))


def analyze_resume(resume_text: str) -> PromptMetadata:
    word_count = count_words(resume_text)
    return PromptMetadata(
        is_short_resume=word_count < SHORT_RESUME_WORD_LIMIT,
        is_senior_resume=detect_senior_experience(resume_text),
        word_count=word_count,
    )


def select_overlay(metadata: PromptMetadata) -> Overlay:
    for overlay, matches in _OVERLAY_RULES:
        if matches(metadata):
            return overlay
    return Overlay.NONE


def build_prompt(resume_text: str, job_title: str, job_posting: str) -> tuple[str, PromptMetadata]:
    metadata = analyze_resume(resume_text)

    sections = [_BASE_PROMPT]
    overlay_text = _OVERLAY_TEXT.get(metadata.overlay)
    if overlay_text:
        sections.append(overlay_text)
    sections.append(_SAFETY_RULES)
    sections.append(
        _INPUTS_TEMPLATE.format(
            job_title=job_title,
            job_posting=job_posting,
            resume_text=resume_text,
        )
    )
    return "\n\n".join(sections), metadata


def build_messages(resume_text: str, job_title: str, job_posting: str) -> tuple[list[ChatMessage], PromptMetadata]:
    prompt, metadata = build_prompt(resume_text, job_title, job_posting)
    return [ChatMessage(role="user", content=prompt)], metadata
